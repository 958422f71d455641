"""
events.py

Events produced while a model response streams in.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Union


@dataclass(frozen=True)
class Citation:
    uri: str
    title: str = ""


@dataclass(frozen=True)
class TextChunk:
    text: str


@dataclass(frozen=True)
class ToolCall:
    name: str
    args: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Grounding:
    citations: List[Citation] = field(default_factory=list)


@dataclass(frozen=True)
class Other:
    kind: str


ModelEvent = Union[TextChunk, ToolCall, Grounding, Other]
