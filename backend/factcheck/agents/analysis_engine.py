"""
analysis_engine.py

Turns fetched post content into a fact-check report and an authenticity score.

The model streams its report as text and is asked to finish by calling the
setAuthenticityScore tool once. The engine reads the whole event stream in
order: text is concatenated into the report, the tool call supplies the score,
and any search grounding becomes a numbered Sources section.
"""
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Protocol

from ..errors import AnalysisError
from .events import Citation, Grounding, ModelEvent, TextChunk, ToolCall

logger = logging.getLogger(__name__)

# Used when the model never reports a score: neutral midpoint
DEFAULT_SCORE = 50
MAX_IMAGES = 16

SCORE_TOOL_NAME = "setAuthenticityScore"
SCORE_TOOL_DESCRIPTION = (
    "Set the final authenticity score from 0-100 "
    "(0 = completely false, 100 = completely true)"
)

SYSTEM_INSTRUCTION = """You are a critical, skeptical fact-checker reviewing a social media post.
Be concise and structured. Write your answer in markdown using exactly these parts:

## Verdict: <True | Mostly true | Misleading | False | Unverifiable>

> A one-line guidance note for the reader. If the post shows signs of a scam,
> manipulation or false information, start the note with "Caution:".

**Summary:** two or three sentences on what the post claims and what holds up.

**Evidence:**
- one bullet per key claim, stating what supports or contradicts it

Judge the images attached to the post as well as its text.
When you are done, call the setAuthenticityScore tool exactly once with a score
from 0 (completely false) to 100 (completely true) and a one-sentence reasoning."""


class EventStreamModel(Protocol):
    def stream(self, system_instruction: str, prompt: str, image_urls: List[str]) -> Iterable[ModelEvent]:
        ...


@dataclass
class AnalysisResult:
    narrative_text: str
    score: int
    citations: List[Citation] = field(default_factory=list)
    reasoning: Optional[str] = None
    score_reported: bool = False


def build_prompt(content: str) -> str:
    return f"Here's the content to fact-check:\n\n{content}"


def parse_score(value: Any) -> Optional[int]:
    """Coerce a tool argument to an int in [0, 100]; None if it is not a number."""
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return max(0, min(100, int(round(number))))


def format_sources(citations: List[Citation]) -> str:
    lines = ["", "", "## Sources", ""]
    for i, citation in enumerate(citations, 1):
        title = citation.title or citation.uri
        lines.append(f"{i}. [{title}]({citation.uri})")
    return "\n".join(lines)


class AnalysisEngine:
    """
    Runs the fact-check prompt through a streaming model.
    """

    def __init__(self, model: EventStreamModel, max_images: int = MAX_IMAGES, default_score: int = DEFAULT_SCORE):
        self.model = model
        self.max_images = max_images
        self.default_score = default_score

    def analyze(self, text: str, image_urls: Optional[List[str]] = None) -> AnalysisResult:
        image_urls = list(image_urls or [])
        images = image_urls[:self.max_images]
        if len(image_urls) > len(images):
            logger.info(f"Dropping {len(image_urls) - len(images)} images over the limit of {self.max_images}")

        logger.info(f"Analyzing {len(text)} chars with {len(images)} images")
        events = self.model.stream(SYSTEM_INSTRUCTION, build_prompt(text), images)
        return self.collect(events)

    def collect(self, events: Iterable[ModelEvent]) -> AnalysisResult:
        """
        Consume the event stream to the end.

        Raises:
            AnalysisError: the stream carried neither text nor a score
        """
        chunks: List[str] = []
        citations: List[Citation] = []
        seen_uris = set()
        score: Optional[int] = None
        reasoning: Optional[str] = None

        for event in events:
            if isinstance(event, TextChunk):
                chunks.append(event.text)
            elif isinstance(event, ToolCall):
                if event.name != SCORE_TOOL_NAME:
                    logger.warning(f"Ignoring call to unknown tool {event.name}")
                    continue
                parsed = parse_score(event.args.get("score"))
                if parsed is None:
                    logger.warning(f"Ignoring unusable score argument: {event.args.get('score')!r}")
                    continue
                # Last call wins
                score = parsed
                reasoning = event.args.get("reasoning")
            elif isinstance(event, Grounding):
                for citation in event.citations:
                    if citation.uri not in seen_uris:
                        seen_uris.add(citation.uri)
                        citations.append(citation)

        narrative = "".join(chunks)
        if not narrative.strip() and score is None:
            raise AnalysisError("Model returned no analysis")

        if score is None:
            logger.warning(f"Model did not report a score, using default {self.default_score}")

        if citations:
            narrative += format_sources(citations)

        return AnalysisResult(
            narrative_text=narrative,
            score=score if score is not None else self.default_score,
            citations=citations,
            reasoning=reasoning,
            score_reported=score is not None,
        )
