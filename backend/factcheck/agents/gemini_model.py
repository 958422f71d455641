"""
gemini_model.py

Gemini adapter for the analysis engine.
Sends text plus inline images with the scoring tool declared, and translates
the streamed response chunks into model events.

Gemini 2.x does not accept Google Search grounding and function declarations
in the same generateContent request, so with search enabled the adapter makes
a separate grounded call first. Its findings are added to the prompt and its
citations are emitted as a Grounding event.
"""
import ipaddress
import logging
import socket
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple
from urllib.parse import urlsplit

import requests
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from ..errors import AnalysisError
from .analysis_engine import SCORE_TOOL_DESCRIPTION, SCORE_TOOL_NAME
from .events import Citation, Grounding, ModelEvent, Other, TextChunk, ToolCall

logger = logging.getLogger(__name__)

# Posts under review may themselves contain such material
PERMISSIVE_CATEGORIES = (
    types.HarmCategory.HARM_CATEGORY_HARASSMENT,
    types.HarmCategory.HARM_CATEGORY_HATE_SPEECH,
    types.HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT,
    types.HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT,
)

SEARCH_INSTRUCTION = (
    "Search the web for reliable reporting on the claims in this social media post. "
    "List the relevant findings as short bullets."
)

IMAGE_CHUNK_BYTES = 64 * 1024


@dataclass(frozen=True)
class ModelConfig:
    """Fixed generation parameters for one Gemini client."""
    api_key: Optional[str]
    model: str = "gemini-2.5-flash"
    temperature: float = 0.3
    max_output_tokens: int = 2048
    candidate_count: int = 1
    enable_search: bool = False
    image_timeout: Optional[float] = None
    # Inline request data is capped at 20 MB by the API
    max_image_bytes: int = 4 * 1024 * 1024
    max_total_image_bytes: int = 15 * 1024 * 1024


def score_tool() -> types.Tool:
    return types.Tool(function_declarations=[
        types.FunctionDeclaration(
            name=SCORE_TOOL_NAME,
            description=SCORE_TOOL_DESCRIPTION,
            parameters=types.Schema(
                type=types.Type.OBJECT,
                properties={
                    "score": types.Schema(
                        type=types.Type.INTEGER,
                        minimum=0,
                        maximum=100,
                        description="Authenticity score from 0-100",
                    ),
                    "reasoning": types.Schema(
                        type=types.Type.STRING,
                        description="Brief explanation for the score",
                    ),
                },
                required=["score", "reasoning"],
            ),
        )
    ])


def is_public_host(host: Optional[str]) -> bool:
    """True if every address the host resolves to is globally routable."""
    if not host:
        return False
    try:
        infos = socket.getaddrinfo(host, None)
    except (socket.gaierror, UnicodeError):
        return False
    addresses = {info[4][0] for info in infos}
    return bool(addresses) and all(ipaddress.ip_address(a.split("%")[0]).is_global for a in addresses)


def citations_from(grounding) -> List[Citation]:
    if grounding is None or not grounding.grounding_chunks:
        return []
    return [
        Citation(uri=source.web.uri, title=source.web.title or "")
        for source in grounding.grounding_chunks
        if source.web is not None and source.web.uri
    ]


class GeminiModel:
    """
    Streaming Gemini client with a fixed configuration.
    """

    def __init__(
        self,
        config: ModelConfig,
        client: Optional[genai.Client] = None,
        http: Optional[requests.Session] = None,
    ):
        self.config = config
        self.client = client or genai.Client(api_key=config.api_key)
        self.http = http or requests.Session()

    def _safety_settings(self) -> List[types.SafetySetting]:
        return [
            types.SafetySetting(category=category, threshold=types.HarmBlockThreshold.BLOCK_NONE)
            for category in PERMISSIVE_CATEGORIES
        ]

    def generation_config(self, system_instruction: str) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            system_instruction=system_instruction,
            temperature=self.config.temperature,
            max_output_tokens=self.config.max_output_tokens,
            candidate_count=self.config.candidate_count,
            safety_settings=self._safety_settings(),
            tools=[score_tool()],
            automatic_function_calling=types.AutomaticFunctionCallingConfig(disable=True),
        )

    def search_config(self) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            system_instruction=SEARCH_INSTRUCTION,
            temperature=self.config.temperature,
            max_output_tokens=self.config.max_output_tokens,
            candidate_count=self.config.candidate_count,
            safety_settings=self._safety_settings(),
            tools=[types.Tool(google_search=types.GoogleSearch())],
        )

    def stream(self, system_instruction: str, prompt: str, image_urls: List[str]) -> Iterator[ModelEvent]:
        try:
            citations: List[Citation] = []
            if self.config.enable_search:
                findings, citations = self._search(prompt)
                if findings:
                    prompt = f"{prompt}\n\nWeb search findings:\n{findings}"

            parts = [types.Part(text=prompt)]
            parts.extend(self._image_parts(image_urls))
            contents = [types.Content(role="user", parts=parts)]

            response = self.client.models.generate_content_stream(
                model=self.config.model,
                contents=contents,
                config=self.generation_config(system_instruction),
            )
            for chunk in response:
                yield from self.events_from_chunk(chunk)
        except genai_errors.APIError as e:
            logger.error(f"Gemini call failed: {e}")
            raise AnalysisError(f"Model call failed: {e}") from e

        if citations:
            yield Grounding(citations)

    def _search(self, prompt: str) -> Tuple[str, List[Citation]]:
        """Grounded search call. Returns the findings text and its citations."""
        logger.info("Running grounded web search")
        response = self.client.models.generate_content(
            model=self.config.model,
            contents=[types.Content(role="user", parts=[types.Part(text=prompt)])],
            config=self.search_config(),
        )
        citations = []
        for candidate in response.candidates or []:
            citations.extend(citations_from(candidate.grounding_metadata))
        return (response.text or "").strip(), citations

    def events_from_chunk(self, chunk) -> Iterator[ModelEvent]:
        feedback = getattr(chunk, "prompt_feedback", None)
        if feedback is not None and feedback.block_reason:
            raise AnalysisError(f"Prompt blocked by model: {feedback.block_reason}")

        for candidate in chunk.candidates or []:
            content = candidate.content
            for part in (content.parts or []) if content else []:
                if part.function_call is not None:
                    call = part.function_call
                    yield ToolCall(name=call.name, args=dict(call.args or {}))
                elif part.text and not part.thought:
                    yield TextChunk(part.text)
                else:
                    yield Other("part")

            citations = citations_from(candidate.grounding_metadata)
            if citations:
                yield Grounding(citations)

            if candidate.finish_reason:
                yield Other(f"finish:{candidate.finish_reason}")

    def _image_parts(self, image_urls: List[str]) -> List[types.Part]:
        """
        Download images and inline them.

        Images on non-public hosts, unreadable ones, non-images and ones over
        the size caps are skipped.
        """
        parts = []
        total = 0
        for url in image_urls:
            if not is_public_host(urlsplit(url).hostname):
                logger.warning(f"Skipping image {url}: host is not public")
                continue

            try:
                data, mime_type = self._download_image(url)
            except requests.RequestException as e:
                logger.warning(f"Skipping image {url}: {e}")
                continue

            if data is None:
                continue
            if total + len(data) > self.config.max_total_image_bytes:
                logger.warning(f"Skipping image {url}: total image size limit reached")
                continue

            total += len(data)
            parts.append(types.Part.from_bytes(data=data, mime_type=mime_type))
        return parts

    def _download_image(self, url: str) -> Tuple[Optional[bytes], str]:
        limit = self.config.max_image_bytes
        response = self.http.get(url, timeout=self.config.image_timeout, stream=True)
        try:
            response.raise_for_status()

            mime_type = response.headers.get("Content-Type", "").split(";")[0].strip().lower()
            if not mime_type.startswith("image/") or mime_type == "image/svg+xml":
                logger.warning(f"Skipping image {url}: unsupported type {mime_type or 'unknown'}")
                return None, mime_type

            declared = response.headers.get("Content-Length")
            if declared and declared.isdigit() and int(declared) > limit:
                logger.warning(f"Skipping image {url}: {declared} bytes is over the {limit} byte limit")
                return None, mime_type

            buffer = bytearray()
            for chunk in response.iter_content(chunk_size=IMAGE_CHUNK_BYTES):
                buffer.extend(chunk)
                if len(buffer) > limit:
                    logger.warning(f"Skipping image {url}: over the {limit} byte limit")
                    return None, mime_type
            return bytes(buffer), mime_type
        finally:
            response.close()
