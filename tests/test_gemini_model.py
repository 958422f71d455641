import socket
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
import requests
from google.genai import errors as genai_errors
from google.genai import types

from factcheck.agents.analysis_engine import SCORE_TOOL_NAME
from factcheck.agents.events import Grounding, Other, TextChunk, ToolCall
from factcheck.agents.gemini_model import GeminiModel, ModelConfig, is_public_host
from factcheck.errors import AnalysisError


def _part(text=None, thought=None, function_call=None):
    return SimpleNamespace(text=text, thought=thought, function_call=function_call)


def _chunk(parts=(), grounding=None, finish_reason=None, block_reason=None):
    candidate = SimpleNamespace(
        content=SimpleNamespace(parts=list(parts)),
        grounding_metadata=grounding,
        finish_reason=finish_reason,
    )
    return SimpleNamespace(
        candidates=[candidate],
        prompt_feedback=SimpleNamespace(block_reason=block_reason) if block_reason else None,
    )


def _image_response(body=b"\x89PNG", content_type="image/png", length=None):
    headers = {"Content-Type": content_type}
    if length is not None:
        headers["Content-Length"] = str(length)
    response = MagicMock(headers=headers)
    response.iter_content.return_value = [body]
    return response


def _model(client=None, http=None, **config):
    return GeminiModel(ModelConfig(api_key="test-key", **config), client=client or MagicMock(), http=http or MagicMock())


@pytest.fixture
def public_hosts():
    with patch("factcheck.agents.gemini_model.is_public_host", return_value=True) as check:
        yield check


def test_generation_config_is_fixed_and_permissive():
    config = _model().generation_config("be critical")

    assert config.temperature == 0.3
    assert config.max_output_tokens == 2048
    assert config.candidate_count == 1
    assert len(config.safety_settings) == 4
    assert all(s.threshold == types.HarmBlockThreshold.BLOCK_NONE for s in config.safety_settings)

    assert len(config.tools) == 1
    declaration = config.tools[0].function_declarations[0]
    assert declaration.name == SCORE_TOOL_NAME
    assert declaration.parameters.required == ["score", "reasoning"]


def test_search_never_shares_a_request_with_the_score_tool():
    model = _model(enable_search=True)

    config = model.generation_config("be critical")
    assert len(config.tools) == 1
    assert config.tools[0].google_search is None

    search = model.search_config()
    assert len(search.tools) == 1
    assert search.tools[0].google_search is not None
    assert not search.tools[0].function_declarations


def test_search_runs_as_separate_call_when_enabled():
    web = SimpleNamespace(uri="https://news.example/story", title="News")
    grounding = SimpleNamespace(grounding_chunks=[SimpleNamespace(web=web)])
    client = MagicMock()
    client.models.generate_content.return_value = SimpleNamespace(
        text="- Outlet X debunked the claim",
        candidates=[SimpleNamespace(grounding_metadata=grounding)],
    )
    client.models.generate_content_stream.return_value = iter([_chunk(parts=[_part(text="verdict")])])

    events = list(_model(client=client, enable_search=True).stream("system", "prompt", []))

    search_kwargs = client.models.generate_content.call_args.kwargs
    assert search_kwargs["config"].tools[0].google_search is not None

    stream_kwargs = client.models.generate_content_stream.call_args.kwargs
    text = stream_kwargs["contents"][0].parts[0].text
    assert text.startswith("prompt")
    assert "Outlet X debunked the claim" in text
    assert stream_kwargs["config"].tools[0].google_search is None

    assert events[0] == TextChunk("verdict")
    assert isinstance(events[-1], Grounding)
    assert events[-1].citations[0].uri == "https://news.example/story"


def test_search_not_called_when_disabled():
    client = MagicMock()
    client.models.generate_content_stream.return_value = iter([])

    list(_model(client=client).stream("system", "prompt", []))

    client.models.generate_content.assert_not_called()


def test_chunk_translation():
    call = SimpleNamespace(name=SCORE_TOOL_NAME, args={"score": 10, "reasoning": "scam"})
    web = SimpleNamespace(uri="https://snopes.example/x", title="Snopes")
    grounding = SimpleNamespace(grounding_chunks=[SimpleNamespace(web=web), SimpleNamespace(web=None)])
    chunk = _chunk(
        parts=[_part(text="thinking...", thought=True), _part(text="## Verdict"), _part(function_call=call)],
        grounding=grounding,
        finish_reason="STOP",
    )

    events = list(_model().events_from_chunk(chunk))

    assert events[0] == Other("part")
    assert events[1] == TextChunk("## Verdict")
    assert events[2] == ToolCall(SCORE_TOOL_NAME, {"score": 10, "reasoning": "scam"})
    assert isinstance(events[3], Grounding)
    assert events[3].citations[0].uri == "https://snopes.example/x"
    assert len(events[3].citations) == 1
    assert events[4] == Other("finish:STOP")


def test_blocked_prompt_raises():
    with pytest.raises(AnalysisError):
        list(_model().events_from_chunk(_chunk(block_reason="SAFETY")))


def test_stream_sends_text_and_images(public_hosts):
    client = MagicMock()
    client.models.generate_content_stream.return_value = iter([_chunk(parts=[_part(text="hello")])])

    http = MagicMock()
    good = _image_response()
    forbidden = MagicMock(headers={})
    forbidden.raise_for_status.side_effect = requests.HTTPError("403")
    not_image = _image_response(body=b"<html>", content_type="text/html; charset=utf-8")
    http.get.side_effect = [good, forbidden, not_image]

    model = _model(client=client, http=http)
    events = list(model.stream("system", "prompt", ["https://x/1.png", "https://x/2.png", "https://x/3"]))

    assert events == [TextChunk("hello")]
    kwargs = client.models.generate_content_stream.call_args.kwargs
    assert kwargs["model"] == "gemini-2.5-flash"
    parts = kwargs["contents"][0].parts
    assert parts[0].text == "prompt"
    assert len(parts) == 2
    assert parts[1].inline_data.mime_type == "image/png"

    assert http.get.call_args.kwargs["stream"] is True
    for response in (good, forbidden, not_image):
        response.close.assert_called_once()


def test_oversized_images_are_skipped(public_hosts):
    http = MagicMock()
    declared_too_big = _image_response(length=5000)
    body_too_big = _image_response(body=b"x" * 2000)
    small = _image_response(body=b"x" * 100)
    http.get.side_effect = [declared_too_big, body_too_big, small]

    model = _model(http=http, max_image_bytes=1000)
    parts = model._image_parts(["https://x/1.png", "https://x/2.png", "https://x/3.png"])

    assert len(parts) == 1
    assert parts[0].inline_data.data == b"x" * 100
    declared_too_big.iter_content.assert_not_called()


def test_total_image_budget_is_enforced(public_hosts):
    http = MagicMock()
    http.get.side_effect = [_image_response(body=b"a" * 600), _image_response(body=b"b" * 600)]

    model = _model(http=http, max_image_bytes=1000, max_total_image_bytes=1000)
    parts = model._image_parts(["https://x/1.png", "https://x/2.png"])

    assert len(parts) == 1
    assert parts[0].inline_data.data == b"a" * 600


def test_images_on_internal_hosts_are_not_fetched():
    http = MagicMock()
    model = _model(http=http)

    with patch("factcheck.agents.gemini_model.socket.getaddrinfo") as resolve:
        resolve.return_value = [(socket.AF_INET, socket.SOCK_STREAM, 6, "", ("169.254.169.254", 0))]
        parts = model._image_parts(["http://metadata.internal/latest.png"])

    assert parts == []
    http.get.assert_not_called()


def test_is_public_host():
    def resolving_to(*addresses):
        return [(socket.AF_INET, socket.SOCK_STREAM, 6, "", (a, 0)) for a in addresses]

    with patch("factcheck.agents.gemini_model.socket.getaddrinfo") as resolve:
        resolve.return_value = resolving_to("93.184.216.34")
        assert is_public_host("example.com")

        resolve.return_value = resolving_to("93.184.216.34", "10.0.0.5")
        assert not is_public_host("mixed.example")

        resolve.return_value = resolving_to("127.0.0.1")
        assert not is_public_host("localhost")

        resolve.side_effect = socket.gaierror("no such host")
        assert not is_public_host("nowhere.invalid")

    assert not is_public_host(None)


def test_api_error_becomes_analysis_error():
    client = MagicMock()
    client.models.generate_content_stream.side_effect = genai_errors.ClientError(
        400, {"error": {"code": 400, "message": "bad request", "status": "INVALID_ARGUMENT"}}
    )

    with pytest.raises(AnalysisError):
        list(_model(client=client).stream("system", "prompt", []))


def test_search_api_error_becomes_analysis_error():
    client = MagicMock()
    client.models.generate_content.side_effect = genai_errors.ServerError(
        503, {"error": {"code": 503, "message": "unavailable", "status": "UNAVAILABLE"}}
    )

    with pytest.raises(AnalysisError):
        list(_model(client=client, enable_search=True).stream("system", "prompt", []))
    client.models.generate_content_stream.assert_not_called()
