import sys
import os
import pytest

# Add backend to path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '../backend')))

from factcheck.agents.analysis_engine import SCORE_TOOL_NAME
from factcheck.agents.content_fetcher import FetchedContent, extract_image_urls
from factcheck.agents.events import TextChunk, ToolCall
from factcheck.db.session import init_db, make_engine
from factcheck.errors import FetchError


class FakeFetcher:
    """Returns canned markdown per URL, or raises FetchError for unknown ones."""

    def __init__(self, pages=None, status=404):
        self.pages = pages or {}
        self.status = status
        self.calls = []

    def fetch(self, url):
        self.calls.append(url)
        if url not in self.pages:
            raise FetchError(f"Failed to fetch content: {self.status} Not Found", status=self.status)
        text = self.pages[url]
        return FetchedContent(url=url, text=text, image_urls=extract_image_urls(text))


class ScriptedModel:
    """Streams a fixed list of events and records what it was asked."""

    def __init__(self, events):
        self.events = events
        self.calls = []

    def stream(self, system_instruction, prompt, image_urls):
        self.calls.append({"system": system_instruction, "prompt": prompt, "images": list(image_urls)})
        for event in self.events:
            yield event


def scam_verdict_events(score=8):
    return [
        TextChunk("## Verdict: False\n\n"),
        TextChunk("> Caution: this looks like a crypto giveaway scam.\n\n"),
        TextChunk("**Summary:** Nobody gives away BTC for a deposit."),
        ToolCall(SCORE_TOOL_NAME, {"score": score, "reasoning": "Classic advance-fee scam"}),
    ]


@pytest.fixture
def db_engine(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'factcheck.db'}")
    init_db(engine)
    yield engine
    engine.dispose()
