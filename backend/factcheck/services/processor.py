"""
processor.py

Background job for one fact-check request:
fetch the post, analyze it, write the terminal state.

Every failure ends as the request's failed state. Nothing is raised back to
the worker pool and nothing is retried.
"""
import logging

from ..agents.analysis_engine import AnalysisEngine
from ..agents.content_fetcher import ContentFetcher
from ..errors import FactCheckError, InternalError, RequestNotFound
from ..store.request_store import RequestStore

logger = logging.getLogger(__name__)


def failure_message(error: Exception) -> str:
    return f"Error: {error}"


class BackgroundProcessor:
    """
    Drives a pending request to completed or failed.
    """

    def __init__(self, store: RequestStore, fetcher: ContentFetcher, engine: AnalysisEngine):
        self.store = store
        self.fetcher = fetcher
        self.engine = engine

    def process(self, request_id: str) -> None:
        logger.info(f"Processing request {request_id}")
        try:
            self._run(request_id)
        except RequestNotFound:
            logger.error(f"Request {request_id} disappeared before processing")
        except FactCheckError as e:
            logger.warning(f"Request {request_id} failed: {e}")
            self._record_failure(request_id, failure_message(e))
        except Exception as e:
            logger.exception(f"Unexpected error while processing request {request_id}")
            self._record_failure(request_id, failure_message(InternalError(str(e) or type(e).__name__)))

    def _run(self, request_id: str) -> None:
        request = self.store.get(request_id)
        if request is None:
            raise RequestNotFound()
        if request.status.is_terminal:
            # Delivered twice (e.g. re-queued on startup); already done
            logger.info(f"Request {request_id} already {request.status.value}, skipping")
            return

        content = self.fetcher.fetch(request.source_url)
        analysis = self.engine.analyze(content.text, content.image_urls)
        self.store.complete(request_id, analysis.narrative_text, analysis.score)
        logger.info(f"Request {request_id} completed with score {analysis.score}")

    def _record_failure(self, request_id: str, message: str) -> None:
        try:
            self.store.fail(request_id, message)
        except Exception:
            logger.exception(f"Could not record failure for request {request_id}")
