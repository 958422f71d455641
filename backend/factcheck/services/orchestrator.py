"""
orchestrator.py

Admission of new fact-check submissions.

Quota consumption and request creation share one transaction, so a submission
rejected for quota leaves nothing behind. The background job is queued only
after that transaction commits.
"""
import logging

from sqlalchemy.engine import Engine

from ..db.models import FactCheckRequest
from ..db.session import session_scope
from ..store.quota_ledger import QuotaLedger, retry_on_insert_race
from ..store.request_store import RequestStore
from .job_queue import JobQueue

logger = logging.getLogger(__name__)


class JobOrchestrator:
    """
    Admits a submission and hands it to the job queue.
    """

    def __init__(self, engine: Engine, ledger: QuotaLedger, store: RequestStore, queue: JobQueue):
        self.engine = engine
        self.ledger = ledger
        self.store = store
        self.queue = queue

    def submit(self, owner: str, url: str) -> str:
        """
        Admit a submission and return its request id without waiting for
        the analysis.

        Raises:
            QuotaExceeded: the owner has no requests left today
            DispatchError: the job queue is not running
        """
        request = self._admit(owner, url)
        self.queue.enqueue(request.id)
        logger.info(f"Submitted request {request.id} for {owner}: {url}")
        return request.id

    @retry_on_insert_race
    def _admit(self, owner: str, url: str) -> FactCheckRequest:
        with session_scope(self.engine) as session:
            used = self.ledger.consume_one(owner, session)
            request = self.store.create(owner, url, session)
        logger.debug(f"{owner} used {used}/{self.ledger.daily_limit} requests today")
        return request
