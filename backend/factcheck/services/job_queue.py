"""
job_queue.py

Worker pool that runs background fact-check jobs.

The database is the durable part of the queue: a request stays pending until
its job writes a terminal state, and recover_pending() re-queues whatever was
left pending by a previous process. An id already in flight is not queued a
second time.
"""
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Callable, Dict, Iterable, Optional

from ..errors import DispatchError

logger = logging.getLogger(__name__)


class JobQueue:
    """
    Thread pool keyed by request id.
    """

    def __init__(self, handler: Callable[[str], None], workers: int = 4):
        self.handler = handler
        self.workers = workers
        self._executor: Optional[ThreadPoolExecutor] = None
        self._in_flight: Dict[str, Future] = {}
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._executor is not None

    def start(self) -> None:
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="factcheck-worker")
                logger.info(f"Job queue started with {self.workers} workers")

    def shutdown(self, wait_for_jobs: bool = True) -> None:
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait_for_jobs)
            logger.info("Job queue stopped")

    def enqueue(self, request_id: str) -> bool:
        """
        Schedule a job. Returns False if the id is already in flight.

        Raises:
            DispatchError: the queue is not running
        """
        with self._lock:
            if self._executor is None:
                raise DispatchError()
            if request_id in self._in_flight:
                logger.info(f"Request {request_id} already queued")
                return False
            try:
                future = self._executor.submit(self.handler, request_id)
            except RuntimeError as e:
                raise DispatchError(f"Background worker rejected the job: {e}") from e
            self._in_flight[request_id] = future

        future.add_done_callback(lambda _: self._forget(request_id))
        logger.debug(f"Request {request_id} queued")
        return True

    def recover_pending(self, request_ids: Iterable[str]) -> int:
        """Re-queue requests left pending. Returns how many were queued."""
        queued = sum(1 for request_id in request_ids if self.enqueue(request_id))
        if queued:
            logger.info(f"Recovered {queued} pending requests")
        return queued

    def pending_count(self) -> int:
        with self._lock:
            return len(self._in_flight)

    def drain(self, timeout: Optional[float] = None) -> bool:
        """Wait for in-flight jobs. Returns True if all finished in time."""
        with self._lock:
            futures = list(self._in_flight.values())
        done, not_done = wait(futures, timeout=timeout)
        return not not_done

    def _forget(self, request_id: str) -> None:
        with self._lock:
            self._in_flight.pop(request_id, None)
