"""
Fact-check pipeline services and their wiring.
"""
from dataclasses import dataclass

from sqlalchemy.engine import Engine

from ..agents.analysis_engine import AnalysisEngine
from ..agents.content_fetcher import ContentFetcher
from ..store.quota_ledger import QuotaLedger
from ..store.request_store import RequestStore
from .job_queue import JobQueue
from .orchestrator import JobOrchestrator
from .processor import BackgroundProcessor
from .result_reader import FactCheckView, ResultReader


@dataclass
class Pipeline:
    """All collaborators of one running service."""
    engine: Engine
    ledger: QuotaLedger
    store: RequestStore
    processor: BackgroundProcessor
    queue: JobQueue
    orchestrator: JobOrchestrator
    reader: ResultReader

    def start(self) -> int:
        """Start workers and re-queue requests left pending. Returns the recovered count."""
        self.queue.start()
        return self.queue.recover_pending(self.store.list_pending())

    def stop(self) -> None:
        self.queue.shutdown()


def build_pipeline(
    engine: Engine,
    fetcher: ContentFetcher,
    analysis: AnalysisEngine,
    daily_limit: int = 20,
    workers: int = 4,
) -> Pipeline:
    ledger = QuotaLedger(engine, daily_limit=daily_limit)
    store = RequestStore(engine)
    processor = BackgroundProcessor(store, fetcher, analysis)
    queue = JobQueue(processor.process, workers=workers)
    return Pipeline(
        engine=engine,
        ledger=ledger,
        store=store,
        processor=processor,
        queue=queue,
        orchestrator=JobOrchestrator(engine, ledger, store, queue),
        reader=ResultReader(store),
    )


__all__ = [
    'Pipeline', 'build_pipeline', 'BackgroundProcessor', 'JobQueue',
    'JobOrchestrator', 'ResultReader', 'FactCheckView',
]
