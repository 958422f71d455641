"""
Health check endpoint with database and worker status.
"""
import logging
from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from ...services import Pipeline
from ..deps import get_pipeline

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
def health_check(pipeline: Pipeline = Depends(get_pipeline)):
    """
    Health check endpoint.
    Returns status of the database and the background workers.
    """
    print("[Health] Health check requested")

    database_status = "connected"
    try:
        with pipeline.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Database check failed: {e}")
        database_status = "error: " + str(e)[:50]

    workers_status = "running" if pipeline.queue.running else "stopped"
    overall = "ok" if database_status == "connected" and pipeline.queue.running else "degraded"

    return {
        "status": overall,
        "timestamp": datetime.now().isoformat(),
        "database": database_status,
        "workers": workers_status,
        "jobs_in_flight": pipeline.queue.pending_count(),
    }
