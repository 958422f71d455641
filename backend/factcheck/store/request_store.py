"""
request_store.py

Durable record of fact-check requests and their lifecycle.

A request is written twice at most: created as pending, then one terminal
update. The terminal update is conditional on the row still being pending, so
a repeated write is a no-op.
"""
import logging
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.engine import Engine
from sqlmodel import Session, select

from ..db.models import FactCheckRequest, RequestStatus, utcnow
from ..db.session import session_scope

logger = logging.getLogger(__name__)


class RequestStore:
    """
    Creates, reads and finalizes FactCheckRequest rows.
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    def create(self, owner: str, source_url: str, session: Optional[Session] = None) -> FactCheckRequest:
        """Insert a new pending request. Joins the caller's transaction if given one."""
        if session is None:
            with session_scope(self.engine) as own_session:
                return self.create(owner, source_url, own_session)

        request = FactCheckRequest(owner=owner, source_url=source_url, status=RequestStatus.PENDING)
        session.add(request)
        session.flush()
        logger.info(f"Created request {request.id} for {owner}")
        return request

    def get(self, request_id: str) -> Optional[FactCheckRequest]:
        with session_scope(self.engine) as session:
            return session.get(FactCheckRequest, request_id)

    def list_for_owner(self, owner: str, limit: int = 50) -> List[FactCheckRequest]:
        """Owner's requests, most recent first."""
        with session_scope(self.engine) as session:
            statement = (
                select(FactCheckRequest)
                .where(FactCheckRequest.owner == owner)
                .order_by(FactCheckRequest.created_at.desc())
                .limit(limit)
            )
            return list(session.exec(statement).all())

    def list_pending(self) -> List[str]:
        """Ids of every request still waiting for its background job, oldest first."""
        with session_scope(self.engine) as session:
            statement = (
                select(FactCheckRequest.id)
                .where(FactCheckRequest.status == RequestStatus.PENDING)
                .order_by(FactCheckRequest.created_at)
            )
            return list(session.exec(statement).all())

    def complete(self, request_id: str, result: str, score: Optional[int]) -> bool:
        return self._finalize(request_id, RequestStatus.COMPLETED, result, score)

    def fail(self, request_id: str, message: Optional[str]) -> bool:
        return self._finalize(request_id, RequestStatus.FAILED, message, None)

    def _finalize(
        self,
        request_id: str,
        status: RequestStatus,
        result: Optional[str],
        score: Optional[int],
    ) -> bool:
        """
        Move a pending request to a terminal state.

        Returns:
            True if this call performed the transition, False if the request
            was missing or already terminal.
        """
        if score is not None and not 0 <= score <= 100:
            raise ValueError(f"authenticity score out of range: {score}")

        with session_scope(self.engine) as session:
            outcome = session.exec(
                update(FactCheckRequest)
                .where(
                    FactCheckRequest.id == request_id,
                    FactCheckRequest.status == RequestStatus.PENDING,
                )
                .values(
                    status=status,
                    result=result,
                    authenticity_score=score,
                    completed_at=utcnow(),
                )
            )
            changed = outcome.rowcount == 1

        if changed:
            logger.info(f"Request {request_id} -> {status.value}")
        else:
            logger.warning(f"Request {request_id} not finalized as {status.value}: missing or already terminal")
        return changed
