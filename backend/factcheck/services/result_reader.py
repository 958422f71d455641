"""
result_reader.py

Read access to a user's own fact-check requests.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from ..db.models import FactCheckRequest, RequestStatus, as_utc
from ..errors import Forbidden, RequestNotFound
from ..store.request_store import RequestStore

GENERIC_FAILURE = "Processing failed"


class FactCheckView(BaseModel):
    """Public fields of a request."""
    id: str
    url: str
    status: RequestStatus
    result: Optional[str] = None
    authenticity_score: Optional[int] = None
    error: Optional[str] = None
    created_at: datetime
    completed_at: Optional[datetime] = None

    @classmethod
    def from_request(cls, request: FactCheckRequest) -> "FactCheckView":
        failed = request.status == RequestStatus.FAILED
        return cls(
            id=request.id,
            url=request.source_url,
            status=request.status,
            result=request.result,
            authenticity_score=request.authenticity_score,
            error=(request.result or GENERIC_FAILURE) if failed else None,
            created_at=as_utc(request.created_at),
            completed_at=as_utc(request.completed_at),
        )


class ResultReader:
    """
    Ownership-checked lookups.
    """

    def __init__(self, store: RequestStore):
        self.store = store

    def get(self, owner: str, request_id: str) -> FactCheckRequest:
        """
        Raises:
            RequestNotFound: no such request
            Forbidden: the request belongs to another user
        """
        request = self.store.get(request_id)
        if request is None:
            raise RequestNotFound()
        if request.owner != owner:
            raise Forbidden()
        return request

    def list_for_owner(self, owner: str, limit: int = 50) -> List[FactCheckRequest]:
        return self.store.list_for_owner(owner, limit=limit)
