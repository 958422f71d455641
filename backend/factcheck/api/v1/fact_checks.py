"""
fact_checks.py - Fact-check API Endpoints

Submit a post URL, poll its result, list history and check today's quota.
"""
from typing import List, Optional
from urllib.parse import urlsplit

from fastapi import APIRouter, Depends
from pydantic import BaseModel, field_validator

from ...db.models import RequestStatus
from ...errors import Forbidden, RequestNotFound
from ...services import FactCheckView, Pipeline
from ..deps import get_current_user, get_optional_user, get_pipeline

router = APIRouter()


class SubmitRequest(BaseModel):
    """Request model for submission endpoint."""
    url: str

    @field_validator("url")
    @classmethod
    def must_be_http_url(cls, value: str) -> str:
        value = value.strip()
        parts = urlsplit(value)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ValueError("url must be an absolute http(s) URL")
        return value


class SubmitResponse(BaseModel):
    request_id: str
    status: RequestStatus = RequestStatus.PENDING


class QuotaResponse(BaseModel):
    remaining_requests: int
    has_access: bool
    daily_limit: int


@router.post("/fact-checks", response_model=SubmitResponse, status_code=202)
def submit_fact_check(
    body: SubmitRequest,
    user: str = Depends(get_current_user),
    pipeline: Pipeline = Depends(get_pipeline),
):
    """
    Queue a fact-check of the post at body.url.

    Returns immediately with the request id; poll GET /fact-checks/{id}.
    """
    request_id = pipeline.orchestrator.submit(user, body.url)
    return SubmitResponse(request_id=request_id)


@router.get("/fact-checks", response_model=List[FactCheckView])
def list_fact_checks(
    limit: int = 50,
    user: str = Depends(get_current_user),
    pipeline: Pipeline = Depends(get_pipeline),
):
    """Caller's fact-checks, newest first."""
    limit = max(1, min(limit, 200))
    return [FactCheckView.from_request(r) for r in pipeline.reader.list_for_owner(user, limit=limit)]


@router.get("/fact-checks/{request_id}", response_model=FactCheckView)
def get_fact_check(
    request_id: str,
    user: str = Depends(get_current_user),
    pipeline: Pipeline = Depends(get_pipeline),
):
    try:
        request = pipeline.reader.get(user, request_id)
    except Forbidden:
        # Do not reveal that the id exists
        raise RequestNotFound() from None
    return FactCheckView.from_request(request)


@router.get("/quota", response_model=QuotaResponse)
def check_quota(
    user: Optional[str] = Depends(get_optional_user),
    pipeline: Pipeline = Depends(get_pipeline),
):
    """Requests left today. Anonymous callers have none."""
    limit = pipeline.ledger.daily_limit
    if user is None:
        return QuotaResponse(remaining_requests=0, has_access=False, daily_limit=limit)

    status = pipeline.ledger.check_remaining(user)
    return QuotaResponse(remaining_requests=status.remaining, has_access=status.has_access, daily_limit=limit)
