"""
errors.py - Error taxonomy for the fact-check pipeline.

Admission errors (auth, quota, lookups) reach the caller as HTTP errors.
Errors raised inside a background job end up as the request's failed state.
"""
from typing import Optional


class FactCheckError(Exception):
    """Base class. status_code is the HTTP status the API answers with."""

    status_code = 500
    default_message = "Fact-check error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class Unauthenticated(FactCheckError):
    status_code = 401
    default_message = "Authentication required"


class QuotaExceeded(FactCheckError):
    status_code = 429

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"Daily limit of {limit} requests exceeded")


class RequestNotFound(FactCheckError):
    status_code = 404
    default_message = "Request not found"


class Forbidden(FactCheckError):
    status_code = 403
    default_message = "Request belongs to another user"


class FetchError(FactCheckError):
    """Content extraction failed. status is the upstream HTTP status, if any."""

    status_code = 502

    def __init__(self, message: str, status: Optional[int] = None):
        self.status = status
        super().__init__(message)


class AnalysisError(FactCheckError):
    status_code = 502
    default_message = "Analysis failed"


class DispatchError(FactCheckError):
    status_code = 503
    default_message = "Background worker is not running"


class InternalError(FactCheckError):
    status_code = 500
    default_message = "Internal error"
