"""
Database models definition using SQLModel.
"""
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to timestamps read back from backends that drop tzinfo (SQLite)."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def new_request_id() -> str:
    return uuid.uuid4().hex


class RequestStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not RequestStatus.PENDING


class FactCheckRequest(SQLModel, table=True):
    __tablename__ = "fact_check_requests"

    id: str = Field(default_factory=new_request_id, primary_key=True, max_length=32)
    owner: str = Field(index=True)
    source_url: str
    status: RequestStatus = Field(default=RequestStatus.PENDING, index=True)
    result: Optional[str] = None
    authenticity_score: Optional[int] = Field(default=None, ge=0, le=100)
    created_at: datetime = Field(default_factory=utcnow, index=True, sa_type=DateTime(timezone=True))
    completed_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))


class DailyQuota(SQLModel, table=True):
    __tablename__ = "daily_quotas"
    __table_args__ = (UniqueConstraint("owner", "date", name="uq_daily_quota_owner_date"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    owner: str = Field(index=True)
    date: str  # YYYY-MM-DD (UTC)
    request_count: int = Field(default=0, ge=0)
