"""
quota_ledger.py

Per-user, per-day request counters.

Increments use a conditional UPDATE (count < limit) so two submissions racing
for the last slot cannot both pass. The first submission of a day inserts the
row; a concurrent insert for the same (owner, date) hits the unique constraint
and the caller retries the whole transaction.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from sqlalchemy import update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..db.models import DailyQuota
from ..db.session import session_scope
from ..errors import QuotaExceeded

logger = logging.getLogger(__name__)

DAILY_LIMIT = 20

# Retry policy for the insert race on a fresh (owner, date) row
retry_on_insert_race = retry(
    retry=retry_if_exception_type(IntegrityError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.05, max=1),
    reraise=True,
)


def utc_today() -> str:
    return datetime.now(timezone.utc).date().isoformat()


@dataclass(frozen=True)
class QuotaStatus:
    remaining: int
    has_access: bool
    limit: int = DAILY_LIMIT


class QuotaLedger:
    """
    Tracks how many fact-checks each user submitted today.
    """

    def __init__(
        self,
        engine: Engine,
        daily_limit: int = DAILY_LIMIT,
        today: Callable[[], str] = utc_today,
    ):
        self.engine = engine
        self.daily_limit = daily_limit
        self.today = today

    def used_today(self, owner: str, session: Optional[Session] = None) -> int:
        """Number of requests the owner consumed today."""
        if session is None:
            with session_scope(self.engine) as own_session:
                return self.used_today(owner, own_session)

        count = session.exec(
            select(DailyQuota.request_count).where(
                DailyQuota.owner == owner, DailyQuota.date == self.today()
            )
        ).first()
        return count or 0

    def check_remaining(self, owner: str) -> QuotaStatus:
        used = self.used_today(owner)
        remaining = max(0, self.daily_limit - used)
        return QuotaStatus(remaining=remaining, has_access=remaining > 0, limit=self.daily_limit)

    def consume_one(self, owner: str, session: Optional[Session] = None) -> int:
        """
        Take one unit of today's quota and return the new count.

        With a session the increment joins the caller's transaction and is
        committed (or rolled back) together with whatever else the caller
        writes. Without one it runs in its own transaction.

        Raises:
            QuotaExceeded: the owner already used the whole daily limit
        """
        if session is None:
            return self._consume_standalone(owner)

        day = self.today()
        result = session.exec(
            update(DailyQuota)
            .where(
                DailyQuota.owner == owner,
                DailyQuota.date == day,
                DailyQuota.request_count < self.daily_limit,
            )
            .values(request_count=DailyQuota.request_count + 1)
        )

        count_query = select(DailyQuota.request_count).where(
            DailyQuota.owner == owner, DailyQuota.date == day
        )

        if result.rowcount == 1:
            count = session.exec(count_query).one()
            logger.debug(f"Quota for {owner} on {day}: {count}")
            return count

        if session.exec(count_query).first() is not None:
            logger.info(f"Quota exceeded for {owner} on {day}")
            raise QuotaExceeded(self.daily_limit)

        if self.daily_limit <= 0:
            raise QuotaExceeded(self.daily_limit)

        session.add(DailyQuota(owner=owner, date=day, request_count=1))
        # Surface a concurrent insert here rather than at commit time
        session.flush()
        logger.debug(f"Quota row created for {owner} on {day}")
        return 1

    @retry_on_insert_race
    def _consume_standalone(self, owner: str) -> int:
        with session_scope(self.engine) as session:
            return self.consume_one(owner, session)
