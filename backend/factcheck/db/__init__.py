# Database module
from .models import DailyQuota, FactCheckRequest, RequestStatus
from .session import init_db, make_engine, session_scope

__all__ = ['DailyQuota', 'FactCheckRequest', 'RequestStatus', 'init_db', 'make_engine', 'session_scope']
