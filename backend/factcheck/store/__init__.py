# Store module
from .quota_ledger import QuotaLedger, QuotaStatus, DAILY_LIMIT
from .request_store import RequestStore

__all__ = ['QuotaLedger', 'QuotaStatus', 'DAILY_LIMIT', 'RequestStore']
