# loyalty_ledger/models/__init__.py
from loyalty_ledger.models.ledger import SmsLogRow, TenantLedger

__all__ = ["TenantLedger", "SmsLogRow"]
