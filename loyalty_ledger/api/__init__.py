from loyalty_ledger.api.customers import router as customers_router
from loyalty_ledger.api.settings_api import router as settings_router
from loyalty_ledger.api.sms_logs import router as sms_logs_router
from loyalty_ledger.api.transactions import router as transactions_router

__all__ = ["customers_router", "settings_router", "sms_logs_router", "transactions_router"]
