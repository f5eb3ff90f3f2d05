from loyalty_ledger.schemas.customer import Customer, SmsLog, TransactionHistoryEntry
from loyalty_ledger.schemas.ledger import LedgerSnapshot
from loyalty_ledger.schemas.transaction import TransactionCreate, TransactionOut, QuoteOut
from loyalty_ledger.schemas.crm import AnalyticsOut, CustomerOut, OverviewOut
from loyalty_ledger.schemas.settings_schema import SettingsOut, SettingsUpdate
__all__ = [
    "Customer",
    "SmsLog",
    "TransactionHistoryEntry",
    "LedgerSnapshot",
    "TransactionCreate",
    "TransactionOut",
    "QuoteOut",
    "CustomerOut",
    "OverviewOut",
    "AnalyticsOut",
    "SettingsOut",
    "SettingsUpdate",
]
