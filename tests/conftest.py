"""Pytest configuration and fixtures."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from loyalty_ledger.core.database import Base
from loyalty_ledger.core.tier_rules import DeadlineSettings, DiscountSettings, TierSettings
from loyalty_ledger.schemas.customer import Customer, TransactionHistoryEntry
from loyalty_ledger.services.ledger import LoyaltyLedger
from loyalty_ledger.services.ledger_store import InMemoryLedgerStore, SqlLedgerStore
from loyalty_ledger.services.sms import SendResult

import loyalty_ledger.models  # noqa: F401

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


class FakeNotifier:
    """Records every send; answers with `result` or raises `error`."""

    def __init__(self, result: SendResult | None = None, error: Exception | None = None) -> None:
        self.result = result or SendResult(True, id="SM-test-1")
        self.error = error
        self.sent: list[tuple[str, str]] = []

    def send(self, destination: str, message: str) -> SendResult:
        self.sent.append((destination, message))
        if self.error is not None:
            raise self.error
        return self.result


def make_entry(days_ago: float, final_bill: float = 1000, points: float = 0, now: datetime = NOW) -> TransactionHistoryEntry:
    return TransactionHistoryEntry(
        timestamp=now - timedelta(days=days_ago),
        bill=final_bill,
        final_bill=final_bill,
        points_earned=points,
    )


@pytest.fixture
def now() -> datetime:
    """Fixed clock for reproducible tests."""
    return NOW


@pytest.fixture
def tier_settings() -> TierSettings:
    return TierSettings()


@pytest.fixture
def discount_settings() -> DiscountSettings:
    return DiscountSettings()


@pytest.fixture
def deadline_settings() -> DeadlineSettings:
    return DeadlineSettings()


@pytest.fixture
def regular_customer() -> Customer:
    """Silver by spend, Silver by points, last visit 20 days ago."""
    return Customer(
        mobile="9876543210",
        name="Aisha Khan",
        pin="9876",
        points=150,
        totalSpent=2500,
        history=(make_entry(50, 1200, 50), make_entry(20, 1300, 100)),
    )


@pytest.fixture
def lapsed_customer() -> Customer:
    """Gold by points (deadline 90 days), last visit 100 days ago."""
    return Customer(
        mobile="6543210987",
        name="David Rodriguez",
        pin="6543",
        points=600,
        total_spent=5000,
        history=(make_entry(100, 5000, 600),),
    )


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def store(regular_customer, lapsed_customer) -> InMemoryLedgerStore:
    s = InMemoryLedgerStore()
    s.register("shop-1", "Chai Corner", [regular_customer, lapsed_customer])
    return s


@pytest.fixture
def ledger(store, notifier, now) -> LoyaltyLedger:
    return LoyaltyLedger(store, notifier=notifier, clock=lambda: now, max_retries=3)


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    engine.dispose()


@pytest.fixture
def sql_store(session_factory) -> SqlLedgerStore:
    return SqlLedgerStore(session_factory=session_factory)
