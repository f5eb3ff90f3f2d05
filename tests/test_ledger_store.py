"""Tests for the in-memory and SQLAlchemy ledger stores."""

from datetime import timedelta

import pytest
from sqlalchemy import select

from loyalty_ledger.core.errors import StaleLedgerError
from loyalty_ledger.core.tier_rules import DiscountSettings, TierSettings, TierThreshold
from loyalty_ledger.models.ledger import TenantLedger
from loyalty_ledger.schemas.customer import Customer, SmsLog
from loyalty_ledger.services.ledger_store import (
    InMemoryLedgerStore,
    SqlLedgerStore,
    build_store,
    dump_customers,
    load_customers,
)


@pytest.fixture(params=["memory", "sql"])
def any_store(request, session_factory):
    if request.param == "memory":
        return InMemoryLedgerStore(default_business_name="Fallback Shop")
    return SqlLedgerStore(session_factory=session_factory, default_business_name="Fallback Shop")


class TestSerialization:
    """Tests for the customers JSON round-trip."""

    def test_camel_case_keys(self, regular_customer) -> None:
        raw = dump_customers([regular_customer])
        assert '"totalSpent"' in raw
        assert '"date"' in raw
        assert load_customers(raw) == (regular_customer,)

    def test_empty(self) -> None:
        assert load_customers(None) == ()
        assert load_customers("") == ()


class TestLedgerStore:
    """Behaviour shared by every store."""

    def test_unknown_tenant_gets_empty_ledger(self, any_store) -> None:
        snap = any_store.load("nobody")
        assert snap.business_name == "Fallback Shop"
        assert snap.customers == ()
        assert snap.tier_settings == TierSettings()

    def test_register_and_load(self, any_store, regular_customer) -> None:
        any_store.register("t1", "Chai Corner", [regular_customer])
        snap = any_store.load("t1")
        assert snap.business_name == "Chai Corner"
        assert snap.customers == (regular_customer,)

    def test_save_bumps_version(self, any_store, regular_customer) -> None:
        snap = any_store.register("t1", "Chai Corner", [])
        new_version = any_store.save_customers("t1", [regular_customer], snap.version)
        assert new_version == snap.version + 1
        reloaded = any_store.load("t1")
        assert reloaded.version == new_version
        assert reloaded.customers == (regular_customer,)

    def test_stale_save_rejected(self, any_store, regular_customer, lapsed_customer) -> None:
        snap = any_store.register("t1", "Chai Corner", [regular_customer])
        any_store.save_customers("t1", [regular_customer, lapsed_customer], snap.version)
        with pytest.raises(StaleLedgerError):
            any_store.save_customers("t1", [], snap.version)
        assert len(any_store.load("t1").customers) == 2

    def test_tenants_are_isolated(self, any_store, regular_customer) -> None:
        any_store.register("t1", "One", [regular_customer])
        any_store.register("t2", "Two", [])
        assert any_store.load("t2").customers == ()
        assert any_store.load("t1").find(regular_customer.mobile) == regular_customer

    def test_save_settings_partial(self, any_store) -> None:
        any_store.register("t1", "Chai Corner", [])
        tiers = TierSettings(silver=TierThreshold(min_spend=3000, min_points=150))
        snap = any_store.save_settings("t1", tier_settings=tiers)
        assert snap.tier_settings.silver.min_spend == 3000
        assert snap.discount_settings == DiscountSettings()
        assert any_store.load("t1").tier_settings == tiers

    def test_settings_change_invalidates_pending_save(self, any_store) -> None:
        snap = any_store.register("t1", "Chai Corner", [])
        any_store.save_settings("t1", discount_settings=DiscountSettings(gold=20))
        with pytest.raises(StaleLedgerError):
            any_store.save_customers("t1", [], snap.version)

    def test_sms_logs_newest_first(self, any_store, now) -> None:
        any_store.register("t1", "Chai Corner", [])
        first = SmsLog(timestamp=now - timedelta(minutes=5), recipient_mobile="1", recipient_name="A", message="one")
        second = SmsLog(timestamp=now, recipient_mobile="2", recipient_name="B", message="two")
        any_store.append_sms_log("t1", first)
        any_store.append_sms_log("t1", second)
        logs = any_store.list_sms_logs("t1")
        assert [log.message for log in logs] == ["two", "one"]
        assert logs[0].timestamp == now
        assert any_store.list_sms_logs("t2") == []

    def test_exclusive_is_per_tenant(self, any_store) -> None:
        with any_store.exclusive("t1"):
            with any_store.exclusive("t2"):
                pass


class TestSqlLedgerStore:
    """SQL-specific behaviour."""

    def test_row_created_by_another_request_is_reused(self, sql_store, session_factory) -> None:
        sql_store.register("t1", "Chai Corner", [])
        with session_factory() as db:
            # The lookup misses, as if the other insert had not committed yet.
            db.scalar = lambda *args, **kwargs: None
            row = sql_store._row(db, "t1")
            assert row.business_name == "Chai Corner"
        with session_factory() as db:
            assert len(db.scalars(select(TenantLedger)).all()) == 1
        assert sql_store.load("t1").business_name == "Chai Corner"


class TestBuildStore:
    """Tests for build_store()."""

    def test_memory(self) -> None:
        assert isinstance(build_store("memory"), InMemoryLedgerStore)

    def test_unknown(self) -> None:
        with pytest.raises(ValueError):
            build_store("redis")
