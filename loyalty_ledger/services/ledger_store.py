from __future__ import annotations

import json
import logging
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import ContextManager, Iterator, Protocol, Sequence

from pydantic import TypeAdapter
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from loyalty_ledger.core.config import settings
from loyalty_ledger.core.errors import StaleLedgerError
from loyalty_ledger.core.tier_rules import DeadlineSettings, DiscountSettings, TierSettings
from loyalty_ledger.models.ledger import SmsLogRow, TenantLedger
from loyalty_ledger.schemas.customer import Customer, SmsLog
from loyalty_ledger.schemas.ledger import LedgerSnapshot

logger = logging.getLogger(__name__)

_customers_adapter = TypeAdapter(list[Customer])


class LedgerStore(Protocol):
    """Loads and saves one tenant's customer collection, settings and SMS log."""

    def load(self, tenant_id: str) -> LedgerSnapshot: ...

    def save_customers(self, tenant_id: str, customers: Sequence[Customer], expected_version: int) -> int: ...

    def save_settings(
        self,
        tenant_id: str,
        tier_settings: TierSettings | None = None,
        discount_settings: DiscountSettings | None = None,
        deadline_settings: DeadlineSettings | None = None,
    ) -> LedgerSnapshot: ...

    def append_sms_log(self, tenant_id: str, entry: SmsLog) -> None: ...

    def list_sms_logs(self, tenant_id: str) -> list[SmsLog]: ...

    def exclusive(self, tenant_id: str) -> ContextManager[None]: ...


class _TenantLocks:
    """Per-tenant mutual exclusion for read-compute-apply-persist cycles."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    @contextmanager
    def exclusive(self, tenant_id: str) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(tenant_id, threading.Lock())
        with lock:
            yield


def dump_customers(customers: Sequence[Customer]) -> str:
    return json.dumps(
        [c.model_dump(mode="json", by_alias=True) for c in customers],
        ensure_ascii=False,
    )


def load_customers(raw: str | None) -> tuple[Customer, ...]:
    if not raw:
        return ()
    return tuple(_customers_adapter.validate_json(raw))


# ── In-memory ─────────────────────────────────────────────────
class InMemoryLedgerStore(_TenantLocks):
    def __init__(self, default_business_name: str | None = None) -> None:
        super().__init__()
        self.default_business_name = default_business_name or settings.DEFAULT_BUSINESS_NAME
        self._ledgers: dict[str, LedgerSnapshot] = {}
        self._sms: dict[str, list[SmsLog]] = {}
        self._data_lock = threading.Lock()

    def _get(self, tenant_id: str) -> LedgerSnapshot:
        snap = self._ledgers.get(tenant_id)
        if snap is None:
            snap = LedgerSnapshot(business_name=self.default_business_name)
            self._ledgers[tenant_id] = snap
        return snap

    def register(self, tenant_id: str, business_name: str, customers: Sequence[Customer] = ()) -> LedgerSnapshot:
        with self._data_lock:
            version = self._get(tenant_id).version + 1
            snap = LedgerSnapshot(business_name=business_name, customers=tuple(customers), version=version)
            self._ledgers[tenant_id] = snap
        return snap

    def load(self, tenant_id: str) -> LedgerSnapshot:
        with self._data_lock:
            return self._get(tenant_id)

    def save_customers(self, tenant_id: str, customers: Sequence[Customer], expected_version: int) -> int:
        with self._data_lock:
            current = self._get(tenant_id)
            if current.version != expected_version:
                raise StaleLedgerError(
                    f"Ledger {tenant_id} is at version {current.version}, expected {expected_version}"
                )
            new_version = current.version + 1
            self._ledgers[tenant_id] = current.model_copy(
                update={"customers": tuple(customers), "version": new_version}
            )
            return new_version

    def save_settings(
        self,
        tenant_id: str,
        tier_settings: TierSettings | None = None,
        discount_settings: DiscountSettings | None = None,
        deadline_settings: DeadlineSettings | None = None,
    ) -> LedgerSnapshot:
        with self._data_lock:
            current = self._get(tenant_id)
            changes: dict = {"version": current.version + 1}
            if tier_settings is not None:
                changes["tier_settings"] = tier_settings
            if discount_settings is not None:
                changes["discount_settings"] = discount_settings
            if deadline_settings is not None:
                changes["deadline_settings"] = deadline_settings
            snap = current.model_copy(update=changes)
            self._ledgers[tenant_id] = snap
        return snap

    def append_sms_log(self, tenant_id: str, entry: SmsLog) -> None:
        with self._data_lock:
            self._sms.setdefault(tenant_id, []).insert(0, entry)

    def list_sms_logs(self, tenant_id: str) -> list[SmsLog]:
        with self._data_lock:
            return list(self._sms.get(tenant_id, []))


# ── SQLAlchemy ────────────────────────────────────────────────
class SqlLedgerStore(_TenantLocks):
    """
    Persists each tenant as one TenantLedger row. Saves are compare-and-swap
    on `version`, so writers in other processes surface as StaleLedgerError.
    """

    def __init__(self, session_factory: sessionmaker | None = None, default_business_name: str | None = None) -> None:
        super().__init__()
        if session_factory is None:
            from loyalty_ledger.core.database import SessionLocal
            session_factory = SessionLocal
        self._session_factory = session_factory
        self.default_business_name = default_business_name or settings.DEFAULT_BUSINESS_NAME

    def _row(self, db: Session, tenant_id: str) -> TenantLedger:
        row = db.scalar(select(TenantLedger).where(TenantLedger.tenant_id == tenant_id))
        if row:
            return row
        row = TenantLedger(
            tenant_id=tenant_id,
            business_name=self.default_business_name,
            customers_json="[]",
            version=0,
        )
        db.add(row)
        try:
            db.commit()
        except IntegrityError:
            # Another request created this tenant's row first.
            db.rollback()
            logger.info(f"Ledger row for {tenant_id} created concurrently, reloading")
            return db.scalars(select(TenantLedger).where(TenantLedger.tenant_id == tenant_id)).one()
        db.refresh(row)
        return row

    @staticmethod
    def _snapshot(row: TenantLedger) -> LedgerSnapshot:
        return LedgerSnapshot(
            business_name=row.business_name,
            customers=load_customers(row.customers_json),
            tier_settings=(
                TierSettings.model_validate_json(row.tier_settings_json)
                if row.tier_settings_json else TierSettings()
            ),
            discount_settings=(
                DiscountSettings.model_validate_json(row.discount_settings_json)
                if row.discount_settings_json else DiscountSettings()
            ),
            deadline_settings=(
                DeadlineSettings.model_validate_json(row.deadline_settings_json)
                if row.deadline_settings_json else DeadlineSettings()
            ),
            version=int(row.version or 0),
        )

    def register(self, tenant_id: str, business_name: str, customers: Sequence[Customer] = ()) -> LedgerSnapshot:
        with self._session_factory() as db:
            row = self._row(db, tenant_id)
            row.business_name = business_name
            row.customers_json = dump_customers(customers)
            row.version = int(row.version or 0) + 1
            row.updated_at = datetime.utcnow()
            db.commit()
            db.refresh(row)
            return self._snapshot(row)

    def load(self, tenant_id: str) -> LedgerSnapshot:
        with self._session_factory() as db:
            return self._snapshot(self._row(db, tenant_id))

    def save_customers(self, tenant_id: str, customers: Sequence[Customer], expected_version: int) -> int:
        with self._session_factory() as db:
            result = db.execute(
                update(TenantLedger)
                .where(TenantLedger.tenant_id == tenant_id, TenantLedger.version == expected_version)
                .values(
                    customers_json=dump_customers(customers),
                    version=TenantLedger.version + 1,
                    updated_at=datetime.utcnow(),
                )
            )
            if result.rowcount != 1:
                db.rollback()
                logger.warning(f"Stale save for ledger {tenant_id} at version {expected_version}")
                raise StaleLedgerError(f"Ledger {tenant_id} changed since version {expected_version}")
            db.commit()
        return expected_version + 1

    def save_settings(
        self,
        tenant_id: str,
        tier_settings: TierSettings | None = None,
        discount_settings: DiscountSettings | None = None,
        deadline_settings: DeadlineSettings | None = None,
    ) -> LedgerSnapshot:
        with self._session_factory() as db:
            row = self._row(db, tenant_id)
            if tier_settings is not None:
                row.tier_settings_json = tier_settings.model_dump_json(by_alias=True)
            if discount_settings is not None:
                row.discount_settings_json = discount_settings.model_dump_json(by_alias=True)
            if deadline_settings is not None:
                row.deadline_settings_json = deadline_settings.model_dump_json(by_alias=True)
            row.version = int(row.version or 0) + 1
            row.updated_at = datetime.utcnow()
            db.commit()
            db.refresh(row)
            return self._snapshot(row)

    def append_sms_log(self, tenant_id: str, entry: SmsLog) -> None:
        with self._session_factory() as db:
            row = self._row(db, tenant_id)
            db.add(SmsLogRow(
                ledger_id=row.id,
                # stored naive, read back as UTC
                sent_at=entry.timestamp.astimezone(timezone.utc).replace(tzinfo=None),
                recipient_mobile=entry.recipient_mobile,
                recipient_name=entry.recipient_name,
                message=entry.message,
            ))
            db.commit()

    def list_sms_logs(self, tenant_id: str) -> list[SmsLog]:
        with self._session_factory() as db:
            row = self._row(db, tenant_id)
            rows = db.scalars(
                select(SmsLogRow).where(SmsLogRow.ledger_id == row.id).order_by(SmsLogRow.id.desc())
            ).all()
            return [
                SmsLog(
                    timestamp=r.sent_at,
                    recipient_mobile=r.recipient_mobile,
                    recipient_name=r.recipient_name,
                    message=r.message,
                )
                for r in rows
            ]


def build_store(backend: str | None = None) -> LedgerStore:
    backend = (backend or settings.LEDGER_BACKEND or "sql").strip().lower()
    if backend == "memory":
        return InMemoryLedgerStore()
    if backend == "sql":
        return SqlLedgerStore()
    raise ValueError(f"Unknown LEDGER_BACKEND: {backend}")
