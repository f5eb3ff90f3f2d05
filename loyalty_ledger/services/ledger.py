from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable

from loyalty_ledger.core.config import settings
from loyalty_ledger.core.errors import CustomerNotFoundError, StaleLedgerError, ValidationError
from loyalty_ledger.core.security import is_valid_mobile, normalize_mobile
from loyalty_ledger.core.tier_rules import DeadlineSettings, DiscountSettings, TierSettings, non_monotonic_tiers
from loyalty_ledger.schemas.customer import Customer, SmsLog
from loyalty_ledger.schemas.ledger import LedgerSnapshot
from loyalty_ledger.services.billing import BillResult, RedemptionRequest, compute, validate
from loyalty_ledger.services.eligibility import NO_HISTORY, Eligibility, evaluate
from loyalty_ledger.services.insights import Analytics, CustomerSummary, Overview, analytics, overview, summarize
from loyalty_ledger.services.ledger_store import LedgerStore
from loyalty_ledger.services.notifications import dispatch, receipt_message, reminder_message
from loyalty_ledger.services.sms import Notifier
from loyalty_ledger.services.tier import TierInfo, tier_info
from loyalty_ledger.services.transactions import (
    AppliedTransaction,
    CustomerLookup,
    ExistingCustomer,
    apply_transaction,
    lookup_customer,
    verify_pin,
)

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class TransactionRequest:
    mobile: str
    bill_amount: Any
    cash_given: Any
    pin: str = ""
    name: str = ""
    country_code: str = ""
    use_points: bool = False
    points_to_use: Any = 0


@dataclass(frozen=True)
class Quote:
    lookup: CustomerLookup
    tiers: TierInfo | None
    eligibility: Eligibility
    bill: BillResult


class LoyaltyLedger:
    """
    Runs one tenant's read -> compute -> apply -> persist cycle.
    The notify step is separate and never rolls back a commit.
    """

    def __init__(
        self,
        store: LedgerStore,
        notifier: Notifier | None = None,
        clock: Callable[[], datetime] = _now,
        max_retries: int | None = None,
    ) -> None:
        self.store = store
        self.notifier = notifier
        self.clock = clock
        self.max_retries = max(1, int(max_retries if max_retries is not None else settings.LEDGER_MAX_RETRIES))

    # ── Quote ─────────────────────────────────────────────────
    @staticmethod
    def _quote(snapshot: LedgerSnapshot, request: TransactionRequest, now: datetime) -> Quote:
        mobile = normalize_mobile(request.mobile)
        # The mobile is the customer key; short or empty numbers would collide.
        if not is_valid_mobile(mobile):
            raise ValidationError("Please enter a valid mobile number (at least 10 digits)")
        lookup = lookup_customer(snapshot.customers, mobile, (request.country_code or "").strip())
        customer: Customer | None = None
        tiers: TierInfo | None = None
        eligibility = NO_HISTORY
        if isinstance(lookup, ExistingCustomer):
            customer = lookup.customer
            tiers = tier_info(customer, snapshot.tier_settings)
            eligibility = evaluate(customer, snapshot.deadline_settings, snapshot.tier_settings, now)

        bill = compute(
            request.bill_amount,
            request.cash_given,
            customer,
            tiers,
            snapshot.discount_settings,
            eligibility,
            RedemptionRequest(apply=bool(request.use_points), requested_points=request.points_to_use),
        )
        return Quote(lookup=lookup, tiers=tiers, eligibility=eligibility, bill=bill)

    def quote(self, tenant_id: str, request: TransactionRequest) -> Quote:
        return self._quote(self.store.load(tenant_id), request, self.clock())

    # ── Commit ────────────────────────────────────────────────
    def process_transaction(self, tenant_id: str, request: TransactionRequest) -> AppliedTransaction:
        for attempt in range(1, self.max_retries + 1):
            with self.store.exclusive(tenant_id):
                snapshot = self.store.load(tenant_id)
                now = self.clock()
                q = self._quote(snapshot, request, now)

                verify_pin(q.lookup, request.pin)
                validate(q.bill, request.cash_given)

                applied = apply_transaction(
                    snapshot.customers,
                    q.lookup,
                    q.bill,
                    tier_settings=snapshot.tier_settings,
                    deadline_settings=snapshot.deadline_settings,
                    now=now,
                    eligibility=q.eligibility,
                    name=(request.name or "").strip(),
                    pin=request.pin,
                    business_name=snapshot.business_name,
                )
                try:
                    self.store.save_customers(tenant_id, applied.customers, snapshot.version)
                except StaleLedgerError:
                    if attempt >= self.max_retries:
                        raise
                    logger.warning(f"Ledger {tenant_id} changed during commit, retry {attempt}/{self.max_retries}")
                    continue

            logger.info(
                f"[{tenant_id}] committed {applied.customer.mobile}: final={applied.bill.final_bill} "
                f"used={applied.bill.points_used} earned={applied.bill.points_earned} "
                f"balance={applied.new_total_points} new={applied.is_new_customer}"
            )
            return applied

        raise StaleLedgerError(f"Ledger {tenant_id} could not be committed")

    # ── Notifications ─────────────────────────────────────────
    def send_receipt(
        self,
        tenant_id: str,
        mobile: str,
        customer_name: str,
        business_name: str,
        new_total_points: float,
        deadline_days: int | None,
    ) -> SmsLog:
        message = receipt_message(customer_name, business_name, new_total_points, deadline_days)
        log = dispatch(self.notifier, mobile, customer_name, message, self.clock())
        self.store.append_sms_log(tenant_id, log)
        return log

    def send_transaction_receipt(self, tenant_id: str, applied: AppliedTransaction) -> SmsLog:
        return self.send_receipt(
            tenant_id,
            applied.customer.mobile,
            applied.customer_name,
            applied.business_name,
            applied.new_total_points,
            applied.deadline_days,
        )

    def send_balance_reminder(self, tenant_id: str, mobile: str) -> SmsLog:
        snapshot = self.store.load(tenant_id)
        now = self.clock()
        customer = self._require(snapshot, mobile)
        elig = evaluate(customer, snapshot.deadline_settings, snapshot.tier_settings, now)
        message = reminder_message(customer, elig)
        log = dispatch(self.notifier, customer.mobile, customer.name, message, now)
        self.store.append_sms_log(tenant_id, log)
        return log

    def list_sms_logs(self, tenant_id: str) -> list[SmsLog]:
        return self.store.list_sms_logs(tenant_id)

    # ── Settings ──────────────────────────────────────────────
    def update_settings(
        self,
        tenant_id: str,
        tier_settings: TierSettings | None = None,
        discount_settings: DiscountSettings | None = None,
        deadline_settings: DeadlineSettings | None = None,
    ) -> LedgerSnapshot:
        if tier_settings is not None:
            for problem in non_monotonic_tiers(tier_settings):
                logger.warning(f"[{tenant_id}] tier thresholds not increasing: {problem}")
        with self.store.exclusive(tenant_id):
            return self.store.save_settings(
                tenant_id,
                tier_settings=tier_settings,
                discount_settings=discount_settings,
                deadline_settings=deadline_settings,
            )

    def snapshot(self, tenant_id: str) -> LedgerSnapshot:
        return self.store.load(tenant_id)

    # ── Customers ─────────────────────────────────────────────
    @staticmethod
    def _require(snapshot: LedgerSnapshot, mobile: str) -> Customer:
        m = normalize_mobile(mobile)
        customer = snapshot.find(m) or snapshot.find(mobile)
        if customer is None:
            raise CustomerNotFoundError(f"Customer {mobile} not found")
        return customer

    def list_customers(self, tenant_id: str) -> list[CustomerSummary]:
        snapshot = self.store.load(tenant_id)
        now = self.clock()
        return [summarize(c, snapshot, now) for c in snapshot.customers]

    def customer_summary(self, tenant_id: str, mobile: str) -> CustomerSummary:
        snapshot = self.store.load(tenant_id)
        return summarize(self._require(snapshot, mobile), snapshot, self.clock())

    def overview(self, tenant_id: str) -> Overview:
        return overview(self.store.load(tenant_id).customers)

    def analytics(self, tenant_id: str) -> Analytics:
        snapshot = self.store.load(tenant_id)
        return analytics(snapshot.customers, snapshot.tier_settings)
