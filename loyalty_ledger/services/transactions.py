from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Sequence, Union

from loyalty_ledger.core.errors import CustomerNotFoundError, InvalidPinError, ValidationError
from loyalty_ledger.core.security import is_valid_pin, pin_matches
from loyalty_ledger.core.tier_rules import DeadlineSettings, Tier, TierSettings
from loyalty_ledger.schemas.customer import Customer, TransactionHistoryEntry
from loyalty_ledger.services.billing import BillResult
from loyalty_ledger.services.eligibility import NO_HISTORY, Eligibility
from loyalty_ledger.services.tier import classify_by_points

logger = logging.getLogger(__name__)

GUEST_NAME = "Guest"


# ── Lookup ────────────────────────────────────────────────────
@dataclass(frozen=True)
class NewCustomer:
    mobile: str


@dataclass(frozen=True)
class ExistingCustomer:
    customer: Customer

    @property
    def mobile(self) -> str:
        return self.customer.mobile


CustomerLookup = Union[NewCustomer, ExistingCustomer]


def lookup_customer(customers: Sequence[Customer], mobile: str, country_code: str = "") -> CustomerLookup:
    """Stored numbers may or may not carry the country code."""
    full = f"{country_code}{mobile}"
    for c in customers:
        if c.mobile == full or c.mobile == mobile:
            return ExistingCustomer(c)
    return NewCustomer(full)


def verify_pin(lookup: CustomerLookup, pin: str) -> None:
    if isinstance(lookup, ExistingCustomer):
        if not pin_matches(pin, lookup.customer.pin):
            raise InvalidPinError("Incorrect PIN code.")
        return
    if not is_valid_pin(pin):
        raise ValidationError("PIN must be 4 digits.")


# ── Apply ─────────────────────────────────────────────────────
@dataclass(frozen=True)
class AppliedTransaction:
    customers: tuple[Customer, ...]
    customer: Customer
    history_entry: TransactionHistoryEntry
    bill: BillResult
    is_new_customer: bool
    new_total_points: float
    deadline_days: int | None
    customer_name: str
    business_name: str


def history_entry_for(bill: BillResult, now: datetime) -> TransactionHistoryEntry:
    return TransactionHistoryEntry(
        timestamp=now,
        bill=bill.subtotal,
        discount_percentage=bill.discount_percentage if bill.discount_granted else None,
        final_bill=bill.final_bill,
        # Recorded even when the discount was refused, so history matches the balance.
        points_used=bill.points_used or None,
        points_earned=bill.points_earned,
    )


def apply_transaction(
    customers: Sequence[Customer],
    lookup: CustomerLookup,
    bill: BillResult,
    *,
    tier_settings: TierSettings,
    deadline_settings: DeadlineSettings,
    now: datetime,
    eligibility: Eligibility = NO_HISTORY,
    name: str = "",
    pin: str = "",
    business_name: str = "",
) -> AppliedTransaction:
    """
    Commits a computed bill. Returns a new collection; the input collection
    and customer objects are left untouched, so either the whole update is
    visible (points, spend, history) or none of it.
    """
    entry = history_entry_for(bill, now)

    if isinstance(lookup, NewCustomer):
        customer = Customer(
            mobile=lookup.mobile,
            name=name or GUEST_NAME,
            pin=pin,
            points=bill.points_earned,
            total_spent=bill.final_bill,
            history=(entry,),
        )
        updated = tuple(customers) + (customer,)
        # A new customer's points tier is always Bronze.
        deadline_days: int | None = int(deadline_settings.for_tier(Tier.BRONZE))
        is_new = True
    else:
        key = lookup.mobile
        idx = next((i for i, c in enumerate(customers) if c.mobile == key), None)
        if idx is None:
            raise CustomerNotFoundError(f"Customer {key} not found")

        current = customers[idx]
        customer = current.model_copy(
            update={
                "points": current.points - bill.points_used + bill.points_earned,
                "total_spent": current.total_spent + bill.final_bill,
                "history": tuple(current.history) + (entry,),
            }
        )
        updated = tuple(customers[:idx]) + (customer,) + tuple(customers[idx + 1:])
        is_new = False

        if eligibility.deadline_days is not None and eligibility.days_since_last_transaction is not None:
            # Remaining window before this transaction, not a fresh one.
            deadline_days = max(0, eligibility.deadline_days - eligibility.days_since_last_transaction)
        else:
            deadline_days = int(deadline_settings.for_tier(classify_by_points(customer, tier_settings)))

    logger.debug(
        f"Applied bill to {customer.mobile}: final={bill.final_bill} used={bill.points_used} "
        f"earned={bill.points_earned} new_balance={customer.points}"
    )

    return AppliedTransaction(
        customers=updated,
        customer=customer,
        history_entry=entry,
        bill=bill,
        is_new_customer=is_new,
        new_total_points=customer.points,
        deadline_days=deadline_days,
        customer_name=customer.name or GUEST_NAME,
        business_name=business_name,
    )
