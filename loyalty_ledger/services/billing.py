from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any

from loyalty_ledger.core.errors import InsufficientPaymentError, ValidationError
from loyalty_ledger.core.tier_rules import DiscountSettings
from loyalty_ledger.schemas.customer import Customer
from loyalty_ledger.services.eligibility import Eligibility
from loyalty_ledger.services.tier import TierInfo

logger = logging.getLogger(__name__)


def to_amount(value: Any) -> float:
    """Numeric input or 0 for anything missing, non-numeric or non-finite."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        n = float(value)
    except (TypeError, ValueError):
        return 0.0
    return n if math.isfinite(n) else 0.0


@dataclass(frozen=True)
class RedemptionRequest:
    """Cashier's "redeem points & get tier discount" toggle and the points asked for."""
    apply: bool = False
    requested_points: Any = 0


@dataclass(frozen=True)
class BillResult:
    subtotal: float
    discount_percentage: float
    discount_amount: float
    final_bill: float
    points_used: float
    cash_payable: float
    points_earned: int
    discount_granted: bool = False


def compute(
    subtotal: Any,
    cash_given: Any,
    customer: Customer | None,
    tier_info: TierInfo | None,
    discount_settings: DiscountSettings,
    eligibility: Eligibility,
    redemption: RedemptionRequest,
) -> BillResult:
    """
    Order of operations matters:
      1) tier discount on the subtotal (only when redeeming, eligible, known customer)
      2) final bill
      3) points redeemed = min(balance, final bill, requested)
      4) cash payable
      5) points earned = whole units of cash tendered above cash payable
    """
    subtotal = to_amount(subtotal)
    cash = to_amount(cash_given)

    discount_percentage = 0.0
    discount_amount = 0.0
    granted = bool(
        redemption.apply
        and eligibility.eligible
        and customer is not None
        and tier_info is not None
        and subtotal > 0
    )
    if granted:
        discount_percentage = float(discount_settings.for_tier(tier_info.effective_tier) or 0)
        discount_amount = subtotal * discount_percentage / 100

    final_bill = subtotal - discount_amount

    points_used = 0.0
    if redemption.apply and customer is not None and customer.points > 0:
        requested = max(0.0, to_amount(redemption.requested_points))
        points_used = min(customer.points, final_bill, requested)

    cash_payable = final_bill - points_used
    points_earned = max(0, math.floor(cash - cash_payable))

    return BillResult(
        subtotal=subtotal,
        discount_percentage=discount_percentage,
        discount_amount=discount_amount,
        final_bill=final_bill,
        points_used=points_used,
        cash_payable=cash_payable,
        points_earned=points_earned,
        discount_granted=granted,
    )


def validate(bill: BillResult, cash_given: Any) -> None:
    """Must pass before a bill is applied; nothing is mutated on failure."""
    if bill.subtotal <= 0:
        raise ValidationError("Please enter a valid bill amount")
    cash = to_amount(cash_given)
    if cash < bill.cash_payable:
        logger.info(f"Rejected bill: cash {cash} < payable {bill.cash_payable}")
        raise InsufficientPaymentError(
            f"Cash given ({cash:g}) cannot be less than the amount payable ({bill.cash_payable:g})"
        )
