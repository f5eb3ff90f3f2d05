from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from loyalty_ledger.core.tier_rules import Tier


class TransactionCreate(BaseModel):
    """
    Transaction form. Unknown mobiles create a customer with `name` and a
    freshly chosen 4-digit `pin`; known ones must present their stored PIN.
    """
    model_config = ConfigDict(extra="forbid")

    mobile: str = Field(..., min_length=5, max_length=32)
    country_code: str = Field(default="", max_length=6)
    pin: str = Field(default="", max_length=4)
    name: Optional[str] = Field(default=None, max_length=120)

    bill_amount: float = Field(..., description="Subtotal before discount")
    cash_given: float = Field(default=0)

    use_points: bool = Field(default=False, description="Redeem points & get tier discount")
    points_to_use: float = Field(default=0, ge=0)

    notify: bool = Field(default=False, description="Send the receipt SMS after commit")


class TierInfoOut(BaseModel):
    spend_tier: Tier
    points_tier: Tier
    effective_tier: Tier


class EligibilityOut(BaseModel):
    eligible: bool
    days_since_last_transaction: Optional[int] = None
    deadline_days: Optional[int] = None
    points_tier: Optional[Tier] = None


class BillOut(BaseModel):
    subtotal: float
    discount_percentage: float
    discount_amount: float
    final_bill: float
    points_used: float
    cash_payable: float
    points_earned: int


class QuoteOut(BaseModel):
    mobile: str
    is_new_customer: bool
    tiers: Optional[TierInfoOut] = None
    eligibility: EligibilityOut
    bill: BillOut


class NotificationOut(BaseModel):
    sent: bool
    error: Optional[str] = None
    retryable: bool = False


class ReceiptOut(BaseModel):
    """Everything needed to (re)send the post-transaction SMS."""
    mobile: str
    customer_name: str
    business_name: str
    final_bill: float
    points_used: float
    points_earned: int
    new_total_points: float
    deadline_days: Optional[int] = None


class TransactionOut(BaseModel):
    receipt: ReceiptOut
    bill: BillOut
    is_new_customer: bool
    committed_at: datetime
    notification: Optional[NotificationOut] = None


class SmsLogOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    timestamp: datetime
    recipient_mobile: str
    recipient_name: str
    message: str
