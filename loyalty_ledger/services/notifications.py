from __future__ import annotations

import logging
from datetime import datetime

from loyalty_ledger.core.errors import NotificationFailure
from loyalty_ledger.schemas.customer import Customer, SmsLog
from loyalty_ledger.services.eligibility import Eligibility, remaining_days
from loyalty_ledger.services.sms import Notifier

logger = logging.getLogger(__name__)

RECEIPT_TEMPLATE = (
    "Hi {name}, thanks for visiting {business}! Your new balance is {points} points. "
    "Your points tier status is valid for the next {days} days. "
    "We look forward to seeing you again!"
)

REMINDER_TEMPLATE = (
    "Hi {name}, you have {points} points. "
    "Your current tier benefits are valid for {days} more days. "
    "We look forward to seeing you again!"
)


def format_points(points: float) -> str:
    """150.0 -> "150", 12.5 -> "12.5"; at most two decimals."""
    p = round(float(points), 2)
    return str(int(p)) if p.is_integer() else f"{p:.2f}".rstrip("0")


def receipt_message(name: str, business: str, points: float, days: int | None) -> str:
    return RECEIPT_TEMPLATE.format(
        name=name,
        business=business,
        points=format_points(points),
        days=days,
    )


def reminder_message(customer: Customer, eligibility: Eligibility) -> str:
    days = remaining_days(eligibility)
    return REMINDER_TEMPLATE.format(
        name=customer.name,
        points=format_points(customer.points),
        days=days if days is not None else "N/A",
    )


def dispatch(notifier: Notifier | None, mobile: str, name: str, message: str, now: datetime) -> SmsLog:
    """
    Sends one message. Never touches ledger state: on failure the caller
    only gets NotificationFailure to report as retryable.
    """
    if notifier is None:
        raise NotificationFailure("No notifier configured")

    try:
        result = notifier.send(mobile, message)
    except Exception as e:
        logger.error(f"Notifier raised for {mobile}: {e}")
        raise NotificationFailure(str(e)) from e

    if not result.success:
        logger.warning(f"SMS to {mobile} failed: {result.error_message}")
        raise NotificationFailure(result.error_message or "Failed to send SMS.")

    return SmsLog(timestamp=now, recipient_mobile=mobile, recipient_name=name, message=message)
