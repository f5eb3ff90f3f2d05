from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime

from loyalty_ledger.core.tier_rules import DeadlineSettings, Tier, TierSettings
from loyalty_ledger.schemas.customer import Customer, as_utc
from loyalty_ledger.services.tier import classify_by_points

SECONDS_PER_DAY = 24 * 60 * 60


@dataclass(frozen=True)
class Eligibility:
    """
    Whether the tier discount is still active for a customer.
    A customer with no history is always eligible and has no deadline yet.
    """
    eligible: bool = True
    days_since_last_transaction: int | None = None
    deadline_days: int | None = None
    points_tier: Tier | None = None


NO_HISTORY = Eligibility()


def days_between(earlier: datetime, later: datetime) -> int:
    seconds = (as_utc(later) - as_utc(earlier)).total_seconds()
    return math.floor(seconds / SECONDS_PER_DAY)


def evaluate(
    customer: Customer,
    deadline_settings: DeadlineSettings,
    tier_settings: TierSettings,
    now: datetime,
) -> Eligibility:
    last = customer.last_transaction()
    if last is None:
        return NO_HISTORY

    days = days_between(last.timestamp, now)
    # Deadlines follow the points tier, not spend or effective tier.
    points_tier = classify_by_points(customer, tier_settings)
    deadline = int(deadline_settings.for_tier(points_tier))

    return Eligibility(
        eligible=days <= deadline,
        days_since_last_transaction=days,
        deadline_days=deadline,
        points_tier=points_tier,
    )


def remaining_days(eligibility: Eligibility) -> int | None:
    if eligibility.deadline_days is not None and eligibility.days_since_last_transaction is not None:
        return max(0, eligibility.deadline_days - eligibility.days_since_last_transaction)
    return eligibility.deadline_days
