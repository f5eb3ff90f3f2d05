from __future__ import annotations

import math
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, Sequence

from loyalty_ledger.core.tier_rules import Tier, TierSettings
from loyalty_ledger.schemas.customer import Customer
from loyalty_ledger.schemas.ledger import LedgerSnapshot
from loyalty_ledger.services.eligibility import Eligibility, evaluate, remaining_days
from loyalty_ledger.services.tier import TierInfo, classify_effective, tier_info

TOP_CUSTOMERS = 5
REVENUE_DAYS = 30
@dataclass(frozen=True)
class Overview:
    total_customers: int
    total_revenue: float
    total_points: float


@dataclass(frozen=True)
class CustomerSummary:
    customer: Customer
    tiers: TierInfo
    eligibility: Eligibility
    remaining_days: int | None


def overview(customers: Sequence[Customer]) -> Overview:
    return Overview(
        total_customers=len(customers),
        total_revenue=sum(c.total_spent or 0 for c in customers),
        total_points=sum(c.points or 0 for c in customers),
    )


def summarize(customer: Customer, snapshot: LedgerSnapshot, now: datetime) -> CustomerSummary:
    elig = evaluate(customer, snapshot.deadline_settings, snapshot.tier_settings, now)
    return CustomerSummary(
        customer=customer,
        tiers=tier_info(customer, snapshot.tier_settings),
        eligibility=elig,
        remaining_days=remaining_days(elig),
    )


# ── Analytics ─────────────────────────────────────────────────
@dataclass(frozen=True)
class DailyRevenue:
    day: date
    revenue: float


@dataclass(frozen=True)
class Analytics:
    average_order_value: int
    total_transactions: int
    total_points: float
    tier_counts: Dict[Tier, int]
    top_customers: tuple[Customer, ...]
    daily_revenue: tuple[DailyRevenue, ...]


def _round_half_up(x: float) -> int:
    return math.floor(x + 0.5)


def daily_revenue(customers: Sequence[Customer], days: int = REVENUE_DAYS) -> tuple[DailyRevenue, ...]:
    """Final-bill totals per UTC calendar day; only the latest `days` days that had sales."""
    totals: Dict[date, float] = defaultdict(float)
    for c in customers:
        for entry in c.history:
            totals[entry.timestamp.date()] += entry.final_bill
    ordered = [DailyRevenue(day=d, revenue=totals[d]) for d in sorted(totals)]
    return tuple(ordered[-days:]) if days > 0 else ()


def analytics(
    customers: Sequence[Customer],
    tier_settings: TierSettings,
    top_n: int = TOP_CUSTOMERS,
    days: int = REVENUE_DAYS,
) -> Analytics:
    total_revenue = sum(c.total_spent or 0 for c in customers)
    total_transactions = sum(len(c.history) for c in customers)

    tier_counts: Dict[Tier, int] = {tier: 0 for tier in Tier}
    for c in customers:
        tier_counts[classify_effective(c, tier_settings)] += 1

    # sorted() is stable: ties keep ledger order
    top = sorted(customers, key=lambda c: c.total_spent or 0, reverse=True)[:top_n]

    return Analytics(
        average_order_value=_round_half_up(total_revenue / total_transactions) if total_transactions else 0,
        total_transactions=total_transactions,
        total_points=sum(c.points or 0 for c in customers),
        tier_counts=tier_counts,
        top_customers=tuple(top),
        daily_revenue=daily_revenue(customers, days),
    )
