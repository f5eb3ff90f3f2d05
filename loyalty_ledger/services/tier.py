from __future__ import annotations

from dataclasses import dataclass

from loyalty_ledger.core.tier_rules import TIERS_DESC, Tier, TierSettings
from loyalty_ledger.schemas.customer import Customer


@dataclass(frozen=True)
class TierInfo:
    spend_tier: Tier
    points_tier: Tier
    effective_tier: Tier


def classify_by_spend(customer: Customer, settings: TierSettings) -> Tier:
    for tier in TIERS_DESC:
        if customer.total_spent >= settings.for_tier(tier).min_spend:
            return tier
    return Tier.BRONZE


def classify_by_points(customer: Customer, settings: TierSettings) -> Tier:
    for tier in TIERS_DESC:
        if customer.points >= settings.for_tier(tier).min_points:
            return tier
    return Tier.BRONZE


def classify_effective(customer: Customer, settings: TierSettings) -> Tier:
    """Highest tier reached by either spend or points."""
    for tier in TIERS_DESC:
        t = settings.for_tier(tier)
        if customer.total_spent >= t.min_spend or customer.points >= t.min_points:
            return tier
    return Tier.BRONZE


def tier_info(customer: Customer, settings: TierSettings) -> TierInfo:
    return TierInfo(
        spend_tier=classify_by_spend(customer, settings),
        points_tier=classify_by_points(customer, settings),
        effective_tier=classify_effective(customer, settings),
    )
