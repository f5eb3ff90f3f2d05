from __future__ import annotations

import re
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class Tier(str, Enum):
    """Loyalty tiers, lowest first. Comparisons follow this order."""

    BRONZE = "Bronze"
    SILVER = "Silver"
    GOLD = "Gold"
    PLATINUM = "Platinum"

    @property
    def rank(self) -> int:
        return list(type(self)).index(self)

    @property
    def key(self) -> str:
        return self.value.lower()

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Tier):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Tier):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Tier):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Tier):
            return NotImplemented
        return self.rank >= other.rank


# Highest first: classification scans in this order and the first match wins.
TIERS_DESC: tuple[Tier, ...] = (Tier.PLATINUM, Tier.GOLD, Tier.SILVER, Tier.BRONZE)

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def coerce_int(value: Any) -> Any:
    """Form-style integer parsing: leading digits win, anything else is 0."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return int(value)
    m = _LEADING_INT.match(str(value))
    return int(m.group(1)) if m else 0


class _RulesModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class _PerTier(_RulesModel):
    def for_tier(self, tier: Tier) -> Any:
        return getattr(self, tier.key)


class TierThreshold(_RulesModel):
    min_spend: int = Field(default=0, ge=0)
    min_points: int = Field(default=0, ge=0)

    @field_validator("min_spend", "min_points", mode="before")
    @classmethod
    def parse_int(cls, v):
        return coerce_int(v)


class TierSettings(_PerTier):
    bronze: TierThreshold = TierThreshold(min_spend=0, min_points=0)
    silver: TierThreshold = TierThreshold(min_spend=2000, min_points=100)
    gold: TierThreshold = TierThreshold(min_spend=10000, min_points=500)
    platinum: TierThreshold = TierThreshold(min_spend=50000, min_points=2500)


class DiscountSettings(_PerTier):
    """Discount percentage per tier."""

    bronze: int = Field(default=0, ge=0, le=100)
    silver: int = Field(default=5, ge=0, le=100)
    gold: int = Field(default=10, ge=0, le=100)
    platinum: int = Field(default=15, ge=0, le=100)

    @field_validator("bronze", "silver", "gold", "platinum", mode="before")
    @classmethod
    def parse_int(cls, v):
        return coerce_int(v)


class DeadlineSettings(_PerTier):
    """Days a points tier stays valid after the last transaction."""

    bronze: int = Field(default=365, ge=0)
    silver: int = Field(default=180, ge=0)
    gold: int = Field(default=90, ge=0)
    platinum: int = Field(default=60, ge=0)

    @field_validator("bronze", "silver", "gold", "platinum", mode="before")
    @classmethod
    def parse_int(cls, v):
        return coerce_int(v)


def non_monotonic_tiers(settings: TierSettings) -> list[str]:
    """Describe every threshold that is lower than the tier below it."""
    problems: list[str] = []
    ascending = list(reversed(TIERS_DESC))
    for lower, upper in zip(ascending, ascending[1:]):
        lo, hi = settings.for_tier(lower), settings.for_tier(upper)
        if hi.min_spend < lo.min_spend:
            problems.append(
                f"{upper.value} min_spend {hi.min_spend} < {lower.value} min_spend {lo.min_spend}"
            )
        if hi.min_points < lo.min_points:
            problems.append(
                f"{upper.value} min_points {hi.min_points} < {lower.value} min_points {lo.min_points}"
            )
    return problems
