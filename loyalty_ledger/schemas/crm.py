from __future__ import annotations

from datetime import date
from typing import Dict, List, Optional

from pydantic import BaseModel

from loyalty_ledger.core.tier_rules import Tier
from loyalty_ledger.schemas.transaction import EligibilityOut


class CustomerOut(BaseModel):
    mobile: str
    name: str
    points: float
    total_spent: float
    purchases_count: int
    tier: Tier
    spend_tier: Tier
    points_tier: Tier
    eligibility: EligibilityOut
    remaining_days: Optional[int] = None


class OverviewOut(BaseModel):
    total_customers: int
    total_revenue: float
    total_points: float


class TopCustomerOut(BaseModel):
    mobile: str
    name: str
    total_spent: float
    points: float


class DailyRevenueOut(BaseModel):
    day: date
    revenue: float


class AnalyticsOut(BaseModel):
    average_order_value: int
    total_transactions: int
    total_points: float
    tier_counts: Dict[Tier, int]
    top_customers: List[TopCustomerOut]
    daily_revenue: List[DailyRevenueOut]
