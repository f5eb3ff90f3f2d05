from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends

from loyalty_ledger.api.deps import get_ledger, must_tenant_id
from loyalty_ledger.schemas.crm import AnalyticsOut, CustomerOut, DailyRevenueOut, OverviewOut, TopCustomerOut
from loyalty_ledger.schemas.transaction import EligibilityOut, SmsLogOut
from loyalty_ledger.services.insights import CustomerSummary
from loyalty_ledger.services.ledger import LoyaltyLedger

router = APIRouter(prefix="/customers", tags=["customers"])


def _out(s: CustomerSummary) -> CustomerOut:
    c = s.customer
    return CustomerOut(
        mobile=c.mobile,
        name=c.name,
        points=c.points,
        total_spent=c.total_spent,
        purchases_count=len(c.history),
        tier=s.tiers.effective_tier,
        spend_tier=s.tiers.spend_tier,
        points_tier=s.tiers.points_tier,
        eligibility=EligibilityOut(**vars(s.eligibility)),
        remaining_days=s.remaining_days,
    )


@router.get("", response_model=List[CustomerOut], include_in_schema=False)
@router.get("/", response_model=List[CustomerOut])
def list_customers(
    tenant_id: str = Depends(must_tenant_id),
    ledger: LoyaltyLedger = Depends(get_ledger),
) -> List[CustomerOut]:
    return [_out(s) for s in ledger.list_customers(tenant_id)]


@router.get("/overview", response_model=OverviewOut)
def customers_overview(
    tenant_id: str = Depends(must_tenant_id),
    ledger: LoyaltyLedger = Depends(get_ledger),
) -> OverviewOut:
    o = ledger.overview(tenant_id)
    return OverviewOut(
        total_customers=o.total_customers,
        total_revenue=o.total_revenue,
        total_points=o.total_points,
    )


@router.get("/analytics", response_model=AnalyticsOut)
def customers_analytics(
    tenant_id: str = Depends(must_tenant_id),
    ledger: LoyaltyLedger = Depends(get_ledger),
) -> AnalyticsOut:
    a = ledger.analytics(tenant_id)
    return AnalyticsOut(
        average_order_value=a.average_order_value,
        total_transactions=a.total_transactions,
        total_points=a.total_points,
        tier_counts=a.tier_counts,
        top_customers=[
            TopCustomerOut(mobile=c.mobile, name=c.name, total_spent=c.total_spent, points=c.points)
            for c in a.top_customers
        ],
        daily_revenue=[DailyRevenueOut(day=d.day, revenue=d.revenue) for d in a.daily_revenue],
    )


@router.get("/{mobile}", response_model=CustomerOut)
def get_customer(
    mobile: str,
    tenant_id: str = Depends(must_tenant_id),
    ledger: LoyaltyLedger = Depends(get_ledger),
) -> CustomerOut:
    return _out(ledger.customer_summary(tenant_id, mobile))


@router.post("/{mobile}/remind", response_model=SmsLogOut)
def remind_customer(
    mobile: str,
    tenant_id: str = Depends(must_tenant_id),
    ledger: LoyaltyLedger = Depends(get_ledger),
) -> SmsLogOut:
    log = ledger.send_balance_reminder(tenant_id, mobile)
    return SmsLogOut.model_validate(log, from_attributes=True)
