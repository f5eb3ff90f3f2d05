from __future__ import annotations

from fastapi import APIRouter, Depends

from loyalty_ledger.api.deps import get_ledger, must_tenant_id
from loyalty_ledger.schemas.ledger import LedgerSnapshot
from loyalty_ledger.schemas.settings_schema import SettingsOut, SettingsUpdate
from loyalty_ledger.services.ledger import LoyaltyLedger

router = APIRouter(prefix="/settings", tags=["settings"])


def _out(snap: LedgerSnapshot) -> SettingsOut:
    return SettingsOut(
        business_name=snap.business_name,
        tier_settings=snap.tier_settings,
        discount_settings=snap.discount_settings,
        deadline_settings=snap.deadline_settings,
        version=snap.version,
    )


@router.get("", response_model=SettingsOut, include_in_schema=False)
@router.get("/", response_model=SettingsOut)
def read_settings(
    tenant_id: str = Depends(must_tenant_id),
    ledger: LoyaltyLedger = Depends(get_ledger),
) -> SettingsOut:
    return _out(ledger.snapshot(tenant_id))


@router.put("", response_model=SettingsOut, include_in_schema=False)
@router.put("/", response_model=SettingsOut)
def update_settings(
    payload: SettingsUpdate,
    tenant_id: str = Depends(must_tenant_id),
    ledger: LoyaltyLedger = Depends(get_ledger),
) -> SettingsOut:
    snap = ledger.update_settings(
        tenant_id,
        tier_settings=payload.tier_settings,
        discount_settings=payload.discount_settings,
        deadline_settings=payload.deadline_settings,
    )
    return _out(snap)
