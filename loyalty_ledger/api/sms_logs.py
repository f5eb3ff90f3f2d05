from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends

from loyalty_ledger.api.deps import get_ledger, must_tenant_id
from loyalty_ledger.schemas.transaction import SmsLogOut
from loyalty_ledger.services.ledger import LoyaltyLedger

router = APIRouter(prefix="/sms-logs", tags=["sms"])


@router.get("", response_model=List[SmsLogOut], include_in_schema=False)
@router.get("/", response_model=List[SmsLogOut])
def list_sms_logs(
    tenant_id: str = Depends(must_tenant_id),
    ledger: LoyaltyLedger = Depends(get_ledger),
) -> List[SmsLogOut]:
    return [SmsLogOut.model_validate(x, from_attributes=True) for x in ledger.list_sms_logs(tenant_id)]
