from __future__ import annotations

from fastapi import HTTPException, Request

from loyalty_ledger.services.ledger import LoyaltyLedger

TENANT_HEADER = "X-Tenant-Id"


def must_tenant_id(request: Request) -> str:
    tid = (request.headers.get(TENANT_HEADER) or "").strip()
    if not tid:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return tid


def get_ledger(request: Request) -> LoyaltyLedger:
    return request.app.state.ledger
