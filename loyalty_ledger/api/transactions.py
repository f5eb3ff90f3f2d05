from __future__ import annotations

from fastapi import APIRouter, Depends

from loyalty_ledger.api.deps import get_ledger, must_tenant_id
from loyalty_ledger.core.errors import NotificationFailure
from loyalty_ledger.schemas.transaction import (
    BillOut,
    EligibilityOut,
    NotificationOut,
    QuoteOut,
    ReceiptOut,
    SmsLogOut,
    TierInfoOut,
    TransactionCreate,
    TransactionOut,
)
from loyalty_ledger.services.billing import BillResult
from loyalty_ledger.services.ledger import LoyaltyLedger, TransactionRequest
from loyalty_ledger.services.transactions import NewCustomer

router = APIRouter(prefix="/transactions", tags=["transactions"])


def _request(payload: TransactionCreate) -> TransactionRequest:
    return TransactionRequest(
        mobile=payload.mobile,
        bill_amount=payload.bill_amount,
        cash_given=payload.cash_given,
        pin=payload.pin,
        name=payload.name or "",
        country_code=payload.country_code,
        use_points=payload.use_points,
        points_to_use=payload.points_to_use,
    )


def _bill_out(bill: BillResult) -> BillOut:
    return BillOut(
        subtotal=bill.subtotal,
        discount_percentage=bill.discount_percentage,
        discount_amount=bill.discount_amount,
        final_bill=bill.final_bill,
        points_used=bill.points_used,
        cash_payable=bill.cash_payable,
        points_earned=bill.points_earned,
    )


@router.post("/quote", response_model=QuoteOut)
def quote_transaction(
    payload: TransactionCreate,
    tenant_id: str = Depends(must_tenant_id),
    ledger: LoyaltyLedger = Depends(get_ledger),
) -> QuoteOut:
    q = ledger.quote(tenant_id, _request(payload))
    return QuoteOut(
        mobile=q.lookup.mobile,
        is_new_customer=isinstance(q.lookup, NewCustomer),
        tiers=TierInfoOut(**vars(q.tiers)) if q.tiers else None,
        eligibility=EligibilityOut(**vars(q.eligibility)),
        bill=_bill_out(q.bill),
    )


@router.post("", response_model=TransactionOut, include_in_schema=False)
@router.post("/", response_model=TransactionOut)
def create_transaction(
    payload: TransactionCreate,
    tenant_id: str = Depends(must_tenant_id),
    ledger: LoyaltyLedger = Depends(get_ledger),
) -> TransactionOut:
    applied = ledger.process_transaction(tenant_id, _request(payload))

    notification = None
    if payload.notify:
        # The transaction is committed; an SMS failure is only reported.
        try:
            ledger.send_transaction_receipt(tenant_id, applied)
            notification = NotificationOut(sent=True)
        except NotificationFailure as e:
            notification = NotificationOut(sent=False, error=str(e), retryable=True)

    return TransactionOut(
        receipt=ReceiptOut(
            mobile=applied.customer.mobile,
            customer_name=applied.customer_name,
            business_name=applied.business_name,
            final_bill=applied.bill.final_bill,
            points_used=applied.bill.points_used,
            points_earned=applied.bill.points_earned,
            new_total_points=applied.new_total_points,
            deadline_days=applied.deadline_days,
        ),
        bill=_bill_out(applied.bill),
        is_new_customer=applied.is_new_customer,
        committed_at=applied.history_entry.timestamp,
        notification=notification,
    )


@router.post("/receipt", response_model=SmsLogOut)
def resend_receipt(
    payload: ReceiptOut,
    tenant_id: str = Depends(must_tenant_id),
    ledger: LoyaltyLedger = Depends(get_ledger),
) -> SmsLogOut:
    log = ledger.send_receipt(
        tenant_id,
        payload.mobile,
        payload.customer_name,
        payload.business_name,
        payload.new_total_points,
        payload.deadline_days,
    )
    return SmsLogOut.model_validate(log, from_attributes=True)
