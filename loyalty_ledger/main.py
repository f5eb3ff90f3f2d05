from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from starlette.responses import JSONResponse

from loyalty_ledger.api import customers_router, settings_router, sms_logs_router, transactions_router
from loyalty_ledger.core.errors import (
    CustomerNotFoundError,
    InvalidPinError,
    LedgerError,
    NotificationFailure,
    StaleLedgerError,
    ValidationError,
)
from loyalty_ledger.services.ledger import LoyaltyLedger
from loyalty_ledger.services.ledger_store import build_store
from loyalty_ledger.services.sms import TwilioSmsNotifier

logger = logging.getLogger(__name__)

# Most specific first
_STATUS: list[tuple[type[LedgerError], int]] = [
    (InvalidPinError, 403),
    (ValidationError, 400),
    (CustomerNotFoundError, 404),
    (StaleLedgerError, 409),
    (NotificationFailure, 502),
]


def _ledger_error(request: Request, exc: LedgerError) -> JSONResponse:
    status = next((code for cls, code in _STATUS if isinstance(exc, cls)), 500)
    body: dict = {"detail": str(exc)}
    if isinstance(exc, NotificationFailure):
        body["retryable"] = True
    if status >= 500:
        logger.error(f"{request.method} {request.url.path} -> {status}: {exc}")
    return JSONResponse(body, status_code=status)


def create_app(ledger: LoyaltyLedger | None = None) -> FastAPI:
    app = FastAPI(title="Loyalty Ledger")

    if ledger is None:
        ledger = LoyaltyLedger(build_store(), notifier=TwilioSmsNotifier())
    app.state.ledger = ledger

    app.add_exception_handler(LedgerError, _ledger_error)

    app.include_router(transactions_router, prefix="/api")
    app.include_router(customers_router, prefix="/api")
    app.include_router(settings_router, prefix="/api")
    app.include_router(sms_logs_router, prefix="/api")

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app
