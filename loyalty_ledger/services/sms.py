# loyalty_ledger/services/sms.py
"""
Twilio SMS client.
Docs: https://www.twilio.com/docs/messaging/api/message-resource

Setup (.env):
    TWILIO_ACCOUNT_SID=ACxxxxxxxx
    TWILIO_AUTH_TOKEN=your_token_here
    TWILIO_PHONE_NUMBER=+15005550006
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

import httpx

from loyalty_ledger.core.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SendResult:
    success: bool
    id: str | None = None
    error_message: str | None = None


class Notifier(Protocol):
    def send(self, destination: str, message: str) -> SendResult: ...


class TwilioSmsNotifier:
    def __init__(
        self,
        account_sid: str | None = None,
        auth_token: str | None = None,
        from_number: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self.account_sid = account_sid if account_sid is not None else settings.TWILIO_ACCOUNT_SID
        self.auth_token = auth_token if auth_token is not None else settings.TWILIO_AUTH_TOKEN
        self.from_number = from_number if from_number is not None else settings.TWILIO_PHONE_NUMBER
        self.base_url = (base_url or settings.TWILIO_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.SMS_TIMEOUT_SECONDS
        self._client = client

    def is_configured(self) -> bool:
        return bool(self.account_sid and self.auth_token and self.from_number)

    def _url(self) -> str:
        return f"{self.base_url}/2010-04-01/Accounts/{self.account_sid}/Messages.json"

    # ── Send single message ───────────────────────────────────
    def send(self, destination: str, message: str) -> SendResult:
        if not self.is_configured():
            return SendResult(False, error_message="Twilio client not configured. Check environment variables.")
        if not destination or not message:
            return SendResult(False, error_message="Missing destination or message.")

        data = {"To": destination, "From": self.from_number, "Body": message}
        auth = (self.account_sid, self.auth_token)
        try:
            if self._client is not None:
                r = self._client.post(self._url(), data=data, auth=auth, timeout=self.timeout)
            else:
                r = httpx.post(self._url(), data=data, auth=auth, timeout=self.timeout)
            body = r.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Twilio send error to {destination}: {e}")
            return SendResult(False, error_message=str(e))

        if not isinstance(body, dict):
            body = {}
        if r.is_success and body.get("sid"):
            logger.info(f"SMS sent successfully: {body['sid']}")
            return SendResult(True, id=body["sid"])
        return SendResult(False, error_message=body.get("message") or f"HTTP {r.status_code}")
