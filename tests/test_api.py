"""HTTP tests for the FastAPI application."""

import pytest
from fastapi.testclient import TestClient

from loyalty_ledger.api.deps import TENANT_HEADER
from loyalty_ledger.main import create_app
from loyalty_ledger.services.ledger import LoyaltyLedger
from loyalty_ledger.services.sms import SendResult
from tests.conftest import FakeNotifier

HEADERS = {TENANT_HEADER: "shop-1"}


@pytest.fixture
def client(ledger) -> TestClient:
    return TestClient(create_app(ledger))


def _tx(**overrides) -> dict:
    body = {"mobile": "9876543210", "pin": "9876", "bill_amount": 1000, "cash_given": 1000}
    body.update(overrides)
    return body


class TestAuth:
    def test_missing_tenant_header(self, client) -> None:
        r = client.get("/api/customers/")
        assert r.status_code == 401

    def test_health(self, client) -> None:
        assert client.get("/health").json() == {"status": "ok"}


class TestTransactionsApi:
    """Tests for /api/transactions."""

    def test_quote(self, client) -> None:
        r = client.post("/api/transactions/quote", json=_tx(cash_given=900, use_points=True, points_to_use=50), headers=HEADERS)
        assert r.status_code == 200
        data = r.json()
        assert data["is_new_customer"] is False
        assert data["tiers"]["effective_tier"] == "Silver"
        assert data["eligibility"]["eligible"] is True
        assert data["bill"]["final_bill"] == 950
        assert data["bill"]["cash_payable"] == 900

    def test_create(self, client, notifier) -> None:
        r = client.post("/api/transactions/", json=_tx(), headers=HEADERS)
        assert r.status_code == 200
        data = r.json()
        assert data["receipt"]["new_total_points"] == 150
        assert data["receipt"]["deadline_days"] == 160
        assert data["notification"] is None
        assert notifier.sent == []

    def test_create_with_notify(self, client, notifier) -> None:
        r = client.post("/api/transactions", json=_tx(notify=True), headers=HEADERS)
        assert r.status_code == 200
        assert r.json()["notification"] == {"sent": True, "error": None, "retryable": False}
        assert len(client.get("/api/sms-logs/", headers=HEADERS).json()) == 1

    def test_notify_failure_still_commits(self, store, now) -> None:
        notifier = FakeNotifier(result=SendResult(False, error_message="queue full"))
        client = TestClient(create_app(LoyaltyLedger(store, notifier=notifier, clock=lambda: now)))
        r = client.post("/api/transactions/", json=_tx(notify=True), headers=HEADERS)
        assert r.status_code == 200
        assert r.json()["notification"] == {"sent": False, "error": "queue full", "retryable": True}
        customer = client.get("/api/customers/9876543210", headers=HEADERS).json()
        assert customer["purchases_count"] == 3

    def test_wrong_pin(self, client) -> None:
        r = client.post("/api/transactions/", json=_tx(pin="0000"), headers=HEADERS)
        assert r.status_code == 403

    def test_insufficient_cash(self, client) -> None:
        r = client.post("/api/transactions/", json=_tx(cash_given=10), headers=HEADERS)
        assert r.status_code == 400
        assert "amount payable" in r.json()["detail"]

    def test_new_customer_bad_pin(self, client) -> None:
        r = client.post("/api/transactions/", json=_tx(mobile="5550001234", pin="12"), headers=HEADERS)
        assert r.status_code == 400

    def test_junk_mobile_rejected(self, client) -> None:
        r = client.post("/api/transactions/", json=_tx(mobile="-----", pin="4321"), headers=HEADERS)
        assert r.status_code == 400
        assert "mobile" in r.json()["detail"]

    def test_unknown_field_rejected(self, client) -> None:
        r = client.post("/api/transactions/", json=_tx(tier="Gold"), headers=HEADERS)
        assert r.status_code == 422

    def test_resend_receipt_failure_is_retryable(self, store, now) -> None:
        notifier = FakeNotifier(error=RuntimeError("down"))
        client = TestClient(create_app(LoyaltyLedger(store, notifier=notifier, clock=lambda: now)))
        receipt = {
            "mobile": "9876543210",
            "customer_name": "Aisha Khan",
            "business_name": "Chai Corner",
            "final_bill": 100,
            "points_used": 0,
            "points_earned": 0,
            "new_total_points": 150,
            "deadline_days": 160,
        }
        r = client.post("/api/transactions/receipt", json=receipt, headers=HEADERS)
        assert r.status_code == 502
        assert r.json()["retryable"] is True


class TestCustomersApi:
    """Tests for /api/customers."""

    def test_list(self, client) -> None:
        data = client.get("/api/customers/", headers=HEADERS).json()
        by_mobile = {c["mobile"]: c for c in data}
        assert by_mobile["6543210987"]["tier"] == "Gold"
        assert by_mobile["6543210987"]["eligibility"]["eligible"] is False
        assert by_mobile["9876543210"]["remaining_days"] == 160

    def test_overview(self, client) -> None:
        data = client.get("/api/customers/overview", headers=HEADERS).json()
        assert data == {"total_customers": 2, "total_revenue": 7500, "total_points": 750}

    def test_analytics(self, client) -> None:
        r = client.get("/api/customers/analytics", headers=HEADERS)
        assert r.status_code == 200
        data = r.json()
        assert data["average_order_value"] == 2500
        assert data["total_transactions"] == 3
        assert data["tier_counts"] == {"Bronze": 0, "Silver": 1, "Gold": 1, "Platinum": 0}
        assert [c["mobile"] for c in data["top_customers"]] == ["6543210987", "9876543210"]
        assert [d["revenue"] for d in data["daily_revenue"]] == [5000, 1200, 1300]

    def test_not_found(self, client) -> None:
        assert client.get("/api/customers/000", headers=HEADERS).status_code == 404

    def test_remind(self, client, notifier) -> None:
        r = client.post("/api/customers/9876543210/remind", headers=HEADERS)
        assert r.status_code == 200
        assert r.json()["recipient_name"] == "Aisha Khan"
        assert notifier.sent[0][0] == "9876543210"


class TestSettingsApi:
    """Tests for /api/settings."""

    def test_read(self, client) -> None:
        data = client.get("/api/settings/", headers=HEADERS).json()
        assert data["business_name"] == "Chai Corner"
        assert data["discount_settings"]["gold"] == 10

    def test_update_group(self, client) -> None:
        r = client.put("/api/settings/", json={"discount_settings": {"silver": 7}}, headers=HEADERS)
        assert r.status_code == 200
        data = r.json()
        assert data["discount_settings"]["silver"] == 7
        assert data["deadline_settings"]["gold"] == 90

    def test_update_camel_case(self, client) -> None:
        body = {"tier_settings": {"silver": {"minSpend": "3000", "minPoints": 200}}}
        r = client.put("/api/settings/", json=body, headers=HEADERS)
        assert r.status_code == 200
        assert client.get("/api/customers/9876543210", headers=HEADERS).json()["tier"] == "Bronze"

    def test_invalid_discount(self, client) -> None:
        r = client.put("/api/settings/", json={"discount_settings": {"gold": 300}}, headers=HEADERS)
        assert r.status_code == 422
