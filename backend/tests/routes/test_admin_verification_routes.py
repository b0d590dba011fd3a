from pydantic import SecretStr
import pytest

from aura.core.config import settings
from aura.models.verification_code import VerificationCode

PHONE = "+201012345678"
CLEAR = "/api/v1/admin/verification-codes/clear"
STATUS = "/api/v1/admin/delivery-status"


@pytest.fixture
def production(monkeypatch):
    monkeypatch.setattr(settings, "environment", "production")
    monkeypatch.setattr(settings, "admin_token", None)


class TestClearVerificationCodes:
    def test_clear_one_phone_in_any_format(self, client, store, db) -> None:
        store.issue(PHONE)
        store.issue("+201099999999")

        response = client.post(CLEAR, json={"phone": "01012345678"})

        assert response.status_code == 200
        assert response.json() == {"success": True, "cleared": 1}
        assert [row.phone for row in db.query(VerificationCode).all()] == ["+201099999999"]

    def test_clear_all(self, client, store, db) -> None:
        store.issue(PHONE)
        store.issue("+201099999999")

        response = client.post(CLEAR, json={"clear_all": True})

        assert response.json()["cleared"] == 2
        assert db.query(VerificationCode).count() == 0

    def test_requires_a_target(self, client) -> None:
        response = client.post(CLEAR, json={})

        assert response.status_code == 422

    def test_cleared_phone_can_request_again(self, client) -> None:
        for _ in range(5):
            client.post("/api/v1/auth/send-code", json={"phone": PHONE})
        assert client.post("/api/v1/auth/send-code", json={"phone": PHONE}).status_code == 429

        client.post(CLEAR, json={"phone": PHONE})

        assert client.post("/api/v1/auth/send-code", json={"phone": PHONE}).status_code == 200


class TestDeliveryStatus:
    def test_reports_simulated_primary_without_channels(self, client) -> None:
        response = client.get(STATUS)

        assert response.status_code == 200
        body = response.json()
        assert body["primary_channel"] == "simulated"
        assert body["simulated_allowed"] is True
        assert body["whatsapp"]["configured"] is False
        assert body["sms"]["configured"] is False

    @pytest.mark.parametrize("api_router_options", [{"whatsapp": True, "sms": True}])
    def test_secrets_never_leave_the_server(self, client) -> None:
        response = client.get(STATUS)

        body = response.json()
        assert body["primary_channel"] == "whatsapp"
        assert body["sms"]["masked"]["auth_token"] == "***"
        assert "twilio-auth-token-secret" not in response.text
        assert "EAAGtestaccesstoken1234567890" not in response.text


class TestAdminAccess:
    def test_forbidden_outside_development(self, client, production) -> None:
        response = client.get(STATUS)

        assert response.status_code == 403
        assert response.headers["content-type"].startswith("application/problem+json")
        assert response.json()["code"] == "ADMIN_ONLY"

    def test_clear_is_forbidden_outside_development(self, client, production, store, db) -> None:
        store.issue(PHONE)

        response = client.post(CLEAR, json={"clear_all": True})

        assert response.status_code == 403
        assert db.query(VerificationCode).count() == 1

    def test_admin_token_unlocks_tools(self, client, production, monkeypatch) -> None:
        monkeypatch.setattr(settings, "admin_token", SecretStr("s3cret-admin-token"))

        allowed = client.get(STATUS, headers={"X-Admin-Token": "s3cret-admin-token"})
        denied = client.get(STATUS, headers={"X-Admin-Token": "wrong"})

        assert allowed.status_code == 200
        assert denied.status_code == 403
