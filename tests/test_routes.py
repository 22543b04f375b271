"""HTTP-level tests for the outbound message routes."""

import httpx
import pytest
from fastapi.testclient import TestClient

from notify_relay.api.factory import create_app
from notify_relay.errors import DeliveryFailed
from notify_relay.infra.settings import Settings
from notify_relay.whatsapp.models import SessionState, TextMessage

from .helpers import FakePlaywright, StubSession, html_handler, image_handler, make_context, make_pipeline


def _client(session=None, pipeline=None, settings=None) -> TestClient:
    return TestClient(create_app(make_context(session, pipeline, settings)))


class TestSendOtp:
    def test_not_ready_returns_503(self):
        client = _client(StubSession(state=SessionState.CONNECTING))

        response = client.get("/send-otp", params={"phonenumber": "123-456-7890", "message": "Hi"})

        assert response.status_code == 503
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "WhatsApp client not ready"

    def test_connected_sends_to_normalized_target(self, stub_session):
        client = _client(stub_session)

        response = client.get("/send-otp", params={"phonenumber": "123-456-7890", "message": "Hi"})

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert stub_session.sent == [("1234567890@s.whatsapp.net", TextMessage("Hi"))]

    def test_missing_params_returns_400(self, stub_session):
        client = _client(stub_session)

        assert client.get("/send-otp", params={"phonenumber": "123"}).status_code == 400
        assert client.get("/send-otp", params={"message": "Hi"}).status_code == 400
        assert client.get("/send-otp").status_code == 400
        assert stub_session.sent == []

    def test_missing_params_reported_before_readiness(self):
        client = _client(StubSession(state=SessionState.CONNECTING))

        response = client.get("/send-otp", params={"phonenumber": "123"})

        assert response.status_code == 400
        assert response.json()["error"] == "Missing or invalid parameters"

    def test_phone_without_digits_returns_400(self, stub_session):
        client = _client(stub_session)

        response = client.get("/send-otp", params={"phonenumber": "abc", "message": "Hi"})

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid target"

    def test_send_failure_returns_500_with_details(self):
        client = _client(StubSession(send_error=DeliveryFailed("Connection Closed")))

        response = client.get("/send-otp", params={"phonenumber": "123", "message": "Hi"})

        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "error": "Failed to send message",
            "details": "Connection Closed",
        }


class TestSendImage:
    def test_image_url_is_fetched_directly(self, stub_session):
        client = _client(stub_session, make_pipeline(image_handler))

        response = client.get(
            "/send-image",
            params={"imageUrl": "https://x/pic.png", "mobile": "5551234567"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["method"] == "direct"
        assert body["imageSize"] > 0
        assert stub_session.sent[0][0] == "5551234567@s.whatsapp.net"

    def test_html_url_is_rendered(self, stub_session):
        pw = FakePlaywright()
        client = _client(stub_session, make_pipeline(html_handler, pw))

        response = client.get(
            "/send-image",
            params={"imageUrl": "https://x/page", "mobile": "5551234567", "caption": "Daily"},
        )

        assert response.status_code == 200
        assert response.json()["method"] == "rendered"
        assert pw.browser.close_calls == 1
        assert stub_session.sent[0][1].caption == "Daily"

    def test_missing_params_returns_400(self, stub_session):
        client = _client(stub_session)
        assert client.get("/send-image", params={"mobile": "555"}).status_code == 400
        assert client.get("/send-image", params={"imageUrl": "https://x/a"}).status_code == 400

    def test_not_ready_returns_503(self):
        client = _client(StubSession(state=SessionState.AWAITING_PAIRING), make_pipeline(image_handler))

        response = client.get("/send-image", params={"imageUrl": "https://x/pic.png", "mobile": "555"})

        assert response.status_code == 503

    def test_acquisition_failure_returns_500(self, stub_session):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        client = _client(stub_session, make_pipeline(handler))

        response = client.get("/send-image", params={"imageUrl": "https://x/a", "mobile": "555"})

        assert response.status_code == 500
        assert response.json()["error"] == "Content probe failed"
        assert "refused" in response.json()["details"]
        assert stub_session.sent == []

    @pytest.mark.parametrize("image_url", ["http://", "http://\x00bad"])
    def test_malformed_url_returns_json_error(self, stub_session, image_url):
        client = _client(stub_session, make_pipeline(image_handler))

        response = client.get("/send-image", params={"imageUrl": image_url, "mobile": "5551234567"})

        assert response.status_code == 500
        assert response.headers["content-type"].startswith("application/json")
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "Content probe failed"
        assert stub_session.sent == []


class TestSendPoster:
    def test_defaults(self, stub_session):
        client = _client(stub_session, settings=Settings(poster_unit_price=150))

        response = client.get("/send-myl", params={"name": "alice", "mobile": "999"})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["quantity"] == 1
        assert body["amount"] == 150
        assert body["imageSize"] > 0
        assert stub_session.sent[0][0] == "999@s.whatsapp.net"

    def test_quantity_scales_amount(self, stub_session):
        client = _client(stub_session, settings=Settings(poster_unit_price=150))

        response = client.get("/send-myl", params={"name": "alice", "mobile": "999", "quantity": "3"})

        assert response.json()["amount"] == 450

    def test_explicit_amount(self, stub_session):
        client = _client(stub_session)

        response = client.get(
            "/send-myl",
            params={"name": "alice", "mobile": "999", "quantity": "2", "amount": "75"},
        )

        assert response.json()["quantity"] == 2
        assert response.json()["amount"] == 75

    def test_missing_name_or_mobile_returns_400(self, stub_session):
        client = _client(stub_session)
        assert client.get("/send-myl", params={"mobile": "999"}).status_code == 400
        assert client.get("/send-myl", params={"name": "alice"}).status_code == 400

    def test_non_numeric_quantity_returns_400(self, stub_session):
        client = _client(stub_session)

        response = client.get("/send-myl", params={"name": "alice", "mobile": "999", "quantity": "lots"})

        assert response.status_code == 400
        assert "quantity" in response.json()["details"]
        assert stub_session.sent == []

    def test_not_ready_returns_503(self):
        client = _client(StubSession(state=SessionState.CONNECTING))

        response = client.get("/send-myl", params={"name": "alice", "mobile": "999"})

        assert response.status_code == 503
