"""Tests for the FastAPI surface (dispatch pipeline stubbed)."""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from sms_verify.api.app import app, get_verifier
from sms_verify.api_manager.base import VoipClassification, VoipClassifier
from sms_verify.api_manager.utils.rate_limiter import ClientLimit, RateLimiter
from sms_verify.core.config import DispatchOptions
from sms_verify.core.orchestrator import PhoneVerifier
from sms_verify.sns.signer import Credentials


API_KEY = "test-api-key"
AUTH = {"X-API-Key": API_KEY}


class FixedClassifier(VoipClassifier):
    source_name = "fixed"

    def __init__(self, is_voip):
        self.is_voip = is_voip

    def classify(self, phone):
        return VoipClassification(is_voip=self.is_voip, rule="fixed")


def _install_verifier(credentials=None, is_voip=False):
    publisher = Mock()
    publisher.publish_sms = Mock(return_value="mid-42")
    verifier = PhoneVerifier(
        options=DispatchOptions(),
        credentials=credentials or Credentials("AKID", "SECRET"),
        classifier=FixedClassifier(is_voip),
        client_factory=Mock(return_value=publisher),
    )
    app.dependency_overrides[get_verifier] = lambda: verifier
    return publisher


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setenv("API_KEY", API_KEY)
    app.state.rate_limiter = RateLimiter()
    _install_verifier()
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["status"] == "healthy"
    assert "timestamp" in body


def test_root_lists_endpoints(client):
    body = client.get("/").json()
    assert body["endpoints"]["send"] == "/api/send"


def test_security_headers(client):
    response = client.get("/health")
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"


def test_unknown_route(client):
    response = client.get("/nope")
    assert response.status_code == 404
    assert response.json() == {
        "success": False,
        "error": "Not found",
        "message": "The requested endpoint does not exist",
    }


def test_send_requires_api_key(client):
    response = client.post("/api/send", json={"phoneNumber": "+12069084172", "code": "123456"})
    assert response.status_code == 401
    assert response.json()["error"] == "Unauthorized"

    response = client.post(
        "/api/send",
        json={"phoneNumber": "+12069084172", "code": "123456"},
        headers={"X-API-Key": "wrong"},
    )
    assert response.status_code == 401


def test_send_success(client):
    response = client.post("/api/send", json={"phoneNumber": "(206) 908-4172", "code": "123456"}, headers=AUTH)
    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "message": "Verification code sent successfully",
        "messageId": "mid-42",
        "code": "123456",
        "phoneNumber": "+12069084172",
        "expiresIn": 600,
    }


def test_send_accepts_bearer_token(client):
    response = client.post(
        "/api/send",
        json={"phoneNumber": "+12069084172", "code": "123456"},
        headers={"Authorization": f"Bearer {API_KEY}"},
    )
    assert response.status_code == 200


def test_send_generates_code(client):
    body = client.post("/api/send", json={"phoneNumber": "+12069084172"}, headers=AUTH).json()
    assert body["success"] is True
    assert len(body["code"]) == 6
    assert body["code"].isdigit()


def test_send_rejects_short_code(client):
    response = client.post("/api/send", json={"phoneNumber": "+12069084172", "code": "12"}, headers=AUTH)
    assert response.status_code == 400
    assert response.json()["error"] == "Code must be alphanumeric and at least 4 characters"


def test_send_blocks_voip(client):
    publisher = _install_verifier(is_voip=True)
    response = client.post(
        "/api/send",
        json={"phoneNumber": "+12069084172", "code": "123456", "blockVoip": True},
        headers=AUTH,
    )
    assert response.status_code == 400
    body = response.json()
    assert body["isVoip"] is True
    assert body["error"] == "VoIP numbers are not allowed"
    publisher.publish_sms.assert_not_called()


def test_send_without_aws_credentials(client):
    _install_verifier(credentials=Credentials("", ""))
    response = client.post("/api/send", json={"phoneNumber": "+12069084172", "code": "123456"}, headers=AUTH)
    assert response.status_code == 500
    assert response.json()["error"] == "AWS credentials not configured"


def test_missing_phone_number(client):
    response = client.post("/api/send", json={"code": "123456"}, headers=AUTH)
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Invalid request"
    assert "phoneNumber" in body["details"]


def test_verify_acknowledges(client):
    response = client.post("/api/verify", json={"phoneNumber": "+12069084172", "code": "123456"}, headers=AUTH)
    assert response.status_code == 200
    assert response.json()["verified"] is True


def test_send_sms(client):
    response = client.post(
        "/api/sms",
        json={"phoneNumber": "+12069084172", "message": "Your order has shipped", "smsType": "Promotional"},
        headers=AUTH,
    )
    assert response.status_code == 200
    assert response.json()["message"] == "SMS sent successfully"


def test_rate_limit(client):
    app.state.rate_limiter = RateLimiter(ClientLimit(max_requests=2, window_seconds=60))
    payload = {"phoneNumber": "+12069084172", "code": "123456"}
    assert client.post("/api/send", json=payload, headers=AUTH).status_code == 200
    assert client.post("/api/send", json=payload, headers=AUTH).status_code == 200
    response = client.post("/api/send", json=payload, headers=AUTH)
    assert response.status_code == 429
    assert response.json()["success"] is False


def test_configured_voip_blocking_applies_when_body_omits_it(client):
    publisher = Mock()
    publisher.publish_sms = Mock(return_value="mid-42")
    classifier = Mock()
    classifier.source_name = "spy"
    classifier.classify = Mock(return_value=VoipClassification(is_voip=True, rule="spy"))
    verifier = PhoneVerifier(
        options=DispatchOptions(block_voip=True),
        credentials=Credentials("AKID", "SECRET"),
        classifier=classifier,
        client_factory=Mock(return_value=publisher),
    )
    app.dependency_overrides[get_verifier] = lambda: verifier

    response = client.post("/api/send", json={"phoneNumber": "+12069084172", "code": "123456"}, headers=AUTH)

    assert response.status_code == 400
    assert response.json()["isVoip"] is True
    classifier.classify.assert_called_once_with("+12069084172")
    publisher.publish_sms.assert_not_called()
