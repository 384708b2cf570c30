"""End-to-end tests for the HTTP endpoints with the voice platform faked out."""

import sys

import pytest
from fastapi.testclient import TestClient

from src.config import settings
from src.functions.provision_agent import DRY_RUN_PHONE_PLACEHOLDER
from src.main import app
from src.utils.errors import RetellAPIError
from tests.conftest import FakeFetcher, FakeRetellClient

ACME_INTAKE = {
    "business_name": "Acme Paving",
    "website": "acmepaving.com",
    "business_hours": "Mon-Fri 7am-5pm",
    "services": "Asphalt paving, sealcoating, driveway repair",
    "service_area": "Worcester County",
    "business_phone": "(508) 555-0142",
    "email_for_call_summaries": "owner@acmepaving.com",
    "scheduling_details": "Calendar: not provided",
    "emergency_details": "Emergency: []",
    "Is_Test_mode": "true",
}


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def retell(monkeypatch):
    fake = FakeRetellClient()
    monkeypatch.setattr(sys.modules["src.functions.provision_agent"], "RetellClient", lambda: fake)
    monkeypatch.setattr(sys.modules["src.functions.create_web_call"], "RetellClient", lambda: fake)
    monkeypatch.setattr(sys.modules["src.functions.provision_agent"], "WebsiteContextFetcher", lambda: FakeFetcher())
    return fake


class TestHealth:
    """Tests for the health endpoints."""

    def test_root(self, client):
        assert client.get("/").json()["status"] == "ok"

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}


class TestProvisionEndpoint:
    """Tests for POST /functions/provision."""

    def test_dry_run_submission(self, client, retell):
        response = client.post("/functions/provision", json=ACME_INTAKE)

        assert response.status_code == 200
        body = response.json()
        assert body["ok"] is True
        assert body["dry_run"] is True
        assert body["agent_id"] == "agent_2"
        assert body["llm_id"] == "llm_1"
        assert body["phone_number"] == DRY_RUN_PHONE_PLACEHOLDER
        assert body["scheduling_enabled"] is False
        assert body["variables"]["business_name"] == "Acme Paving"
        assert retell.calls_to("create_phone_number") == []

        prompt = retell.calls_to("create_retell_llm")[0]["general_prompt"]
        assert "Scheduling is NOT enabled" in prompt
        assert "EMERGENCY DISPATCH PROTOCOL" not in prompt
        assert "Acme Paving" in prompt

    def test_minimal_test_mode_submission(self, client, retell):
        response = client.post("/functions/provision", json={
            "business_name": "Acme Paving",
            "website": "not provided",
            "scheduling_details": "Calandar: not provided",
            "is_test_mode": "true",
        })

        body = response.json()
        assert body["ok"] is True
        assert body["agent_id"]
        assert body["phone_number"] == DRY_RUN_PHONE_PLACEHOLDER
        assert retell.calls_to("create_phone_number") == []
        assert retell.calls_to("update_phone_number") == []
        assert "Scheduling is NOT enabled" in retell.calls_to("create_retell_llm")[0]["general_prompt"]

    def test_empty_body(self, client, retell):
        response = client.post("/functions/provision", content=b"")
        assert response.status_code == 200
        assert response.json()["variables"]["business_name"] == "Client Business"

    def test_upstream_failure(self, client, monkeypatch):
        fake = FakeRetellClient(failures={
            "create_retell_llm": RetellAPIError("Retell API request failed: 500", status_code=500)
        })
        monkeypatch.setattr(sys.modules["src.functions.provision_agent"], "RetellClient", lambda: fake)
        monkeypatch.setattr(sys.modules["src.functions.provision_agent"], "WebsiteContextFetcher", lambda: FakeFetcher())

        response = client.post("/functions/provision", json=ACME_INTAKE)

        assert response.status_code == 502
        body = response.json()
        assert body["ok"] is False
        assert body["error"].startswith("LLM creation failed")
        assert body["details"]["upstream_status"] == 500

    def test_options_preflight(self, client):
        response = client.options("/functions/provision")
        assert response.status_code == 200
        assert response.headers["Access-Control-Allow-Origin"] == "*"
        assert response.headers["Access-Control-Allow-Methods"] == "POST, GET, OPTIONS"
        assert response.headers["Access-Control-Allow-Headers"] == "Content-Type, Authorization"

    @pytest.mark.parametrize("method", ["get", "put", "patch", "delete"])
    def test_other_methods_rejected(self, client, method):
        response = getattr(client, method)("/functions/provision")
        assert response.status_code == 405
        assert response.json() == {"ok": False, "error": "Method not allowed"}


class TestWebCallEndpoint:
    """Tests for POST /functions/create-web-call."""

    def test_uses_body_agent(self, client, retell):
        response = client.post("/functions/create-web-call", json={"agent_id": "agent_abc"})

        assert response.status_code == 200
        assert response.json() == {"access_token": "tok_123", "call_id": "call_web_1", "agent_id": "agent_abc"}
        assert retell.calls_to("create_web_call")[0]["agent_id"] == "agent_abc"

    def test_falls_back_to_demo_agent(self, client, retell, monkeypatch):
        monkeypatch.setattr(settings, "retell_agent_id", "agent_demo")
        response = client.post("/functions/create-web-call", json={})
        assert response.json()["agent_id"] == "agent_demo"

    def test_missing_agent(self, client, retell):
        response = client.post("/functions/create-web-call", json={})
        assert response.status_code == 400
        assert response.json()["ok"] is False
        assert retell.calls_to("create_web_call") == []

    def test_malformed_body(self, client, retell):
        response = client.post("/functions/create-web-call", json={"agent_id": {"id": "agent_abc"}})

        assert response.status_code == 400
        body = response.json()
        assert body["ok"] is False
        assert body["error"] == "Invalid request body"
        assert body["details"]["errors"][0]["loc"] == ["body", "agent_id"]
        assert retell.calls_to("create_web_call") == []

    def test_missing_access_token(self, client, monkeypatch):
        fake = FakeRetellClient(responses={"create_web_call": {"call_id": "call_web_1"}})
        monkeypatch.setattr(sys.modules["src.functions.create_web_call"], "RetellClient", lambda: fake)

        response = client.post("/functions/create-web-call", json={"agent_id": "agent_abc"})
        assert response.status_code == 502


class TestReceiveLeadEndpoint:
    """Tests for POST /functions/receive-lead."""

    def test_echoes_normalized_lead(self, client):
        response = client.post("/functions/receive-lead", json={
            "full_name": "Dana Smith",
            "email": "dana@example.com",
            "phone": "508-555-0199",
            "company_name": "Acme Paving",
            "plan": "Full Staff",
        })

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["received_at"]
        assert body["lead"]["name"] == "Dana Smith"
        assert body["lead"]["email"] == "dana@example.com"
        assert body["lead"]["business_name"] == "Acme Paving"
        assert body["lead"]["package_type"] == "Full Staff"

    def test_missing_fields_are_null(self, client):
        body = client.post("/functions/receive-lead", json={"email": "null"}).json()
        assert body["lead"]["email"] is None
        assert body["lead"]["name"] is None
