"""Tests for the Retell REST client."""

import json

import httpx
import pytest

from src.config import settings
from src.integrations.retell import RetellClient
from src.utils.errors import ConfigurationError, RetellAPIError


def make_client(handler):
    return RetellClient(
        api_key="key_test_123456",
        base_url="https://retell.test/",
        transport=httpx.MockTransport(handler)
    )


class TestRetellClient:
    """Tests for request building and error mapping."""

    def test_missing_api_key(self, monkeypatch):
        monkeypatch.setattr(settings, "retell_api_key", None)
        with pytest.raises(ConfigurationError, match="RETELL_API_KEY"):
            RetellClient()

    @pytest.mark.asyncio
    async def test_create_retell_llm(self):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["path"] = request.url.path
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json={"llm_id": "llm_abc"})

        result = await make_client(handler).create_retell_llm("PROMPT", begin_message="Hello")

        assert result == {"llm_id": "llm_abc"}
        assert seen["method"] == "POST"
        assert seen["path"] == "/create-retell-llm"
        assert seen["auth"] == "Bearer key_test_123456"
        assert seen["body"] == {"general_prompt": "PROMPT", "model": settings.retell_llm_model, "begin_message": "Hello"}

    @pytest.mark.asyncio
    async def test_create_agent_payload(self):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json={"agent_id": "agent_abc", "version": 0})

        await make_client(handler).create_agent("Acme - Allie", "11labs-Adrian", "llm_abc", {"role_id": "receptionist"})

        assert seen["body"]["response_engine"] == {"type": "retell-llm", "llm_id": "llm_abc"}
        assert seen["body"]["voice_id"] == "11labs-Adrian"
        assert seen["body"]["metadata"] == {"role_id": "receptionist"}

    @pytest.mark.asyncio
    async def test_create_phone_number_area_code_is_numeric(self):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json={"phone_number": "+15085550100"})

        await make_client(handler).create_phone_number(area_code="508", nickname="Acme", inbound_agent_id="agent_abc")
        assert seen["body"] == {"area_code": 508, "nickname": "Acme", "inbound_agent_id": "agent_abc"}

    @pytest.mark.asyncio
    async def test_update_phone_number_escapes_e164(self):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["raw_path"] = request.url.raw_path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={})

        await make_client(handler).update_phone_number("+15085550100", inbound_agent_id="agent_abc")

        assert seen["method"] == "PATCH"
        assert seen["raw_path"] == b"/update-phone-number/%2B15085550100"
        assert seen["body"] == {"inbound_agent_id": "agent_abc", "outbound_agent_id": "agent_abc"}

    @pytest.mark.asyncio
    async def test_create_phone_call_payload(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json={"call_id": "call_abc"})

        await make_client(handler).create_phone_call(
            "+15085550100", "+15085550199", agent_id="agent_abc", dynamic_variables={"business_name": "Acme"}
        )

        assert seen["path"] == "/v2/create-phone-call"
        assert seen["body"]["override_agent_id"] == "agent_abc"
        assert seen["body"]["retell_llm_dynamic_variables"] == {"business_name": "Acme"}

    @pytest.mark.asyncio
    async def test_get_agent(self):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["path"] = request.url.path
            return httpx.Response(200, json={"agent_id": "agent_abc", "metadata": {"client_email": "owner@acme.test"}})

        result = await make_client(handler).get_agent("agent_abc")

        assert seen == {"method": "GET", "path": "/get-agent/agent_abc"}
        assert result["metadata"]["client_email"] == "owner@acme.test"

    @pytest.mark.asyncio
    async def test_http_error_mapped(self):
        def handler(request):
            return httpx.Response(422, json={"message": "voice_id not found"})

        with pytest.raises(RetellAPIError) as exc_info:
            await make_client(handler).create_agent("Acme", "bad-voice", "llm_abc")

        assert exc_info.value.status_code == 422
        assert exc_info.value.details["response"] == {"message": "voice_id not found"}
        assert exc_info.value.details["endpoint"] == "create-agent"

    @pytest.mark.asyncio
    async def test_unauthorized(self):
        def handler(request):
            return httpx.Response(401, text="unauthorized")

        with pytest.raises(RetellAPIError, match="invalid") as exc_info:
            await make_client(handler).create_web_call("agent_abc")
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("slow upstream", request=request)

        with pytest.raises(RetellAPIError, match="timed out") as exc_info:
            await make_client(handler).create_retell_llm("PROMPT")
        assert exc_info.value.status_code == 504

    @pytest.mark.asyncio
    async def test_empty_body(self):
        def handler(request):
            return httpx.Response(204)

        assert await make_client(handler).update_phone_number("pn_1", inbound_agent_id="agent_abc") == {}
