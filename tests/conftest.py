"""Shared fixtures and in-process fakes for the voice platform and notification sinks."""
import os

os.environ.setdefault("RETELL_API_KEY", "test-retell-key")
os.environ.setdefault("ENVIRONMENT", "test")

import pytest

from src.config import settings
from src.utils.errors import RetellAPIError


class FakeRetellClient:
    """Records every call; responses and failures are configurable per method."""

    def __init__(self, responses=None, failures=None, bind_failures=(), nth_failures=None):
        self.calls = []
        self.responses = responses or {}
        self.failures = failures or {}
        self.bind_failures = set(bind_failures)
        # method -> (n, error): only the nth call to the method fails
        self.nth_failures = nth_failures or {}
        self._counter = 0

    def _next_id(self, prefix):
        self._counter += 1
        return f"{prefix}_{self._counter}"

    def _record(self, method, **kwargs):
        self.calls.append((method, kwargs))
        if method in self.failures:
            raise self.failures[method]
        if method in self.nth_failures:
            n, error = self.nth_failures[method]
            if len(self.calls_to(method)) == n:
                raise error

    def calls_to(self, method):
        return [kwargs for name, kwargs in self.calls if name == method]

    async def create_retell_llm(self, general_prompt, begin_message=None, model=None):
        self._record("create_retell_llm", general_prompt=general_prompt, begin_message=begin_message, model=model)
        return self.responses.get("create_retell_llm", {"llm_id": self._next_id("llm")})

    async def create_agent(self, agent_name, voice_id, llm_id, metadata=None):
        self._record("create_agent", agent_name=agent_name, voice_id=voice_id, llm_id=llm_id, metadata=metadata)
        return self.responses.get("create_agent", {"agent_id": self._next_id("agent"), "version": 0})

    async def create_phone_number(self, area_code=None, nickname=None, inbound_agent_id=None):
        self._record("create_phone_number", area_code=area_code, nickname=nickname, inbound_agent_id=inbound_agent_id)
        return self.responses.get(
            "create_phone_number",
            {"phone_number": "+15085550100", "phone_number_id": "pn_1"}
        )

    async def update_phone_number(self, number_or_id, inbound_agent_id, outbound_agent_id=None):
        self._record(
            "update_phone_number",
            number_or_id=number_or_id,
            inbound_agent_id=inbound_agent_id,
            outbound_agent_id=outbound_agent_id
        )
        if number_or_id in self.bind_failures:
            raise RetellAPIError("Retell API request failed: 404", status_code=404)
        return {"phone_number": number_or_id}

    async def create_phone_call(self, from_number, to_number, agent_id=None, dynamic_variables=None, metadata=None):
        self._record(
            "create_phone_call",
            from_number=from_number,
            to_number=to_number,
            agent_id=agent_id,
            dynamic_variables=dynamic_variables,
            metadata=metadata
        )
        return self.responses.get("create_phone_call", {"call_id": "call_out_1"})

    async def get_agent(self, agent_id):
        self._record("get_agent", agent_id=agent_id)
        return self.responses.get("get_agent", {"agent_id": agent_id, "metadata": {}})

    async def create_web_call(self, agent_id, metadata=None):
        self._record("create_web_call", agent_id=agent_id, metadata=metadata)
        return self.responses.get("create_web_call", {"access_token": "tok_123", "call_id": "call_web_1"})


class FakeFetcher:
    def __init__(self, excerpt=None):
        self.excerpt = excerpt
        self.urls = []

    async def fetch(self, url):
        self.urls.append(url)
        return self.excerpt


class FakeCallLog:
    def __init__(self, error=None):
        self.records = []
        self.error = error

    async def create_record(self, **kwargs):
        if self.error:
            raise self.error
        self.records.append(kwargs)
        return True


class FakeEmail:
    def __init__(self, error=None):
        self.sent = []
        self.error = error

    def is_configured(self):
        return True

    async def send_email(self, to, subject, html):
        if self.error:
            raise self.error
        self.sent.append({"to": to, "subject": subject, "html": html})
        return {"success": True}


class FakeTwilio:
    def __init__(self, error=None):
        self.sent = []
        self.error = error

    def is_configured(self):
        return True

    def send_sms(self, to, message, from_number=None):
        if self.error:
            raise self.error
        self.sent.append({"to": to, "message": message})
        return {"success": True, "message_sid": "SM123"}


@pytest.fixture
def fake_retell():
    return FakeRetellClient()


@pytest.fixture
def fake_fetcher():
    return FakeFetcher()


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Keep tests independent of whatever is in the developer's environment."""
    monkeypatch.setattr(settings, "retell_webhook_secret", None)
    monkeypatch.setattr(settings, "retell_from_number", None)
    monkeypatch.setattr(settings, "retell_agent_id", None)
    monkeypatch.setattr(settings, "default_area_code", "508")
    monkeypatch.setattr(settings, "default_agent_name", "Allie")
    monkeypatch.setattr(settings, "min_call_duration_ms", 20000)
    monkeypatch.setattr(settings, "min_lead_summary_length", 65)
