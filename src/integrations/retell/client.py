import httpx
from typing import Dict, Any, Optional
from urllib.parse import quote
from src.config import settings
from src.utils.errors import ConfigurationError, RetellAPIError
from src.utils.logging import logger

# Per-call timeouts (seconds); the serverless entry point itself times out around 10-30s
CREATE_TIMEOUT = 12.0
BIND_TIMEOUT = 7.0
CALL_TIMEOUT = 15.0
WEB_CALL_TIMEOUT = 10.0


class RetellClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.api_key = api_key or settings.retell_api_key
        if not self.api_key:
            logger.error("⚠️  RETELL_API_KEY not configured in environment variables")
            raise ConfigurationError(
                "Retell API key not configured. Please set RETELL_API_KEY in the environment."
            )

        # Log first 8 chars of key for debugging (without exposing full key)
        key_preview = self.api_key[:8] + "..." if len(self.api_key) > 8 else self.api_key
        logger.debug(f"🔑 Using Retell API key: {key_preview} (length: {len(self.api_key)})")

        self.base_url = (base_url or settings.retell_base_url).rstrip("/")
        self.transport = transport
        self.headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }

    async def _request(
        self,
        method: str,
        endpoint: str,
        data: Optional[Dict[str, Any]] = None,
        timeout: float = 30.0
    ) -> Dict[str, Any]:
        url = f"{self.base_url}/{endpoint}"
        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self.transport) as client:
                response = await client.request(
                    method=method,
                    url=url,
                    headers=self.headers,
                    json=data
                )
                response.raise_for_status()
                if not response.content:
                    return {}
                return response.json()
        except httpx.HTTPStatusError as e:
            error_text = e.response.text
            try:
                error_payload = e.response.json()
            except ValueError:
                error_payload = error_text
            logger.error(f"Retell API error: {method} {endpoint} -> {e.response.status_code} - {error_text}")

            if e.response.status_code == 401:
                raise RetellAPIError(
                    "Retell API key is invalid. Check RETELL_API_KEY.",
                    status_code=401,
                    details={"response": error_payload, "endpoint": endpoint}
                )

            raise RetellAPIError(
                f"Retell API request failed: {e.response.status_code}",
                status_code=e.response.status_code,
                details={"response": error_payload, "endpoint": endpoint}
            )
        except httpx.TimeoutException as e:
            logger.error(f"Retell API timeout after {timeout}s: {method} {endpoint}")
            raise RetellAPIError(
                f"Retell API request timed out after {timeout:.0f}s",
                status_code=504,
                details={"endpoint": endpoint, "error": str(e) or e.__class__.__name__}
            )
        except httpx.RequestError as e:
            logger.error(f"Retell API request error: {str(e)}")
            raise RetellAPIError(
                f"Retell API request failed: {str(e)}",
                status_code=502,
                details={"endpoint": endpoint}
            )

    async def create_retell_llm(
        self,
        general_prompt: str,
        begin_message: Optional[str] = None,
        model: Optional[str] = None
    ) -> Dict[str, Any]:
        """Create the LLM ("brain") that backs an agent"""
        payload: Dict[str, Any] = {
            "general_prompt": general_prompt,
            "model": model or settings.retell_llm_model
        }
        if begin_message:
            payload["begin_message"] = begin_message
        return await self._request("POST", "create-retell-llm", data=payload, timeout=CREATE_TIMEOUT)

    async def create_agent(
        self,
        agent_name: str,
        voice_id: str,
        llm_id: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Create a voice agent bound to an LLM"""
        payload = {
            "agent_name": agent_name,
            "voice_id": voice_id,
            "response_engine": {"type": "retell-llm", "llm_id": llm_id},
            "metadata": metadata or {}
        }
        return await self._request("POST", "create-agent", data=payload, timeout=CREATE_TIMEOUT)

    async def create_phone_number(
        self,
        area_code: Optional[str] = None,
        nickname: Optional[str] = None,
        inbound_agent_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """Buy a phone number. This is billable."""
        payload: Dict[str, Any] = {}
        if area_code:
            payload["area_code"] = int(area_code)
        if nickname:
            payload["nickname"] = nickname
        if inbound_agent_id:
            payload["inbound_agent_id"] = inbound_agent_id
        return await self._request("POST", "create-phone-number", data=payload, timeout=CREATE_TIMEOUT)

    async def update_phone_number(
        self,
        number_or_id: str,
        inbound_agent_id: str,
        outbound_agent_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """Bind a number (by E.164 number or internal id) to an agent"""
        payload = {
            "inbound_agent_id": inbound_agent_id,
            "outbound_agent_id": outbound_agent_id or inbound_agent_id
        }
        return await self._request(
            "PATCH",
            f"update-phone-number/{quote(number_or_id, safe='')}",
            data=payload,
            timeout=BIND_TIMEOUT
        )

    async def get_agent(self, agent_id: str) -> Dict[str, Any]:
        """Fetch an agent, including the metadata stored on it at creation"""
        return await self._request("GET", f"get-agent/{quote(agent_id, safe='')}", timeout=WEB_CALL_TIMEOUT)

    async def create_phone_call(
        self,
        from_number: str,
        to_number: str,
        agent_id: Optional[str] = None,
        dynamic_variables: Optional[Dict[str, str]] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Place an outbound call"""
        payload: Dict[str, Any] = {
            "from_number": from_number,
            "to_number": to_number
        }
        if agent_id:
            payload["override_agent_id"] = agent_id
        if dynamic_variables:
            payload["retell_llm_dynamic_variables"] = dynamic_variables
        if metadata:
            payload["metadata"] = metadata
        return await self._request("POST", "v2/create-phone-call", data=payload, timeout=CALL_TIMEOUT)

    async def create_web_call(
        self,
        agent_id: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Create a browser call; returns an access token for the web SDK"""
        payload: Dict[str, Any] = {"agent_id": agent_id}
        if metadata:
            payload["metadata"] = metadata
        return await self._request("POST", "v2/create-web-call", data=payload, timeout=WEB_CALL_TIMEOUT)
