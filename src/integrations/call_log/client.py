"""
Structured call log.
Posts one record per call event to an automation webhook (Zapier, Make,
Airtable automation...) that stores it as a row.
"""
from typing import Dict, Any, Optional
import httpx
from src.config import settings
from src.utils.errors import CallLogAPIError
from src.utils.logging import logger

CALL_LOG_TIMEOUT = 10.0


class CallLogClient:
    def __init__(
        self,
        webhook_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.webhook_url = webhook_url or settings.call_log_webhook_url
        self.transport = transport

    def is_configured(self) -> bool:
        return bool(self.webhook_url)

    async def create_record(
        self,
        business: str,
        caller: Optional[str],
        status: str,
        summary: Optional[str],
        recording_url: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None
    ) -> bool:
        """
        Store a call record.

        Returns:
            True if the record was accepted, False if no log webhook is configured
        """
        if not self.webhook_url:
            logger.warning("⚠️  Call log webhook URL not configured")
            return False

        payload = {
            "business": business,
            "caller": caller or "Unknown",
            "status": status,
            "summary": summary or "",
            "recording_url": recording_url or "",
            **(extra or {})
        }

        try:
            async with httpx.AsyncClient(timeout=CALL_LOG_TIMEOUT, transport=self.transport) as client:
                response = await client.post(self.webhook_url, json=payload)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"❌ Call log webhook rejected record: {e.response.status_code} - {e.response.text}")
            raise CallLogAPIError(
                f"Call log request failed: {e.response.status_code}",
                details={"response": e.response.text}
            )
        except httpx.RequestError as e:
            logger.error(f"❌ Failed to reach call log webhook: {e}")
            raise CallLogAPIError(f"Call log request failed: {str(e)}")

        logger.info(f"✅ Call log record stored for {business} ({status})")
        return True
