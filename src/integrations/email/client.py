import httpx
from typing import Dict, Any, List, Optional, Union
from src.config import settings
from src.utils.errors import EmailAPIError
from src.utils.logging import logger

EMAIL_TIMEOUT = 10.0


class EmailService:
    """Transactional email over the provider's REST API (Resend-compatible)."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        from_address: Optional[str] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.api_key = api_key or settings.email_api_key
        self.from_address = from_address or settings.email_from
        self.base_url = (base_url or settings.email_api_base_url).rstrip("/")
        self.transport = transport

        if not self.api_key or not self.from_address:
            logger.debug("Email sink not configured (EMAIL_API_KEY / EMAIL_FROM)")

    def is_configured(self) -> bool:
        return bool(self.api_key and self.from_address)

    async def send_email(
        self,
        to: Union[str, List[str]],
        subject: str,
        html: str
    ) -> Dict[str, Any]:
        if not self.is_configured():
            raise EmailAPIError(
                "Email provider not configured. Set EMAIL_API_KEY and EMAIL_FROM.",
                status_code=500
            )

        recipients = [to] if isinstance(to, str) else list(to)
        payload = {
            "from": self.from_address,
            "to": recipients,
            "subject": subject,
            "html": html
        }
        try:
            async with httpx.AsyncClient(timeout=EMAIL_TIMEOUT, transport=self.transport) as client:
                response = await client.post(
                    f"{self.base_url}/emails",
                    json=payload,
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json"
                    }
                )
                response.raise_for_status()
                result = response.json() if response.content else {}
        except httpx.HTTPStatusError as e:
            logger.error(f"❌ Email API error: {e.response.status_code} - {e.response.text}")
            raise EmailAPIError(
                f"Email send failed: {e.response.status_code}",
                details={"response": e.response.text, "to": recipients}
            )
        except httpx.RequestError as e:
            logger.error(f"❌ Email API request error: {str(e)}")
            raise EmailAPIError(f"Email send failed: {str(e)}", details={"to": recipients})

        logger.info(f"✅ Email sent to {', '.join(recipients)}: {subject}")
        return {"success": True, "message_id": result.get("id")}
