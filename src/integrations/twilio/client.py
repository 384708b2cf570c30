from twilio.rest import Client as TwilioClient
from twilio.base.exceptions import TwilioException
from typing import Optional, Dict, Any
from src.config import settings
from src.utils.errors import TwilioAPIError
from src.utils.logging import logger
from src.utils.phone_normalize import to_e164

# Twilio rejects bodies longer than this
MAX_SMS_LENGTH = 1600


class TwilioService:
    """SMS alerts to business owners. Synchronous; call from async code via asyncio.to_thread."""

    def __init__(self, client: Optional[Any] = None):
        self.phone_number = settings.twilio_phone_number
        self.client = client or self._build_client()

    @staticmethod
    def _build_client() -> Optional[TwilioClient]:
        account_sid = settings.get_twilio_account_sid()
        auth_token = settings.twilio_auth_token
        if not account_sid or not auth_token:
            logger.debug("Twilio credentials not configured, SMS alerts disabled")
            return None
        if not settings.twilio_phone_number:
            logger.warning("⚠️  Twilio phone number not configured - SMS alerts will fail")
        return TwilioClient(account_sid, auth_token)

    def is_configured(self) -> bool:
        return bool(self.client and self.phone_number)

    def send_sms(self, to: str, message: str) -> Dict[str, Any]:
        """Send one alert SMS from TWILIO_PHONE_NUMBER."""
        if not self.is_configured():
            raise TwilioAPIError(
                "Twilio client not initialized. Set TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN and TWILIO_PHONE_NUMBER.",
                status_code=500
            )

        recipient = to_e164(to)
        if not recipient:
            raise TwilioAPIError(f"Invalid SMS recipient: {to}", status_code=400, details={"to": to})

        body = message if len(message) <= MAX_SMS_LENGTH else message[:MAX_SMS_LENGTH - 3] + "..."

        try:
            sent = self.client.messages.create(body=body, from_=self.phone_number, to=recipient)
        except TwilioException as e:
            code = getattr(e, "code", None)
            logger.error(f"❌ Twilio rejected SMS to {recipient}: {str(e)}")
            raise TwilioAPIError(
                f"SMS send failed: {str(e)}",
                details={"twilio_code": code, "to": recipient}
            )

        logger.info(f"✅ SMS alert sent to {recipient}, SID: {sent.sid}")
        return {"success": True, "message_sid": sent.sid, "status": sent.status}
