"""
Post-call webhook from the voice platform.

Pipeline per event: authenticate -> de-duplicate -> decide -> fan out to the
call log, email and SMS sinks. Every sink is best effort; the platform always
gets a 200 (except on auth failure) so it does not retry-storm us.
"""
import asyncio
import html
import json
from typing import Any, Awaitable, Callable, Dict, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from src.config import settings
from src.integrations.call_log import CallLogClient
from src.integrations.email import EmailService
from src.integrations.retell import RetellClient
from src.integrations.twilio import TwilioService
from src.models import CallAnalysis, CallEvent, CallEventType, NotificationDecision
from src.utils.call_dedup import DedupStore, get_dedup_store
from src.utils.errors import APIError, AuthenticationError, ValidationError, handle_api_error
from src.utils.logging import logger
from src.utils.webhook_security import verify_shared_secret

router = APIRouter()

PROCESSED_EVENTS = {CallEventType.CALL_ENDED, CallEventType.CALL_ANALYZED}

# Commercial-intent words that make a summary look like a sales lead
LEAD_KEYWORDS = (
    "quote", "estimate", "pricing", "price", "appointment", "schedule", "book",
    "install", "replace", "repair", "new customer", "interested", "project",
    "proposal", "service call", "come out",
)

URGENT_KEYS = ("is_urgent", "urgent", "emergency")
CALLBACK_KEYS = ("callback_requested", "wants_callback", "callback_request", "requested_callback")

# Keys the sinks read from call metadata; missing ones are filled from the agent
NOTIFICATION_KEYS = ("business_name", "client_email", "notify_phone")


def _is_set(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return isinstance(value, str) and value.strip().lower() in {"true", "yes", "1"}


def _analysis_flag(analysis: CallAnalysis, keys) -> bool:
    """
    Look for a truthy flag on the analysis, its extra fields, or its custom data.

    Each source is checked on its own; a flag set anywhere counts.
    """
    typed = {"is_urgent": analysis.is_urgent, "callback_requested": analysis.callback_requested}
    sources = (typed, analysis.model_extra or {}, analysis.custom_analysis_data or {})
    return any(_is_set(source.get(key)) for source in sources for key in keys)


def evaluate_needs(
    event: CallEvent,
    min_duration_ms: Optional[int] = None,
    min_summary_length: Optional[int] = None
) -> NotificationDecision:
    """Decide whether a finished call deserves an SMS alert."""
    min_duration_ms = settings.min_call_duration_ms if min_duration_ms is None else min_duration_ms
    min_summary_length = settings.min_lead_summary_length if min_summary_length is None else min_summary_length

    if event.event != CallEventType.CALL_ANALYZED:
        return NotificationDecision(notify=False, reason="not_final_event", tier="info")

    if event.call_duration_ms < min_duration_ms:
        return NotificationDecision(notify=False, reason="short_call", tier="info")

    analysis = event.call_analysis or CallAnalysis()
    if _analysis_flag(analysis, URGENT_KEYS):
        return NotificationDecision(notify=True, reason="urgent", tier="urgent")
    if _analysis_flag(analysis, CALLBACK_KEYS):
        return NotificationDecision(notify=True, reason="callback_requested", tier="urgent")

    summary = (analysis.call_summary or "").strip()
    summary_lower = summary.lower()
    if len(summary) > min_summary_length and any(keyword in summary_lower for keyword in LEAD_KEYWORDS):
        return NotificationDecision(notify=True, reason="likely_lead", tier="lead")

    return NotificationDecision(notify=False, reason="no_action_needed", tier="info")


def _metadata_value(event: CallEvent, *keys: str) -> Optional[str]:
    for key in keys:
        value = event.metadata.get(key)
        if value not in (None, ""):
            return str(value)
    return None


class CallEventProcessor:
    def __init__(
        self,
        dedup_store: DedupStore,
        twilio: Optional[TwilioService] = None,
        email: Optional[EmailService] = None,
        call_log: Optional[CallLogClient] = None,
        agents: Optional[RetellClient] = None
    ):
        self.dedup_store = dedup_store
        self.twilio = twilio
        self.email = email
        self.call_log = call_log
        self.agents = agents

    async def with_agent_metadata(self, event: CallEvent) -> CallEvent:
        """
        Fill missing notification targets from the agent's own metadata.

        Calls placed through the API carry the targets on the call. Inbound
        calls do not, so they are looked up on the agent that answered.
        Values on the call always win.
        """
        if not self.agents or not event.agent_id:
            return event
        if all(_metadata_value(event, key) for key in NOTIFICATION_KEYS):
            return event
        try:
            agent = await self.agents.get_agent(event.agent_id)
        except APIError as e:
            logger.warning(f"⚠️  Agent lookup failed for {event.agent_id}: {e.message}")
            return event

        agent_metadata = agent.get("metadata") if isinstance(agent.get("metadata"), dict) else {}
        merged = {key: value for key, value in agent_metadata.items() if value not in (None, "")}
        merged.update({key: value for key, value in event.metadata.items() if value not in (None, "")})
        return event.model_copy(update={"metadata": merged})

    async def _run_sink(self, name: str, send: Optional[Callable[[], Awaitable[Any]]]) -> str:
        """Run one sink in isolation. Returns "sent", "skipped" or "failed"."""
        if send is None:
            return "skipped"
        try:
            result = await send()
        except APIError as e:
            logger.warning(f"⚠️  {name} notification failed: {e.message}")
            return "failed"
        except Exception:
            logger.exception(f"❌ Unexpected error in {name} notification")
            return "failed"
        return "skipped" if result is False else "sent"

    def _log_sink(self, event: CallEvent, decision: NotificationDecision):
        if not self.call_log:
            return None
        summary = event.call_analysis.call_summary if event.call_analysis else None
        return lambda: self.call_log.create_record(
            business=_metadata_value(event, "business_name") or "Unknown business",
            caller=event.from_number,
            status=f"{event.event.value}:{decision.reason}",
            summary=summary,
            recording_url=event.recording_url,
            extra={"call_id": event.call_id, "duration_ms": event.call_duration_ms}
        )

    def _email_sink(self, event: CallEvent, decision: NotificationDecision):
        client_email = _metadata_value(event, "client_email", "email")
        if not self.email or not self.email.is_configured() or not client_email:
            return None
        if event.event != CallEventType.CALL_ANALYZED:
            return None
        business = _metadata_value(event, "business_name") or "your business"
        caller = event.from_number or "Unknown caller"
        subject = f"Call summary for {business}: {caller}"
        return lambda: self.email.send_email(
            to=client_email,
            subject=subject,
            html=render_summary_email(event, decision, business)
        )

    def _sms_sink(self, event: CallEvent, decision: NotificationDecision):
        notify_phone = _metadata_value(event, "notify_phone", "owner_phone")
        if not self.twilio or not self.twilio.is_configured() or not notify_phone:
            return None
        if not decision.notify:
            return None
        message = render_alert_sms(event, decision)
        return lambda: asyncio.to_thread(self.twilio.send_sms, notify_phone, message)

    async def process(self, event: CallEvent) -> Dict[str, Any]:
        if event.event not in PROCESSED_EVENTS:
            logger.debug(f"Ignoring {event.event.value} for call {event.call_id}")
            return {"ok": True, "ignored": event.event.value, "call_id": event.call_id}

        self.dedup_store.expire()
        key = f"{event.call_id}:{event.event.value}"
        if not self.dedup_store.check_and_add(key):
            logger.info(f"🔁 Duplicate {event.event.value} for call {event.call_id}, skipping")
            return {"ok": True, "deduped": True, "call_id": event.call_id}

        event = await self.with_agent_metadata(event)
        decision = evaluate_needs(event)
        logger.info(
            f"📥 {event.event.value} for call {event.call_id}: notify={decision.notify} ({decision.reason})"
        )

        log_status, email_status, sms_status = await asyncio.gather(
            self._run_sink("call log", self._log_sink(event, decision)),
            self._run_sink("email", self._email_sink(event, decision)),
            self._run_sink("sms", self._sms_sink(event, decision)),
        )

        return {
            "ok": True,
            "call_id": event.call_id,
            "event": event.event.value,
            "decision": decision.model_dump(),
            "sinks": {"log": log_status, "email": email_status, "sms": sms_status},
        }


def render_alert_sms(event: CallEvent, decision: NotificationDecision) -> str:
    business = _metadata_value(event, "business_name") or "Your AI receptionist"
    caller = event.from_number or "unknown number"
    label = {"urgent": "URGENT call", "lead": "New lead"}.get(decision.tier, "Call")
    summary = event.call_analysis.call_summary if event.call_analysis else None
    message = f"{business}: {label} from {caller}."
    if summary:
        message += f" {summary[:300]}"
    if event.recording_url:
        message += f" Recording: {event.recording_url}"
    return message


def render_summary_email(event: CallEvent, decision: NotificationDecision, business: str) -> str:
    analysis = event.call_analysis or CallAnalysis()
    summary = analysis.call_summary or "No summary available."
    seconds = event.call_duration_ms // 1000
    rows = [
        ("Caller", event.from_number or "Unknown"),
        ("Duration", f"{seconds // 60}m {seconds % 60}s"),
        ("Follow-up needed", "Yes" if decision.notify else "No"),
        ("Reason", decision.reason.replace("_", " ")),
    ]
    if analysis.user_sentiment:
        rows.append(("Caller sentiment", analysis.user_sentiment))

    row_html = "".join(
        f"<tr><td><strong>{html.escape(label)}</strong></td><td>{html.escape(value)}</td></tr>"
        for label, value in rows
    )
    recording = (
        f'<p><a href="{html.escape(event.recording_url, quote=True)}">Listen to the recording</a></p>'
        if event.recording_url else ""
    )
    return (
        f"<h2>New call for {html.escape(business)}</h2>"
        f"<table>{row_html}</table>"
        f"<h3>Summary</h3><p>{html.escape(summary)}</p>"
        f"{recording}"
    )


def get_call_event_processor() -> CallEventProcessor:
    return CallEventProcessor(
        dedup_store=get_dedup_store(),
        twilio=TwilioService(),
        email=EmailService(),
        call_log=CallLogClient(),
        agents=RetellClient() if settings.retell_api_key else None,
    )


@router.post("/retell")
async def retell_webhook(
    request: Request,
    processor: CallEventProcessor = Depends(get_call_event_processor)
):
    """
    Handle call lifecycle events from Retell.

    Verifies the shared-secret header when RETELL_WEBHOOK_SECRET is configured.
    """
    if not verify_shared_secret(request.headers.get(settings.webhook_secret_header), settings.retell_webhook_secret):
        logger.warning("Webhook secret verification failed - rejecting request")
        raise AuthenticationError("Invalid webhook secret")

    try:
        body_bytes = await request.body()
        body = json.loads(body_bytes.decode("utf-8")) if body_bytes else {}
        if not isinstance(body, dict):
            raise ValidationError("Webhook body must be a JSON object")

        event_name = body.get("event")
        if event_name not in {event_type.value for event_type in CallEventType}:
            logger.info(f"Unhandled webhook event type: {event_name}")
            return {"ok": True, "ignored": event_name}

        try:
            event = CallEvent.from_payload(body)
        except PydanticValidationError as e:
            raise ValidationError("Invalid call event payload", details={"errors": e.errors(include_url=False)})

        return await processor.process(event)
    except ValidationError:
        raise
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON body: {e.msg}")
    except Exception as e:
        logger.exception(f"Webhook error: {str(e)}")
        error = handle_api_error(e)
        return JSONResponse(status_code=500, content={"ok": False, "error": error.message})
