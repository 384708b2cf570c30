from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional
from src.intake import IntakeRecord
from src.models import ReceivedLead, ReceiveLeadResponse
from src.utils.logging import logger
from src.utils.sanitize import NOT_PROVIDED


def _value(record: IntakeRecord, field: str) -> Optional[str]:
    text = record.text(field)
    return None if text == NOT_PROVIDED else text


async def receive_lead(body: Optional[Mapping[str, Any]]) -> ReceiveLeadResponse:
    """
    Acknowledge a lead pushed by the automation platform.
    Echoes back the normalized fields so the next automation step can map them.
    """
    raw: Dict[str, Any] = dict(body) if isinstance(body, Mapping) else {}
    record = IntakeRecord(raw)

    lead = ReceivedLead(
        name=_value(record, "contact_name"),
        email=_value(record, "contact_email"),
        phone=_value(record, "contact_phone"),
        business_name=_value(record, "business_name"),
        package_type=_value(record, "package_type"),
        raw=raw
    )
    logger.info(f"📥 Lead received: {lead.business_name or lead.name or 'unknown'}")

    return ReceiveLeadResponse(
        success=True,
        received_at=datetime.now(timezone.utc).isoformat(),
        lead=lead
    )
