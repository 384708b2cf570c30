"""
Builds the business profile and protocol blocks from an intake record.
"""
from typing import Any, Dict

from src.config import settings
from src.intake.fields import IntakeRecord
from src.models import BusinessProfile, PackageType, ProtocolBlock, ProtocolKind
from src.utils.sanitize import NOT_PROVIDED, clean, normalize_url

DEFAULT_BUSINESS_NAME = "Client Business"

_PROTOCOL_FIELDS = {
    ProtocolKind.SCHEDULING: "scheduling_details",
    ProtocolKind.EMERGENCY: "emergency_details",
    ProtocolKind.INTAKE: "intake_details",
    ProtocolKind.LEAD_REVIVAL: "lead_revival_details",
}


def resolve_package_type(value: Any) -> PackageType:
    """
    Map free-form plan names to a package.
    "Full Staff", "bundle" and "digital_staff" plans get the whole team.
    """
    text = clean(value).lower()
    if any(marker in text for marker in ("full", "bundle", "digital_staff")):
        return PackageType.FULL_STAFF
    if "custom" in text:
        return PackageType.CUSTOM
    return PackageType.RECEPTIONIST


def build_business_profile(record: IntakeRecord) -> BusinessProfile:
    business_name = record.text("business_name", DEFAULT_BUSINESS_NAME)
    if business_name == NOT_PROVIDED:
        business_name = DEFAULT_BUSINESS_NAME

    voice_id = record.text("voice_id", settings.default_voice_id)
    if voice_id == NOT_PROVIDED:
        voice_id = settings.default_voice_id

    return BusinessProfile(
        business_name=business_name,
        website=normalize_url(record.get("website")),
        business_hours=record.text("business_hours"),
        services=record.text("services"),
        service_area=record.text("service_area"),
        time_zone=record.text("time_zone"),
        contact_name=record.text("contact_name"),
        contact_email=record.text("contact_email"),
        contact_phone=record.text("contact_phone"),
        extra_notes=record.text("extra_notes"),
        package_type=resolve_package_type(record.get("package_type")),
        voice_id=voice_id,
    )


def build_protocol_blocks(record: IntakeRecord) -> Dict[ProtocolKind, ProtocolBlock]:
    """
    Scheduling is enabled only when the detail text yields a booking URL.
    The other blocks are enabled whenever their detail text is not junk.
    """
    blocks: Dict[ProtocolKind, ProtocolBlock] = {}
    for kind, field in _PROTOCOL_FIELDS.items():
        detail = record.detail(field)
        if kind == ProtocolKind.SCHEDULING:
            url = normalize_url(detail) if detail != NOT_PROVIDED else NOT_PROVIDED
            enabled = url != NOT_PROVIDED
            blocks[kind] = ProtocolBlock(
                kind=kind,
                detail=detail,
                enabled=enabled,
                url=url if enabled else None,
            )
        else:
            blocks[kind] = ProtocolBlock(kind=kind, detail=detail, enabled=detail != NOT_PROVIDED)
    return blocks
