from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Dict, Any
from enum import Enum

from src.utils.errors import ValidationError
from src.utils.sanitize import NOT_PROVIDED


class PackageType(str, Enum):
    RECEPTIONIST = "receptionist"
    FULL_STAFF = "full_staff"
    CUSTOM = "custom"


class ServingMode(str, Enum):
    RESIDENTIAL = "Residential"
    COMMERCIAL = "Commercial"
    BOTH = "Both"
    UNKNOWN = "Unknown"


class ProtocolKind(str, Enum):
    SCHEDULING = "scheduling"
    EMERGENCY = "emergency"
    INTAKE = "intake"
    LEAD_REVIVAL = "lead_revival"


class CallEventType(str, Enum):
    CALL_STARTED = "call_started"
    CALL_ENDED = "call_ended"
    CALL_ANALYZED = "call_analyzed"
    CALL_INBOUND = "call_inbound"


# Intake-derived models
class BusinessProfile(BaseModel):
    """Resolved business profile. Every text field is a real value or "Not provided"."""
    model_config = ConfigDict(frozen=True)

    business_name: str
    website: str = NOT_PROVIDED
    business_hours: str = NOT_PROVIDED
    services: str = NOT_PROVIDED
    service_area: str = NOT_PROVIDED
    time_zone: str = NOT_PROVIDED
    contact_name: str = NOT_PROVIDED
    contact_email: str = NOT_PROVIDED
    contact_phone: str = NOT_PROVIDED
    extra_notes: str = NOT_PROVIDED
    package_type: PackageType = PackageType.RECEPTIONIST
    voice_id: str


class WebsiteFacts(BaseModel):
    service_area: List[str] = Field(default_factory=list)
    services: List[str] = Field(default_factory=list)
    serving_mode: ServingMode = ServingMode.UNKNOWN

    def is_empty(self) -> bool:
        return (
            not self.service_area
            and not self.services
            and self.serving_mode == ServingMode.UNKNOWN
        )


class ProtocolBlock(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: ProtocolKind
    detail: str = NOT_PROVIDED
    enabled: bool = False
    url: Optional[str] = None  # Scheduling only: the booking link


class AgentSpec(BaseModel):
    """Final configuration submitted to the voice platform. Write-once."""
    model_config = ConfigDict(frozen=True)

    prompt_text: str
    greeting_text: str
    voice_id: str
    agent_name: str
    metadata: Dict[str, str] = Field(default_factory=dict)


class StaffRole(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    role_display: str
    role_id: str
    mission: str


# Provisioning
class ProvisioningResult(BaseModel):
    role_id: str
    role_display: str
    agent_name: str
    llm_id: str
    agent_id: str
    agent_version: Optional[int] = None
    phone_number: Optional[str] = None
    phone_number_id: Optional[str] = None
    outbound_call_id: Optional[str] = None
    outbound_call_error: Optional[str] = None
    dry_run: bool = False
    warnings: List[str] = Field(default_factory=list)


class ProvisionResponse(BaseModel):
    ok: bool = True
    package: PackageType
    dry_run: bool
    agent_id: str
    llm_id: str
    agent_version: Optional[int] = None
    phone_number: Optional[str] = None
    outbound_call_id: Optional[str] = None
    outbound_call_error: Optional[str] = None
    scheduling_enabled: bool = False
    agents: List[ProvisioningResult] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    variables: Dict[str, str] = Field(default_factory=dict)


class CreateWebCallRequest(BaseModel):
    agent_id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(extra="ignore")


class CreateWebCallResponse(BaseModel):
    access_token: str
    call_id: Optional[str] = None
    agent_id: str


class ReceivedLead(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    business_name: Optional[str] = None
    package_type: Optional[str] = None
    raw: Dict[str, Any] = Field(default_factory=dict)


class ReceiveLeadResponse(BaseModel):
    success: bool
    received_at: str
    lead: ReceivedLead


# Webhook models
class CallAnalysis(BaseModel):
    model_config = ConfigDict(extra="allow")

    call_summary: Optional[str] = None
    user_sentiment: Optional[str] = None
    call_successful: Optional[bool] = None
    is_urgent: Optional[bool] = None
    callback_requested: Optional[bool] = None
    custom_analysis_data: Dict[str, Any] = Field(default_factory=dict)


class CallEvent(BaseModel):
    model_config = ConfigDict(extra="ignore")

    call_id: str
    event: CallEventType
    call_duration_ms: int = 0
    metadata: Dict[str, Any] = Field(default_factory=dict)
    call_analysis: Optional[CallAnalysis] = None
    agent_id: Optional[str] = None
    from_number: Optional[str] = None
    to_number: Optional[str] = None
    recording_url: Optional[str] = None

    @classmethod
    def from_payload(cls, body: Dict[str, Any]) -> "CallEvent":
        """
        Accept both the flat shape and the platform envelope
        {"event": "...", "call": {...}}.
        """
        call = body.get("call") if isinstance(body.get("call"), dict) else {}
        merged: Dict[str, Any] = {**call, **{k: v for k, v in body.items() if k != "call"}}

        if merged.get("call_duration_ms") is None:
            start = call.get("start_timestamp")
            end = call.get("end_timestamp")
            duration = call.get("duration_ms")
            if duration is not None:
                merged["call_duration_ms"] = duration
            elif start is not None and end is not None:
                try:
                    merged["call_duration_ms"] = max(int(end) - int(start), 0)
                except (TypeError, ValueError):
                    raise ValidationError(
                        "Invalid call timestamps",
                        details={"start_timestamp": start, "end_timestamp": end}
                    )
            else:
                merged["call_duration_ms"] = 0
        if merged.get("metadata") is None:
            merged["metadata"] = {}
        return cls.model_validate(merged)


class NotificationDecision(BaseModel):
    notify: bool
    reason: str
    tier: str  # "urgent", "lead" or "info"
