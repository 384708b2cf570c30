from .schemas import (
    PackageType,
    ServingMode,
    ProtocolKind,
    CallEventType,
    BusinessProfile,
    WebsiteFacts,
    ProtocolBlock,
    AgentSpec,
    StaffRole,
    ProvisioningResult,
    ProvisionResponse,
    CreateWebCallRequest,
    CreateWebCallResponse,
    ReceivedLead,
    ReceiveLeadResponse,
    CallAnalysis,
    CallEvent,
    NotificationDecision,
)

__all__ = [
    "PackageType",
    "ServingMode",
    "ProtocolKind",
    "CallEventType",
    "BusinessProfile",
    "WebsiteFacts",
    "ProtocolBlock",
    "AgentSpec",
    "StaffRole",
    "ProvisioningResult",
    "ProvisionResponse",
    "CreateWebCallRequest",
    "CreateWebCallResponse",
    "ReceivedLead",
    "ReceiveLeadResponse",
    "CallAnalysis",
    "CallEvent",
    "NotificationDecision",
]
