"""
Agent prompt composition.

The prompt is an ordered list of named sections. Each section has an
inclusion predicate and a render function so it can be tested on its own.
"""
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from src.models import (
    AgentSpec,
    BusinessProfile,
    ProtocolBlock,
    ProtocolKind,
    ServingMode,
    StaffRole,
    WebsiteFacts,
)
from src.prompts.roles import RECEPTIONIST
from src.utils.sanitize import NOT_PROVIDED

EXCERPT_MAX_LENGTH = 800
SUPPLIED_FACTS_MAX_LENGTH = 1500

# Longest first so "{{business_name}}" is not half-replaced by "{business_name}"
BUSINESS_NAME_TOKENS = ("{{business_name}}", "{business_name}", "[Business Name]", "[business_name]")

AI_DISCLOSURE = (
    "Yes, I am an AI assistant helping the team handle calls. "
    "I can help you now or take a detailed message for the office."
)

DEFAULT_GREETING = "Thanks for calling {business_name}, this is {agent_name}. How can I help you today?"


@dataclass
class PromptContext:
    profile: BusinessProfile
    facts: WebsiteFacts
    website_excerpt: Optional[str]
    protocols: Dict[ProtocolKind, ProtocolBlock]
    role: StaffRole = RECEPTIONIST
    agent_name: str = RECEPTIONIST.name
    supplied_facts: Optional[str] = None

    def protocol(self, kind: ProtocolKind) -> ProtocolBlock:
        return self.protocols.get(kind) or ProtocolBlock(kind=kind)


@dataclass
class PromptSection:
    name: str
    render: Callable[[PromptContext], str]
    include: Callable[[PromptContext], bool] = field(default=lambda ctx: True)


def render_identity(ctx: PromptContext) -> str:
    mission = ctx.role.mission.replace("{agent_name}", ctx.agent_name)
    return f"""{mission}

GLOBAL STAFF PROTOCOL (MANDATORY):
- Identity: You are a member of the office team at {{{{business_name}}}}.
- AI Disclosure: Do NOT volunteer that you are an AI. If the caller asks directly whether you are a robot or an AI, say:
  "{AI_DISCLOSURE}"
- Pricing: Never quote exact prices or binding estimates. Say: "Pricing depends on the job requirements; our team will provide a formal estimate after reviewing your details."
- Safety: Do not give medical, legal, or technical safety advice; offer to have the team follow up instead.
- Emergencies: If anyone's life or safety is in danger, tell the caller to hang up and dial 911 immediately."""


def render_style(ctx: PromptContext) -> str:
    return """STYLE:
- Be warm, friendly, and concise. Keep answers to one or two sentences.
- Ask one question at a time and confirm spelling of names and numbers.
- Never make up facts, prices, availability, or policies. If you don't know, say the team will follow up."""


def render_business_profile(ctx: PromptContext) -> str:
    profile = ctx.profile
    return f"""BUSINESS PROFILE:
- Business name: {profile.business_name}
- Website: {profile.website}
- Business hours: {profile.business_hours}
- Services: {profile.services}
- Service area: {profile.service_area}
- Time zone: {profile.time_zone}
- Contact name: {profile.contact_name}
- Contact email: {profile.contact_email}
- Contact phone: {profile.contact_phone}
- Notes: {profile.extra_notes}"""


def render_website_facts(ctx: PromptContext) -> str:
    facts = ctx.facts
    lines = ["WEBSITE FACTS:"]
    if facts.services:
        lines.append(f"- Services mentioned: {', '.join(facts.services)}")
    if facts.service_area:
        lines.append(f"- Service areas mentioned: {', '.join(facts.service_area)}")
    if facts.serving_mode != ServingMode.UNKNOWN:
        lines.append(f"- Serves: {facts.serving_mode.value}")
    return "\n".join(lines)


def render_supplied_facts(ctx: PromptContext) -> str:
    facts = (ctx.supplied_facts or "")[:SUPPLIED_FACTS_MAX_LENGTH]
    return f"""BUSINESS FACTS (provided by the business; prefer these over the website):
{facts}"""


def render_website_excerpt(ctx: PromptContext) -> str:
    excerpt = (ctx.website_excerpt or "")[:EXCERPT_MAX_LENGTH]
    return f"""WEBSITE EXCERPT (reference only; if it conflicts with what the caller says, the caller's statement takes precedence):
{excerpt}"""


def render_scheduling(ctx: PromptContext) -> str:
    block = ctx.protocol(ProtocolKind.SCHEDULING)
    if block.enabled:
        return f"""SCHEDULING:
- Scheduling is enabled. You may offer to schedule the caller using the booking link: {block.url}
- Offer to text or email the link, or walk the caller through picking a time.
- Only treat a time as booked once the booking system confirms it."""
    return """SCHEDULING:
- Scheduling is NOT enabled. Do not offer to book appointments.
- Collect the caller's name, callback number, and preferred days and time windows.
- Tell the caller a team member will call back to confirm.
- Never confirm a specific time slot. Do not confirm a time or say an appointment is booked."""


def _render_protocol(title: str, kind: ProtocolKind, instruction: str) -> Callable[[PromptContext], str]:
    def render(ctx: PromptContext) -> str:
        detail = ctx.protocol(kind).detail
        return f"""{title}:
- {instruction}
{detail}"""
    return render


def _protocol_enabled(kind: ProtocolKind) -> Callable[[PromptContext], bool]:
    return lambda ctx: ctx.protocol(kind).enabled


def render_closing(ctx: PromptContext) -> str:
    return """CLOSING:
- Before ending the call, summarize what you captured (name, callback number, reason for calling, preferred times) and confirm it with the caller.
- Thank the caller and let them know what happens next."""


SECTIONS: List[PromptSection] = [
    PromptSection("identity", render_identity),
    PromptSection("style", render_style),
    PromptSection("business_profile", render_business_profile),
    PromptSection("website_facts", render_website_facts, lambda ctx: not ctx.facts.is_empty()),
    PromptSection("supplied_facts", render_supplied_facts, lambda ctx: bool(ctx.supplied_facts)),
    PromptSection("website_excerpt", render_website_excerpt, lambda ctx: bool(ctx.website_excerpt)),
    PromptSection("scheduling", render_scheduling),
    PromptSection(
        "emergency",
        _render_protocol(
            "EMERGENCY DISPATCH PROTOCOL",
            ProtocolKind.EMERGENCY,
            "When a caller describes an urgent situation, follow these steps exactly:",
        ),
        _protocol_enabled(ProtocolKind.EMERGENCY),
    ),
    PromptSection(
        "intake",
        _render_protocol(
            "JOB INTAKE PROTOCOL",
            ProtocolKind.INTAKE,
            "For new job requests, gather these details:",
        ),
        _protocol_enabled(ProtocolKind.INTAKE),
    ),
    PromptSection(
        "lead_revival",
        _render_protocol(
            "LEAD REVIVAL PROTOCOL",
            ProtocolKind.LEAD_REVIVAL,
            "When speaking with past leads or customers, follow this approach:",
        ),
        _protocol_enabled(ProtocolKind.LEAD_REVIVAL),
    ),
    PromptSection("closing", render_closing),
]


def substitute_business_name(text: str, business_name: str) -> str:
    for token in BUSINESS_NAME_TOKENS:
        text = text.replace(token, business_name)
    return text


def included_sections(ctx: PromptContext, sections: Optional[List[PromptSection]] = None) -> List[str]:
    """Names of the sections that made it into the prompt, in order."""
    return [section.name for section in (sections or SECTIONS) if section.include(ctx)]


def build_prompt(ctx: PromptContext, sections: Optional[List[PromptSection]] = None) -> str:
    parts = [section.render(ctx) for section in (sections or SECTIONS) if section.include(ctx)]
    return substitute_business_name("\n\n".join(parts), ctx.profile.business_name)


def build_greeting(business_name: str, agent_name: str, greeting: Optional[str] = None) -> str:
    if greeting and greeting != NOT_PROVIDED:
        return substitute_business_name(greeting, business_name)
    return DEFAULT_GREETING.format(business_name=business_name, agent_name=agent_name)


def compose(
    profile: BusinessProfile,
    facts: WebsiteFacts,
    website_excerpt: Optional[str],
    protocols: Dict[ProtocolKind, ProtocolBlock],
    role: StaffRole = RECEPTIONIST,
    agent_name: Optional[str] = None,
    greeting: Optional[str] = None,
    metadata: Optional[Dict[str, str]] = None,
    supplied_facts: Optional[str] = None,
) -> AgentSpec:
    """Assemble the agent configuration for one staff role."""
    agent_name = agent_name or role.name
    ctx = PromptContext(
        profile=profile,
        facts=facts,
        website_excerpt=website_excerpt,
        protocols=protocols,
        role=role,
        agent_name=agent_name,
        supplied_facts=supplied_facts,
    )
    scheduling = ctx.protocol(ProtocolKind.SCHEDULING)
    spec_metadata = {
        "business_name": profile.business_name,
        "package_type": profile.package_type.value,
        "role_id": role.role_id,
        "role_display": role.role_display,
        "scheduling_enabled": "true" if scheduling.enabled else "false",
    }
    spec_metadata.update(metadata or {})

    return AgentSpec(
        prompt_text=build_prompt(ctx),
        greeting_text=build_greeting(profile.business_name, agent_name, greeting),
        voice_id=profile.voice_id,
        agent_name=agent_name,
        metadata=spec_metadata,
    )
