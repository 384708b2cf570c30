from .facts import extract_facts
from .composer import compose, build_prompt, build_greeting, PromptContext, PromptSection, SECTIONS
from .roles import STAFF_ROLES, RECEPTIONIST, roles_for_package

__all__ = [
    "extract_facts",
    "compose",
    "build_prompt",
    "build_greeting",
    "PromptContext",
    "PromptSection",
    "SECTIONS",
    "STAFF_ROLES",
    "RECEPTIONIST",
    "roles_for_package",
]
