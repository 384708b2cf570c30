from .fields import resolve, IntakeRecord
from .profile import build_business_profile, build_protocol_blocks, resolve_package_type

__all__ = [
    "resolve",
    "IntakeRecord",
    "build_business_profile",
    "build_protocol_blocks",
    "resolve_package_type",
]
