"""
Phone number helpers: digit extraction, US area-code inference, E.164 formatting.
"""
import re
from typing import Optional, Any


def digits_only(value: Any) -> str:
    """
    Strip everything but digits.

    Examples:
    - "(503) 555-1234" -> "5035551234"
    - "+1-503-555-1234" -> "15035551234"
    - None -> ""
    """
    if value is None:
        return ""
    return re.sub(r"\D", "", str(value))


def area_code_from_phone(phone: Any) -> Optional[str]:
    """Area code of a US number: 10 digits -> first 3, 11 digits starting with 1 -> digits 2-4."""
    digits = digits_only(phone)
    if len(digits) == 10:
        return digits[:3]
    if len(digits) == 11 and digits.startswith("1"):
        return digits[1:4]
    return None


def infer_area_code(
    preferred: Any = None,
    phone: Any = None,
    default: str = "508"
) -> str:
    """
    Pick the area code for a new number.
    Priority: explicit preferred area code -> business phone -> default.
    """
    preferred_digits = digits_only(preferred)[:3]
    if len(preferred_digits) == 3:
        return preferred_digits

    return area_code_from_phone(phone) or default


def to_e164(phone: Any) -> Optional[str]:
    """
    Format a US number as +1XXXXXXXXXX. Numbers that already carry a
    country code other than 1 keep their digits with a leading +.
    """
    if phone is None:
        return None
    raw = str(phone).strip()
    digits = digits_only(raw)
    if not digits:
        return None
    if len(digits) == 10:
        return f"+1{digits}"
    if len(digits) == 11 and digits.startswith("1"):
        return f"+{digits}"
    if raw.startswith("+"):
        return f"+{digits}"
    return None
