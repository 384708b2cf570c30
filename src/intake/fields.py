"""
Field resolution for loosely-structured intake records.
"""
from typing import Any, Dict, Iterable, Mapping, Optional

from src.config.intake_fields import FIELD_ALIASES
from src.utils.sanitize import clean, clean_detail, is_truthy, normalize_url, unwrap_output


def _is_present(value: Any) -> bool:
    return value is not None and value != ""


def resolve(record: Optional[Mapping[str, Any]], aliases: Iterable[str], fallback: Any = None) -> Any:
    """
    Return the value of the first alias present in the record.

    Present means not None and not an empty string. A {"output": value}
    wrapper is unwrapped. Falls back when no alias matches; never raises.
    """
    if not isinstance(record, Mapping):
        return fallback
    for alias in aliases:
        value = record.get(alias)
        if _is_present(value):
            return unwrap_output(value)
    return fallback


class IntakeRecord:
    """Typed view over a raw intake submission, keyed by logical field name."""

    def __init__(self, raw: Optional[Mapping[str, Any]], aliases: Optional[Dict[str, Iterable[str]]] = None):
        self.raw: Dict[str, Any] = dict(raw) if isinstance(raw, Mapping) else {}
        self.aliases = aliases or FIELD_ALIASES

    def get(self, field: str, fallback: Any = None) -> Any:
        if field not in self.aliases:
            raise KeyError(f"Unknown intake field: {field}")
        return resolve(self.raw, self.aliases[field], fallback)

    def text(self, field: str, fallback: Any = None) -> str:
        """Sanitized string value, or "Not provided"."""
        return clean(self.get(field, fallback))

    def detail(self, field: str) -> str:
        """Free-text protocol detail; "Label: not provided" counts as absent."""
        return clean_detail(self.get(field))

    def url(self, field: str) -> str:
        return normalize_url(self.get(field))

    def flag(self, field: str) -> bool:
        return is_truthy(self.get(field))
