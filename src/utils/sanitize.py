"""
Value normalization for intake data.

Everything that flows into a prompt is either a real value or the
NOT_PROVIDED sentinel, never None or an empty string.
"""
import html
import re
from typing import Any, Mapping

NOT_PROVIDED = "Not provided"

# Compared case-insensitively after whitespace collapse
JUNK_TOKENS = {"", "[]", "no data", "/", "null", "undefined", "not provided"}

_WHITESPACE_RE = re.compile(r"\s+")
_EMBEDDED_URL_RE = re.compile(r"https?://[^\s<>\"'\])]+", re.IGNORECASE)
_BARE_DOMAIN_RE = re.compile(
    r"^(?:www\.)?[a-z0-9](?:[a-z0-9-]*[a-z0-9])?(?:\.[a-z0-9](?:[a-z0-9-]*[a-z0-9])?)*\.[a-z]{2,}(?:[/?#]\S*)?$",
    re.IGNORECASE
)
_LABEL_RE = re.compile(r"^\s*[A-Za-z][A-Za-z _-]{0,30}:\s*(.*)$", re.DOTALL)


def unwrap_output(value: Any) -> Any:
    """Intake platforms sometimes wrap step results as {"output": value}."""
    if isinstance(value, Mapping) and "output" in value:
        return value["output"]
    return value


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def decode_html_entities(text: str) -> str:
    """Decode HTML entities (&amp; &quot; &#39; &nbsp; ...); nbsp becomes a plain space."""
    if not text:
        return ""
    return html.unescape(text).replace("\xa0", " ")


def clean(value: Any) -> str:
    """
    Normalize a raw intake value to a usable string or NOT_PROVIDED.

    Idempotent: clean(clean(x)) == clean(x).
    """
    value = unwrap_output(value)
    if value is None:
        return NOT_PROVIDED

    text = collapse_whitespace(str(value))
    if text.lower() in JUNK_TOKENS:
        return NOT_PROVIDED

    # Half-empty array stringification from the intake platform ("Boston, []")
    if "[]" in text:
        text = collapse_whitespace(text.replace("[]", NOT_PROVIDED))
    return text


def is_provided(value: Any) -> bool:
    return clean(value) != NOT_PROVIDED


def clean_detail(value: Any) -> str:
    """
    Like clean(), but also treats "Label: <junk>" as junk.

    Form builders prefix answers with the question label, e.g.
    "Calendar: not provided".
    """
    text = clean(value)
    if text == NOT_PROVIDED:
        return text
    match = _LABEL_RE.match(text)
    if match and clean(match.group(1)) == NOT_PROVIDED:
        return NOT_PROVIDED
    return text


def normalize_url(raw: Any) -> str:
    """
    Extract a usable URL from free text.

    - first http(s):// URL embedded in prose wins
    - a bare domain gets https:// prepended
    - anything else starting with "http" is returned as-is
    - otherwise NOT_PROVIDED
    """
    raw = unwrap_output(raw)
    if raw is None:
        return NOT_PROVIDED

    text = str(raw).strip()
    if text.lower() in JUNK_TOKENS:
        return NOT_PROVIDED

    match = _EMBEDDED_URL_RE.search(text)
    if match:
        return match.group(0).rstrip(".,;:!?")

    if _BARE_DOMAIN_RE.match(text):
        return f"https://{text}"

    if text.lower().startswith("http"):
        return text

    return NOT_PROVIDED


def is_truthy(value: Any) -> bool:
    """Flag parsing for loosely-typed intake booleans ("true", "Yes", 1, True)."""
    value = unwrap_output(value)
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in {"true", "yes", "1", "y", "on"}
