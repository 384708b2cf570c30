"""
Keyword and pattern based fact extraction from website text.
"""
import re
from typing import Dict, List, Optional, Sequence

from src.models import ServingMode, WebsiteFacts

MAX_SERVICES = 12
MAX_SERVICE_AREAS = 10
MIN_AREA_LENGTH = 3
MAX_PLACE_PAIR_MATCHES = 2

TRADE_KEYWORDS: Dict[str, List[str]] = {
    "hvac": [
        "hvac", "heating", "air conditioning", "furnace", "heat pump",
        "ductless mini split", "duct cleaning", "thermostat", "ac repair",
    ],
    "plumbing": [
        "plumbing", "drain cleaning", "water heater", "sewer line", "leak detection",
        "pipe repair", "toilet repair", "garbage disposal", "sump pump",
    ],
    "paving": [
        "paving", "asphalt", "sealcoating", "driveway", "parking lot",
        "crack filling", "line striping", "patching", "resurfacing",
    ],
    "roofing": [
        "roofing", "roof repair", "roof replacement", "shingles", "gutters",
        "flashing", "skylight", "storm damage",
    ],
    "electrical": [
        "electrical", "wiring", "panel upgrade", "lighting", "outlets",
        "generator", "ev charger", "surge protection",
    ],
}

# Trades considered when no hint matches, in priority order
INFERRED_TRADE_ORDER = ("paving", "plumbing", "hvac")

GENERIC_KEYWORDS = [
    "repair", "installation", "maintenance", "service",
    "emergency service", "free estimate", "free quote",
]

_INCLUDING_RE = re.compile(
    r"including\s+(.{3,200}?)\s*(?:,?\s*and surrounding|surrounding|\barea\b|\btowns\b|\bcities\b|\.)",
    re.IGNORECASE | re.DOTALL
)
_PLACE = r"[A-Z][a-z]+(?: [A-Z][a-z]+)?"
_PLACE_PAIR_RE = re.compile(rf"\b({_PLACE}),\s+({_PLACE})\b")
_LIST_SPLIT_RE = re.compile(r",|;|\band\b|&", re.IGNORECASE)


def _keyword_present(keyword: str, text_lower: str) -> bool:
    """Exact phrase, or the phrase's longest word (5+ chars) for partial mentions."""
    if keyword in text_lower:
        return True
    longest = max(keyword.split(), key=len)
    return len(longest) >= 5 and longest in text_lower


def select_trade(text_lower: str, business_type_hint: Optional[str] = None) -> Optional[str]:
    hint = (business_type_hint or "").lower()
    if hint:
        for trade in TRADE_KEYWORDS:
            if trade in hint:
                return trade

    for trade in INFERRED_TRADE_ORDER:
        if any(keyword in text_lower for keyword in TRADE_KEYWORDS[trade]):
            return trade
    return None


def _dedupe(items: Sequence[str]) -> List[str]:
    seen = set()
    result = []
    for item in items:
        key = item.lower()
        if key not in seen:
            seen.add(key)
            result.append(item)
    return result


def extract_services(text: str, business_type_hint: Optional[str] = None) -> List[str]:
    text_lower = text.lower()
    trade = select_trade(text_lower, business_type_hint)
    candidates = (TRADE_KEYWORDS[trade] if trade else []) + GENERIC_KEYWORDS
    found = [keyword for keyword in candidates if _keyword_present(keyword, text_lower)]
    return _dedupe(found)[:MAX_SERVICES]


def extract_service_areas(text: str) -> List[str]:
    areas: List[str] = []

    match = _INCLUDING_RE.search(text)
    if match:
        areas.extend(part.strip(" .") for part in _LIST_SPLIT_RE.split(match.group(1)))

    for pair in list(_PLACE_PAIR_RE.finditer(text))[:MAX_PLACE_PAIR_MATCHES]:
        areas.extend(pair.groups())

    areas = [area for area in areas if len(area) >= MIN_AREA_LENGTH]
    return _dedupe(areas)[:MAX_SERVICE_AREAS]


def detect_serving_mode(text: str) -> ServingMode:
    text_lower = text.lower()
    residential = "residential" in text_lower
    commercial = "commercial" in text_lower
    if residential and commercial:
        return ServingMode.BOTH
    if residential:
        return ServingMode.RESIDENTIAL
    if commercial:
        return ServingMode.COMMERCIAL
    return ServingMode.UNKNOWN


def extract_facts(text: Optional[str], business_type_hint: Optional[str] = None) -> WebsiteFacts:
    if not text:
        return WebsiteFacts()
    return WebsiteFacts(
        service_area=extract_service_areas(text),
        services=extract_services(text, business_type_hint),
        serving_mode=detect_serving_mode(text),
    )
