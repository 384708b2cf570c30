"""
Best-effort website text retrieval for prompt context.

A direct fetch is tried first; if it fails or yields markup/script residue,
the same URL is retried once through a reader proxy that returns plain text.
No text is a normal outcome (None), not an error.
"""
import re
from typing import Optional

import httpx

from src.config import settings
from src.utils.logging import logger
from src.utils.sanitize import collapse_whitespace, decode_html_entities, is_provided

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)

MIN_TEXT_LENGTH = 200
MAX_TEXT_LENGTH = 2000
CODE_SCAN_LENGTH = 1200
CODE_MARKER_THRESHOLD = 2

# Each entry counts once no matter how often it appears
CODE_MARKERS = (
    "@keyframes",
    "transform:",
    "function(",
    "window.",
    "document.",
    "{",
    "}",
    "=>",
    "var(--",
    "!important",
    "@media",
)

STRIPPED_BLOCKS = ("script", "style", "header", "nav", "footer", "form", "noscript", "svg")

_BLOCK_RES = [
    re.compile(rf"<{tag}\b[^>]*>.*?</{tag}\s*>", re.IGNORECASE | re.DOTALL)
    for tag in STRIPPED_BLOCKS
]
_COMMENT_RE = re.compile(r"<!--.*?-->", re.DOTALL)
_TAG_RE = re.compile(r"<[^>]+>")


def html_to_text(markup: str) -> str:
    """Drop chrome/script blocks and tags, decode entities, collapse whitespace."""
    if not markup:
        return ""
    text = _COMMENT_RE.sub(" ", markup)
    for block_re in _BLOCK_RES:
        text = block_re.sub(" ", text)
    text = _TAG_RE.sub(" ", text)
    return collapse_whitespace(decode_html_entities(text))


def looks_like_code(text: str) -> bool:
    head = text[:CODE_SCAN_LENGTH]
    found = {marker for marker in CODE_MARKERS if marker in head}
    # Braces are one signal, not two
    if "{" in found and "}" in found:
        found.discard("}")
    return len(found) >= CODE_MARKER_THRESHOLD


def accept_excerpt(text: Optional[str]) -> Optional[str]:
    """Apply the length and quality filter; returns the truncated text or None."""
    if not text:
        return None
    text = collapse_whitespace(text)
    if len(text) < MIN_TEXT_LENGTH:
        return None
    if looks_like_code(text):
        return None
    return text[:MAX_TEXT_LENGTH]


class WebsiteContextFetcher:
    def __init__(
        self,
        timeout: Optional[float] = None,
        proxy_timeout: Optional[float] = None,
        proxy_base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.timeout = timeout or settings.website_fetch_timeout
        self.proxy_timeout = proxy_timeout or settings.reader_proxy_timeout
        self.proxy_base_url = proxy_base_url or settings.reader_proxy_base_url
        self.transport = transport
        self.headers = {
            "User-Agent": USER_AGENT,
            "Accept": "text/html,application/xhtml+xml,text/plain;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
        }

    async def _get_text(self, url: str, timeout: float) -> Optional[str]:
        try:
            async with httpx.AsyncClient(
                timeout=timeout,
                follow_redirects=True,
                headers=self.headers,
                transport=self.transport
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
                return response.text
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning(f"⚠️  Website fetch failed for {url}: {e.__class__.__name__}: {e}")
            return None

    async def fetch_direct(self, url: str) -> Optional[str]:
        body = await self._get_text(url, self.timeout)
        if body is None:
            return None
        return accept_excerpt(html_to_text(body))

    async def fetch_via_reader(self, url: str) -> Optional[str]:
        body = await self._get_text(f"{self.proxy_base_url}{url}", self.proxy_timeout)
        if body is None:
            return None
        # Reader output is already text, but may still carry stray tags/entities
        return accept_excerpt(html_to_text(body))

    async def fetch(self, url: Optional[str]) -> Optional[str]:
        """
        Plain-text excerpt of a business website, or None.
        Never raises; no network call for an empty or "Not provided" URL.
        """
        if not url or not is_provided(url):
            return None

        text = await self.fetch_direct(url)
        if text:
            logger.info(f"🌐 Website context fetched directly ({len(text)} chars) from {url}")
            return text

        text = await self.fetch_via_reader(url)
        if text:
            logger.info(f"🌐 Website context fetched via reader proxy ({len(text)} chars) from {url}")
            return text

        logger.info(f"🌐 No usable website context for {url}")
        return None
