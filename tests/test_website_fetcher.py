"""Tests for website context retrieval."""

import httpx
import pytest

from src.integrations.website import WebsiteContextFetcher, accept_excerpt, html_to_text, looks_like_code
from src.integrations.website.fetcher import MAX_TEXT_LENGTH

ABOUT_TEXT = (
    "Acme Paving has served Central Massachusetts for over twenty years. We offer asphalt paving, "
    "sealcoating, crack filling and driveway repair for residential and commercial customers "
    "including Worcester, Shrewsbury and Grafton. Call today for a free estimate on your project."
)

PAGE_HTML = f"""
<html>
  <head><style>.hero {{ color: red; }}</style></head>
  <body>
    <nav>Home | About | Contact</nav>
    <script>window.dataLayer = [];</script>
    <main><h1>About&nbsp;Us</h1><p>{ABOUT_TEXT}</p></main>
    <footer>&copy; Acme Paving</footer>
  </body>
</html>
"""

CODE_PAGE = "<html><body>" + ("@media (max-width: 600px) { .a { transform: scale(1); } } " * 20) + "</body></html>"


def make_fetcher(handler):
    return WebsiteContextFetcher(
        timeout=1.0,
        proxy_timeout=1.0,
        proxy_base_url="https://reader.test/",
        transport=httpx.MockTransport(handler)
    )


class TestHtmlToText:
    """Tests for markup stripping."""

    def test_strips_chrome_and_scripts(self):
        text = html_to_text(PAGE_HTML)
        assert "About Us" in text
        assert "dataLayer" not in text
        assert "Home | About" not in text
        assert "color: red" not in text
        assert "©" not in text

    def test_empty(self):
        assert html_to_text("") == ""


class TestQualityFilter:
    """Tests for the code-residue and length filter."""

    def test_braces_alone_are_one_signal(self):
        assert looks_like_code("Our {famous} service") is False

    def test_two_markers_is_code(self):
        assert looks_like_code("window.onload = function() { document.title = 'x' }") is True

    def test_short_text_rejected(self):
        assert accept_excerpt("Too short") is None
        assert accept_excerpt(None) is None

    def test_long_text_truncated(self):
        text = "Paving and sealcoating services. " * 200
        result = accept_excerpt(text)
        assert result is not None
        assert len(result) == MAX_TEXT_LENGTH


class TestWebsiteContextFetcher:
    """Tests for direct fetch with reader-proxy fallback."""

    @pytest.mark.asyncio
    async def test_missing_url_makes_no_request(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, text=PAGE_HTML)

        fetcher = make_fetcher(handler)
        assert await fetcher.fetch(None) is None
        assert await fetcher.fetch("Not provided") is None
        assert requests == []

    @pytest.mark.asyncio
    async def test_direct_fetch(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, text=PAGE_HTML)

        text = await make_fetcher(handler).fetch("https://acmepaving.com")
        assert text is not None
        assert "asphalt paving" in text
        assert len(requests) == 1
        assert requests[0].headers["User-Agent"].startswith("Mozilla/5.0")

    @pytest.mark.asyncio
    async def test_falls_back_to_reader_when_direct_is_code(self):
        def handler(request):
            if request.url.host == "reader.test":
                return httpx.Response(200, text=ABOUT_TEXT)
            return httpx.Response(200, text=CODE_PAGE)

        text = await make_fetcher(handler).fetch("https://acmepaving.com")
        assert text == ABOUT_TEXT

    @pytest.mark.asyncio
    async def test_falls_back_to_reader_on_error(self):
        seen_hosts = []

        def handler(request):
            seen_hosts.append(request.url.host)
            if request.url.host == "reader.test":
                return httpx.Response(200, text=ABOUT_TEXT)
            raise httpx.ConnectError("connection refused", request=request)

        text = await make_fetcher(handler).fetch("https://acmepaving.com")
        assert text == ABOUT_TEXT
        assert seen_hosts == ["acmepaving.com", "reader.test"]

    @pytest.mark.asyncio
    async def test_both_fail_returns_none(self):
        def handler(request):
            return httpx.Response(503, text="unavailable")

        assert await make_fetcher(handler).fetch("https://acmepaving.com") is None
