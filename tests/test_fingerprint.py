"""Tests for WordPress fingerprinting."""

import httpx
import pytest

from sitewatch.core.errors import TransportError
from sitewatch.modules.recon import WordPressDetector

from conftest import SITE


class TestWordPressDetector:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("marker", [
        '<link rel="stylesheet" href="/wp-content/themes/astra/style.css">',
        '<script src="/wp-includes/js/jquery.js"></script>',
        "<footer>Proudly powered by WordPress</footer>",
        '<link rel="https://api.w.org/" href="https://wp.test/wp-json/">',
        '<a href="/wp-admin/">Admin</a>',
        '<script src="/assets/wp-embed.min.js"></script>',
    ])
    async def test_detects_each_marker(self, http, web, marker):
        web.routes["wp.test/"] = f"<html><head></head><body>{marker}</body></html>"

        detector = WordPressDetector(http)
        assert await detector.detect(SITE) is True
        assert detector.homepage is not None

    @pytest.mark.asyncio
    async def test_plain_site_is_not_wordpress(self, http, web):
        web.routes["wp.test/"] = "<html><body><h1>Static site</h1></body></html>"

        assert await WordPressDetector(http).detect(SITE) is False

    @pytest.mark.asyncio
    async def test_match_is_case_sensitive(self, http, web):
        web.routes["wp.test/"] = "<html><body>wordpress WP-CONTENT</body></html>"

        assert await WordPressDetector(http).detect(SITE) is False

    @pytest.mark.asyncio
    async def test_error_status_without_markers_is_not_an_error(self, http, web):
        web.routes["wp.test/"] = httpx.Response(500, text="Internal Server Error")

        assert await WordPressDetector(http).detect(SITE) is False

    @pytest.mark.asyncio
    async def test_connection_failure_propagates(self, http, web):
        web.routes["wp.test/"] = httpx.ConnectError("connection refused")

        with pytest.raises(TransportError):
            await WordPressDetector(http).detect(SITE)

    @pytest.mark.asyncio
    async def test_timeout_propagates(self, http, web):
        web.routes["wp.test/"] = httpx.ReadTimeout("timed out")

        with pytest.raises(TransportError):
            await WordPressDetector(http).detect(SITE)

    @pytest.mark.asyncio
    async def test_sends_desktop_user_agent(self, http, web):
        web.routes["wp.test/"] = "<html></html>"

        await WordPressDetector(http).detect(SITE)
        assert web.requests[0].headers["User-Agent"].startswith("Mozilla/5.0")
