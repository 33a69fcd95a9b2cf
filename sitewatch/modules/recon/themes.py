"""
SiteWatch - Theme Detection
===========================
Detect themes referenced by the homepage and read their style.css headers.
"""

import asyncio
from typing import Dict, List, Optional

from sitewatch.core.errors import TransportError
from sitewatch.core.http_client import SiteHttpClient
from sitewatch.core.logger import logger
from sitewatch.core.models import Theme, slug_to_name
from sitewatch.core.utils import site_base
from sitewatch.modules.recon.plugins import extract_slugs, header_value

THEMES_MARKER = "/wp-content/themes/"


class ThemeDetector:
    """Detect WordPress themes from homepage markup."""

    def __init__(self, http_client: SiteHttpClient, concurrency: int = 5):
        self.http = http_client
        self.concurrency = concurrency

    async def detect(self, url: str, homepage: Optional[str] = None) -> List[Theme]:
        """Return discovered themes; fetch errors yield an empty list."""
        base = site_base(url)

        if homepage is None:
            try:
                homepage = (await self.http.get(url)).text
            except TransportError as e:
                logger.debug(f"Theme detection failed: {e}")
                return []

        slugs = extract_slugs(homepage, THEMES_MARKER)
        if not slugs:
            return []

        semaphore = asyncio.Semaphore(self.concurrency)

        async def details_with_semaphore(slug: str) -> Dict[str, str]:
            async with semaphore:
                return await self._get_theme_headers(base, slug)

        details = await asyncio.gather(*(details_with_semaphore(s) for s in slugs))

        themes = [
            Theme(
                slug=slug,
                name=headers.get("name") or slug_to_name(slug),
                version=headers.get("version"),
            )
            for slug, headers in zip(slugs, details)
        ]
        for theme in themes:
            logger.info(f"Theme detected: {theme.slug} (v{theme.version or 'unknown'})")
        return themes

    async def _get_theme_headers(self, base: str, slug: str) -> Dict[str, str]:
        """Parse ``Theme Name`` and ``Version`` from style.css."""
        try:
            response = await self.http.get(f"{base}{THEMES_MARKER}{slug}/style.css")
        except TransportError as e:
            logger.debug(f"style.css fetch failed for {slug}: {e}")
            return {}

        if not response.ok:
            return {}

        headers = {}
        name = header_value(response.text, "theme name:")
        if name:
            headers["name"] = name
        version = header_value(response.text, "version:")
        if version:
            headers["version"] = version
        return headers
