"""
SiteWatch - Plugin Enumeration
==============================
Passive plugin detection from homepage markup, with readme.txt versions.
"""

import asyncio
import re
from typing import List, Optional

from sitewatch.core.errors import TransportError
from sitewatch.core.http_client import SiteHttpClient
from sitewatch.core.logger import logger
from sitewatch.core.models import Plugin, slug_to_name
from sitewatch.core.utils import site_base

PLUGINS_MARKER = "/wp-content/plugins/"

SLUG_PATTERN = re.compile(r'^(?!\.+$)[A-Za-z0-9_.-]+$')


def extract_slugs(html: str, marker: str) -> List[str]:
    """
    Collect component slugs referenced after ``marker``, first-seen order.

    Markup is scanned line by line. A slug is the path segment right after
    the marker up to the next ``/``; segments without a closing ``/`` or
    with characters a slug cannot contain are ignored, and so are the
    dot-only segments such as ``..``.
    """
    slugs: List[str] = []
    seen = set()

    for line in html.splitlines():
        start = line.find(marker)
        while start != -1:
            rest = line[start + len(marker):]
            end = rest.find("/")
            if end > 0:
                slug = rest[:end]
                if SLUG_PATTERN.match(slug) and slug not in seen:
                    seen.add(slug)
                    slugs.append(slug)
            start = line.find(marker, start + len(marker))

    return slugs


def header_value(text: str, header: str) -> Optional[str]:
    """
    Value of the first line starting with ``header`` (case-insensitive).

    Leading whitespace and comment stars are ignored, so headers inside a
    ``/* ... */`` block still match.
    """
    prefix = header.lower()
    for line in text.splitlines():
        stripped = line.strip().lstrip("*").strip()
        if stripped.lower().startswith(prefix):
            value = stripped.split(":", 1)[1].strip()
            return value or None
    return None


class PluginEnumerator:
    """Enumerate plugins referenced by the homepage."""

    def __init__(self, http_client: SiteHttpClient, concurrency: int = 5):
        self.http = http_client
        self.concurrency = concurrency

    async def enumerate(self, url: str, homepage: Optional[str] = None) -> List[Plugin]:
        """Return discovered plugins; fetch errors yield an empty list."""
        base = site_base(url)

        if homepage is None:
            try:
                homepage = (await self.http.get(url)).text
            except TransportError as e:
                logger.debug(f"Plugin enumeration failed: {e}")
                return []

        slugs = extract_slugs(homepage, PLUGINS_MARKER)
        logger.info(f"Passive detection found {len(slugs)} plugins")
        if not slugs:
            return []

        semaphore = asyncio.Semaphore(self.concurrency)

        async def get_version_with_semaphore(slug: str) -> Optional[str]:
            async with semaphore:
                return await self._get_version(base, slug)

        versions = await asyncio.gather(*(get_version_with_semaphore(s) for s in slugs))

        plugins = [
            Plugin(slug=slug, name=slug_to_name(slug), version=version)
            for slug, version in zip(slugs, versions)
        ]
        with_version = len([p for p in plugins if p.version])
        logger.success(f"Total plugins: {len(plugins)} ({with_version} with version)")
        return plugins

    async def _get_version(self, base: str, slug: str) -> Optional[str]:
        """Read ``Stable tag:`` from the plugin's readme.txt."""
        try:
            response = await self.http.get(f"{base}{PLUGINS_MARKER}{slug}/readme.txt")
        except TransportError as e:
            logger.debug(f"readme.txt fetch failed for {slug}: {e}")
            return None

        if not response.ok:
            return None
        return header_value(response.text, "stable tag:")
