"""
SiteWatch - WordPress Version Detection
=======================================
Detect the core version from the generator meta tag, then readme.html.
"""

from typing import Optional

from sitewatch.core.errors import TransportError
from sitewatch.core.http_client import SiteHttpClient
from sitewatch.core.logger import logger
from sitewatch.core.utils import site_base

GENERATOR_MARKER = '<meta name="generator" content="WordPress '
README_MARKER = "Version "


def _leading_version(text: str) -> str:
    """Run of digits and dots at the start of ``text``."""
    end = 0
    while end < len(text) and (text[end].isdigit() or text[end] == "."):
        end += 1
    return text[:end]


def version_from_generator(html: str) -> Optional[str]:
    """Version announced by the generator meta tag."""
    start = html.find(GENERATOR_MARKER)
    if start == -1:
        return None

    content = html[start + len(GENERATOR_MARKER):]
    end = content.find('"')
    if end == -1:
        return None

    return _leading_version(content[:end].strip()) or None


def version_from_readme(text: str) -> Optional[str]:
    """Version announced by readme.html."""
    start = text.find(README_MARKER)
    if start == -1:
        return None
    return _leading_version(text[start + len(README_MARKER):]) or None


class VersionDetector:
    """
    WordPress core version detection.

    Methods, first match wins:
    1. ``<meta name="generator">`` in the homepage
    2. ``/readme.html``
    """

    def __init__(self, http_client: SiteHttpClient):
        self.http = http_client
        self.method: Optional[str] = None

    async def detect(self, url: str, homepage: Optional[str] = None) -> Optional[str]:
        """Return the core version, or None when no evidence is found."""
        base = site_base(url)

        if homepage is None:
            try:
                homepage = (await self.http.get(url)).text
            except TransportError as e:
                logger.debug(f"[meta_generator] Homepage fetch failed: {e}")
                homepage = ""

        version = version_from_generator(homepage)
        if version:
            self.method = "meta_generator"
            logger.info(f"[meta_generator] Version: {version}")
            return version

        try:
            response = await self.http.get(f"{base}/readme.html")
        except TransportError as e:
            logger.debug(f"[readme_html] Detection failed: {e}")
            return None

        if response.ok:
            version = version_from_readme(response.text)
            if version:
                self.method = "readme_html"
                logger.info(f"[readme_html] Version: {version}")
                return version

        logger.warning("Could not detect WordPress version")
        return None
