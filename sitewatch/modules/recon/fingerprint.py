"""
SiteWatch - WordPress Fingerprinting
====================================
Classify a homepage as WordPress from static markup signatures.
"""

from typing import Optional

from sitewatch.core.http_client import HTTPResponse, SiteHttpClient
from sitewatch.core.logger import logger


class WordPressDetector:
    """
    Detect WordPress by plain substring search over the homepage body.

    The fetched homepage is kept on ``self.homepage`` so later scan steps
    do not need to request it again.
    """

    SIGNATURES = (
        "wp-content",
        "wp-includes",
        "WordPress",
        "wp-json",
        "/wp-admin/",
        "wp-embed.min.js",
    )

    def __init__(self, http_client: SiteHttpClient):
        self.http = http_client
        self.homepage: Optional[HTTPResponse] = None
        self.matched: Optional[str] = None

    async def detect(self, url: str) -> bool:
        """
        Fetch ``url`` and look for WordPress markers.

        Raises:
            TransportError: the homepage could not be fetched at all
        """
        response = await self.http.get(url, timeout=self.http.config.fingerprint_timeout)
        self.homepage = response

        self.matched = self.match_signature(response.text)
        if self.matched:
            logger.info(f"WordPress marker '{self.matched}' found on {url}")
            return True

        logger.info(f"No WordPress markers on {url} (HTTP {response.status_code})")
        return False

    @classmethod
    def match_signature(cls, body: str) -> Optional[str]:
        """Return the first signature present in ``body``."""
        for signature in cls.SIGNATURES:
            if signature in body:
                return signature
        return None
