"""
SiteWatch - Status Checks
=========================
HTTP status checks for tracked websites.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

from sitewatch.core.errors import TransportError
from sitewatch.core.http_client import HTTPResponse, SiteHttpClient
from sitewatch.core.logger import logger
from sitewatch.core.utils import extract_page_title

UNREACHABLE = 0


@dataclass
class StatusResult:
    """Status of one website; ``status`` is 0 when unreachable."""
    url: str
    status: int
    title: Optional[str] = None
    elapsed: float = 0.0

    @property
    def is_up(self) -> bool:
        return 200 <= self.status < 400


class StatusChecker:
    """Check whether tracked websites respond."""

    def __init__(self, http_client: SiteHttpClient, concurrency: int = 5):
        self.http = http_client
        self.concurrency = concurrency

    async def check(self, url: str) -> StatusResult:
        try:
            response = await self.http.get(url, timeout=self.http.config.fingerprint_timeout)
        except TransportError as e:
            return self._to_result(url, e)
        return self._to_result(url, response)

    async def check_many(self, urls: Sequence[str]) -> List[StatusResult]:
        """Check several websites; results follow ``urls`` order."""
        responses = await self.http.get_multiple(list(urls), concurrency=self.concurrency)
        return [self._to_result(url, response) for url, response in zip(urls, responses)]

    @staticmethod
    def _to_result(url: str, response: Union[HTTPResponse, TransportError]) -> StatusResult:
        if isinstance(response, TransportError):
            logger.warning(f"{url} unreachable: {response}")
            return StatusResult(url=url, status=UNREACHABLE)

        return StatusResult(
            url=url,
            status=response.status_code,
            title=extract_page_title(response.text) if response.text else None,
            elapsed=response.elapsed,
        )
