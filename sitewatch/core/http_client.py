"""
SiteWatch - HTTP Client Module
==============================
Async HTTP client shared by every scan step: bounded timeouts, token-bucket
rate limiting, optional retries and a single failure type.
"""

import asyncio
import json
import random
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Union

import httpx

from .config import SiteWatchConfig
from .errors import ParseError, TransportError
from .logger import logger

FALLBACK_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64)"

BASE_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}


@dataclass
class HTTPResponse:
    """Fully read response; any status code is a successful fetch."""
    url: str
    status_code: int
    headers: Dict[str, str]
    text: str
    elapsed: float

    @classmethod
    def from_httpx(cls, response: httpx.Response, elapsed: float) -> "HTTPResponse":
        return cls(
            url=str(response.url),
            status_code=response.status_code,
            headers=dict(response.headers),
            text=response.text,
            elapsed=elapsed,
        )

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def content_type(self) -> str:
        return self.headers.get("content-type", "")

    def json(self) -> Any:
        """
        Decode the body as JSON.

        Raises:
            ParseError: the body is not valid JSON
        """
        try:
            return json.loads(self.text)
        except ValueError as e:
            raise ParseError(f"Invalid JSON from {self.url}: {e}") from e


@dataclass
class RateLimiter:
    """Token bucket: ``max_tokens`` burst, refilled at ``tokens_per_second``."""
    tokens_per_second: float
    max_tokens: int
    clock: Callable[[], float] = field(default=time.monotonic, repr=False)
    tokens: float = field(init=False)
    last_update: float = field(init=False)
    _lock: asyncio.Lock = field(init=False, default_factory=asyncio.Lock)

    def __post_init__(self):
        self.tokens = float(self.max_tokens)
        self.last_update = self.clock()

    def _refill(self):
        now = self.clock()
        self.tokens = min(self.max_tokens, self.tokens + (now - self.last_update) * self.tokens_per_second)
        self.last_update = now

    async def acquire(self):
        """Take one token, sleeping until one is available."""
        async with self._lock:
            self._refill()
            if self.tokens >= 1:
                self.tokens -= 1
                return
            await asyncio.sleep((1 - self.tokens) / self.tokens_per_second)
            # The token refilled during the sleep is spent here
            self.tokens = 0
            self.last_update = self.clock()


class SiteHttpClient:
    """
    Async HTTP client used by every scan step.

    A fresh ``httpx.AsyncClient`` is opened per request, so one instance may
    be shared by concurrent scans. An ``httpx`` transport can be injected,
    which is how the tests serve a fake web.
    """

    def __init__(self, config: SiteWatchConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self.user_agents = config.user_agents or [FALLBACK_USER_AGENT]
        self.rate_limiter = RateLimiter(
            tokens_per_second=config.get_active_profile().requests_per_second,
            max_tokens=config.rate_limit.burst,
        )

        self.client_kwargs: Dict[str, Any] = {"follow_redirects": True, "verify": config.verify_ssl}
        if transport is not None:
            self.client_kwargs["transport"] = transport
        proxy = config.get_proxy_url()
        if proxy:
            self.client_kwargs["proxy"] = proxy
            logger.info(f"Proxy enabled: {proxy}")

        self.request_count = 0
        self.error_count = 0

    def _headers(self, extra: Optional[Dict[str, str]]) -> Dict[str, str]:
        headers = {"User-Agent": random.choice(self.user_agents), **BASE_HEADERS}
        headers.update(extra or {})
        return headers

    async def _send(self, method: str, url: str, headers: Dict[str, str], json_data: Any, timeout: float) -> HTTPResponse:
        start = time.monotonic()
        async with httpx.AsyncClient(timeout=httpx.Timeout(timeout), **self.client_kwargs) as client:
            response = await client.request(method, url, json=json_data, headers=headers)
        self.request_count += 1
        return HTTPResponse.from_httpx(response, time.monotonic() - start)

    async def request(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        json_data: Optional[Any] = None,
        timeout: Optional[float] = None,
    ) -> HTTPResponse:
        """
        Send one request, retrying transport failures ``max_retries`` times.

        Args:
            method: HTTP method
            url: Absolute URL
            headers: Extra headers merged over the defaults
            json_data: JSON body
            timeout: Seconds before the request is abandoned (default ``config.timeout``)

        Raises:
            TransportError: DNS failure, refused connection or timeout on the last attempt
        """
        method = method.upper()
        request_headers = self._headers(headers)
        limit = timeout if timeout is not None else self.config.timeout
        attempts = self.config.max_retries + 1

        await self.rate_limiter.acquire()

        last_error: Optional[httpx.RequestError] = None
        for attempt in range(1, attempts + 1):
            try:
                return await self._send(method, url, request_headers, json_data, limit)
            except httpx.RequestError as e:
                last_error = e
                self.error_count += 1
                kind = "Timeout" if isinstance(e, httpx.TimeoutException) else "Request error"
                logger.debug(f"{kind} on {url}: {e!r} (attempt {attempt}/{attempts})")

            if attempt < attempts:
                await asyncio.sleep(2 ** (attempt - 1) + random.uniform(0, 1))

        raise TransportError(f"{method} {url} failed: {last_error}", url=url) from last_error

    async def get(self, url: str, headers: Optional[Dict[str, str]] = None, timeout: Optional[float] = None) -> HTTPResponse:
        return await self.request("GET", url, headers=headers, timeout=timeout)

    async def post_json(
        self,
        url: str,
        payload: Any,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> HTTPResponse:
        return await self.request("POST", url, headers=headers, json_data=payload, timeout=timeout)

    async def get_multiple(self, urls: List[str], concurrency: int = 5) -> List[Union[HTTPResponse, TransportError]]:
        """
        GET several URLs with at most ``concurrency`` in flight.

        Results follow ``urls``; a failed fetch is returned in place as its
        ``TransportError``.
        """
        semaphore = asyncio.Semaphore(max(1, concurrency))

        async def fetch(url: str) -> Union[HTTPResponse, TransportError]:
            async with semaphore:
                try:
                    return await self.get(url)
                except TransportError as e:
                    return e

        return list(await asyncio.gather(*(fetch(url) for url in urls)))

    def get_stats(self) -> Dict[str, Any]:
        attempts = self.request_count + self.error_count
        return {
            "total_requests": self.request_count,
            "errors": self.error_count,
            "success_rate": f"{self.request_count / max(1, attempts) * 100:.1f}%",
        }
