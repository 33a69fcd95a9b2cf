"""
SiteWatch - WPScan API Integration
==================================
Vulnerability lookups against the WPScan Vulnerability Database API.

Every lookup degrades to an empty list; the ``LookupStatus`` of a detailed
lookup tells callers why.

API Documentation: https://wpscan.com/api
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple
from urllib.parse import quote

from sitewatch.core.config import VulnDBConfig
from sitewatch.core.errors import (
    AuthorizationError,
    ParseError,
    RateLimitError,
    SiteWatchError,
    TransportError,
)
from sitewatch.core.http_client import SiteHttpClient
from sitewatch.core.logger import logger
from sitewatch.core.models import ComponentKind, Vulnerability, derive_severity

UNKNOWN_TITLE = "Unknown vulnerability"


class LookupStatus(Enum):
    """Outcome of a single vulnerability lookup."""
    OK = "ok"
    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    RATE_LIMITED = "rate_limited"
    MALFORMED = "malformed"
    FAILED = "failed"


@dataclass(frozen=True)
class LookupResult:
    """Vulnerabilities for one component plus the lookup outcome."""
    kind: ComponentKind
    identifier: str
    vulnerabilities: Tuple[Vulnerability, ...] = ()
    status: LookupStatus = LookupStatus.OK
    detail: str = ""

    @property
    def degraded(self) -> bool:
        return self.status not in (LookupStatus.OK, LookupStatus.NOT_FOUND)


def _looks_like_vulnerability(obj: Any) -> bool:
    return isinstance(obj, dict) and ("title" in obj or "id" in obj) and "vulnerabilities" not in obj


def iter_vulnerability_objects(data: Any) -> Iterator[Dict]:
    """
    Flatten a database response into raw vulnerability objects.

    The response maps opaque keys (slug, version, ...) to either a component
    object with a ``vulnerabilities`` list, a bare list, or a single
    vulnerability object. Key order is preserved.
    """
    if isinstance(data, list):
        for item in data:
            if _looks_like_vulnerability(item):
                yield item
        return

    if not isinstance(data, dict):
        return

    if isinstance(data.get("vulnerabilities"), list):
        for item in data["vulnerabilities"]:
            if isinstance(item, dict):
                yield item
        return

    for value in data.values():
        if isinstance(value, dict) and isinstance(value.get("vulnerabilities"), list):
            for item in value["vulnerabilities"]:
                if isinstance(item, dict):
                    yield item
        elif isinstance(value, list):
            for item in value:
                if isinstance(item, dict):
                    yield item
        elif _looks_like_vulnerability(value):
            yield value


def _extract_score(vuln: Dict) -> Optional[Any]:
    cvss = vuln.get("cvss")
    if isinstance(cvss, dict):
        return cvss.get("score")
    if cvss is not None:
        return cvss
    return vuln.get("cvss_score", vuln.get("score"))


def _extract_references(vuln: Dict) -> Tuple[str, ...]:
    """Reference URLs, accepting ``{"url": [...]}`` or a plain list."""
    refs = vuln.get("references")
    if isinstance(refs, dict):
        urls = refs.get("url", [])
    elif isinstance(refs, list):
        urls = refs
    else:
        urls = []

    if isinstance(urls, str):
        urls = [urls]
    return tuple(url for url in urls if isinstance(url, str) and url)


def _extract_cve(vuln: Dict) -> Optional[str]:
    cve = vuln.get("cve")
    if not cve:
        refs = vuln.get("references")
        if isinstance(refs, dict) and isinstance(refs.get("cve"), list) and refs["cve"]:
            cve = refs["cve"][0]
    if not cve:
        return None

    cve = str(cve).strip()
    if not cve.upper().startswith("CVE-"):
        cve = f"CVE-{cve}"
    return cve


def normalize_vulnerability(vuln: Dict) -> Vulnerability:
    """Map one raw database object onto the uniform record."""
    title = vuln.get("title")
    description = vuln.get("description")
    fixed_in = vuln.get("fixed_in")

    return Vulnerability(
        id=str(vuln.get("id") or ""),
        title=title if isinstance(title, str) and title else UNKNOWN_TITLE,
        description=description if isinstance(description, str) else "",
        severity=derive_severity(vuln.get("severity"), _extract_score(vuln)),
        cve=_extract_cve(vuln),
        fixed_in=str(fixed_in) if fixed_in else None,
        references=_extract_references(vuln),
    )


def normalize_response(data: Any) -> List[Vulnerability]:
    """Flatten and normalize a whole database response."""
    return [normalize_vulnerability(v) for v in iter_vulnerability_objects(data)]


class WPScanAPI:
    """
    WPScan Vulnerability Database API client.

    Requests go through the shared ``SiteHttpClient`` so they obey the same
    timeouts and rate limiting as the rest of the scan.
    """

    PATHS = {
        ComponentKind.CORE: "wordpresses",
        ComponentKind.PLUGIN: "plugins",
        ComponentKind.THEME: "themes",
    }

    def __init__(self, http_client: SiteHttpClient, settings: VulnDBConfig):
        self.http = http_client
        self.settings = settings
        self.headers: Dict[str, str] = {"Accept": "application/json"}
        if settings.api_token:
            self.headers["Authorization"] = f"Token token={settings.api_token}"

    @property
    def enabled(self) -> bool:
        return bool(self.settings.api_token)

    def endpoint(self, kind: ComponentKind, identifier: str) -> str:
        return f"{self.settings.base_url.rstrip('/')}/{self.PATHS[kind]}/{quote(identifier, safe='.')}"

    async def lookup(self, kind: ComponentKind, identifier: str) -> List[Vulnerability]:
        """Known vulnerabilities for a component; any failure yields ``[]``."""
        result = await self.lookup_detailed(kind, identifier)
        return list(result.vulnerabilities)

    async def fetch(self, kind: ComponentKind, identifier: str) -> Optional[Any]:
        """
        Fetch the raw database entry for one component.

        Returns None when the database has no entry.

        Raises:
            TransportError: network failure or timeout
            AuthorizationError: token rejected (401/403)
            RateLimitError: quota exceeded (429)
            ParseError: body is not a JSON object or array
            SiteWatchError: any other non-2xx status
        """
        url = self.endpoint(kind, identifier)
        logger.debug(f"Calling WPScan API: {url}")

        response = await self.http.get(url, headers=self.headers, timeout=self.settings.timeout)

        status = response.status_code
        if status in (401, 403):
            raise AuthorizationError(f"HTTP {status}")
        if status == 429:
            raise RateLimitError("HTTP 429")
        if status == 404:
            return None
        if not response.ok:
            raise SiteWatchError(f"HTTP {status}")

        data = response.json()
        if not isinstance(data, (dict, list)):
            raise ParseError("unexpected JSON type")
        return data

    async def lookup_detailed(self, kind: ComponentKind, identifier: str) -> LookupResult:
        """Look up one component and report how the lookup went."""
        label = f"{kind.value} {identifier}"
        try:
            data = await self.fetch(kind, identifier)
        except TransportError as e:
            logger.warning(f"Timeout or network error checking {label}")
            return LookupResult(kind, identifier, status=LookupStatus.FAILED, detail=str(e))
        except AuthorizationError as e:
            logger.warning(f"WPScan API: access denied ({e}) for {label}")
            return LookupResult(kind, identifier, status=LookupStatus.UNAUTHORIZED, detail=str(e))
        except RateLimitError as e:
            logger.warning(f"WPScan API: rate limited on {label}")
            return LookupResult(kind, identifier, status=LookupStatus.RATE_LIMITED, detail=str(e))
        except ParseError as e:
            logger.warning(f"Malformed WPScan response for {label}")
            return LookupResult(kind, identifier, status=LookupStatus.MALFORMED, detail=str(e))
        except SiteWatchError as e:
            logger.error(f"WPScan API error: {e}")
            return LookupResult(kind, identifier, status=LookupStatus.FAILED, detail=str(e))

        if data is None:
            logger.debug(f"{kind.value} not in WPScan DB: {identifier}")
            return LookupResult(kind, identifier, status=LookupStatus.NOT_FOUND)

        vulns = normalize_response(data)
        logger.debug(f"{label}: {len(vulns)} known vulnerabilities")
        return LookupResult(kind, identifier, vulnerabilities=tuple(vulns))
