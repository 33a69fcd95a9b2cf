"""
SiteWatch - Error Handling
==========================
Typed scan errors and per-scan failure statistics.
"""

from dataclasses import dataclass
from typing import Dict, List


class SiteWatchError(Exception):
    """Base class for SiteWatch errors."""
    pass


class TransportError(SiteWatchError):
    """DNS failure, refused connection or timeout."""

    def __init__(self, message: str, url: str = ""):
        super().__init__(message)
        self.url = url


class AuthorizationError(SiteWatchError):
    """Vulnerability database rejected the API token (401/403)."""
    pass


class RateLimitError(SiteWatchError):
    """Vulnerability database quota exceeded (429)."""
    pass


class ParseError(SiteWatchError):
    """Malformed JSON or markup from a third party."""
    pass


class StorageError(SiteWatchError):
    """Website store could not be read or written."""
    pass


@dataclass
class ScanDiagnostics:
    """Track failures during a single scan."""
    transport_errors: int = 0
    auth_errors: int = 0
    rate_limit_errors: int = 0
    parse_errors: int = 0
    http_errors: int = 0
    lookups_total: int = 0
    lookups_ok: int = 0
    vulndb_disabled: bool = False

    @property
    def credential_issues(self) -> bool:
        return self.auth_errors > 0

    @property
    def rate_limited(self) -> bool:
        return self.rate_limit_errors > 0

    def get_error_rate(self) -> float:
        """Get the share of vulnerability lookups that failed."""
        if self.lookups_total == 0:
            return 0.0
        return (self.lookups_total - self.lookups_ok) / self.lookups_total

    def warnings(self) -> List[str]:
        """Human-readable summary of degraded steps, most important first."""
        messages = []
        if self.vulndb_disabled:
            messages.append("Vulnerability checks were skipped: no API token configured")
        if self.auth_errors:
            messages.append(
                f"{self.auth_errors} vulnerability check(s) were skipped due to credential issues"
            )
        if self.rate_limit_errors:
            messages.append(
                f"{self.rate_limit_errors} vulnerability check(s) were skipped due to rate limiting"
            )
        if self.parse_errors:
            messages.append(f"{self.parse_errors} response(s) could not be parsed")
        if self.transport_errors or self.http_errors:
            messages.append(
                f"{self.transport_errors + self.http_errors} vulnerability check(s) failed"
            )
        return messages

    def to_dict(self) -> Dict:
        """Convert to dictionary."""
        return {
            "transport_errors": self.transport_errors,
            "auth_errors": self.auth_errors,
            "rate_limit_errors": self.rate_limit_errors,
            "parse_errors": self.parse_errors,
            "http_errors": self.http_errors,
            "lookups_total": self.lookups_total,
            "lookups_ok": self.lookups_ok,
            "error_rate": round(self.get_error_rate(), 3),
        }
