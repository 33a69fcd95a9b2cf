"""
SiteWatch - Scan Data Model
===========================
Immutable scan report entities with CVSS-based severity derivation.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from packaging import version as pkg_version


class Severity(Enum):
    """CVSS severity levels."""
    CRITICAL = "critical"  # 9.0-10.0
    HIGH = "high"          # 7.0-8.9
    MEDIUM = "medium"      # 4.0-6.9
    LOW = "low"            # 0.0-3.9


class ComponentKind(Enum):
    """Component families known to the vulnerability database."""
    CORE = "core"
    PLUGIN = "plugin"
    THEME = "theme"


def severity_from_score(score: float) -> str:
    """Map a CVSS-like score to a severity tier."""
    if score >= 9.0:
        return Severity.CRITICAL.value
    if score >= 7.0:
        return Severity.HIGH.value
    if score >= 4.0:
        return Severity.MEDIUM.value
    return Severity.LOW.value


def derive_severity(explicit: Optional[Any] = None, score: Optional[Any] = None) -> str:
    """
    Resolve the severity of a vulnerability.

    An explicit severity string wins (lower-cased). Otherwise the numeric
    score is bucketed. With neither, the result is ``medium``.
    """
    if isinstance(explicit, str) and explicit.strip():
        return explicit.strip().lower()

    if score is not None and not isinstance(score, bool):
        try:
            return severity_from_score(float(score))
        except (TypeError, ValueError):
            pass

    return Severity.MEDIUM.value


def slug_to_name(slug: str) -> str:
    """Human-readable name derived from a slug."""
    return slug.replace("-", " ")


@dataclass(frozen=True)
class Vulnerability:
    """A known vulnerability affecting WordPress core, a plugin or a theme."""
    id: str
    title: str
    description: str = ""
    severity: str = Severity.MEDIUM.value
    cve: Optional[str] = None
    fixed_in: Optional[str] = None
    references: Tuple[str, ...] = ()

    def affects(self, installed_version: Optional[str]) -> bool:
        """
        Check whether an installed version is still vulnerable.

        Unknown installed versions and vulnerabilities without a fix are
        treated as affecting the install.
        """
        if not installed_version or not self.fixed_in:
            return True
        try:
            return pkg_version.parse(installed_version) < pkg_version.parse(self.fixed_in)
        except pkg_version.InvalidVersion:
            return True

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "severity": self.severity,
            "cve": self.cve,
            "fixed_in": self.fixed_in,
            "references": list(self.references),
        }


@dataclass(frozen=True)
class Plugin:
    """A plugin discovered in page markup."""
    slug: str
    name: str
    version: Optional[str] = None
    vulnerabilities: Tuple[Vulnerability, ...] = ()

    def to_dict(self) -> Dict:
        return {
            "name": self.name,
            "slug": self.slug,
            "version": self.version,
            "vulnerabilities": [v.to_dict() for v in self.vulnerabilities],
        }


@dataclass(frozen=True)
class Theme:
    """A theme discovered in page markup."""
    slug: str
    name: str
    version: Optional[str] = None
    vulnerabilities: Tuple[Vulnerability, ...] = ()

    def to_dict(self) -> Dict:
        return {
            "name": self.name,
            "slug": self.slug,
            "version": self.version,
            "vulnerabilities": [v.to_dict() for v in self.vulnerabilities],
        }


@dataclass(frozen=True)
class User:
    """A user account exposed by the REST API."""
    id: int
    login: str
    display_name: Optional[str] = None

    def to_dict(self) -> Dict:
        return {"id": self.id, "login": self.login, "display_name": self.display_name}


@dataclass(frozen=True)
class ScanReport:
    """
    Consolidated result of one website scan.

    Built once by the orchestrator and never modified afterwards. Core
    vulnerabilities live in ``vulnerabilities``; plugin and theme findings
    stay attached to their component.
    """
    url: str
    is_wordpress: bool
    wordpress_version: Optional[str] = None
    vulnerabilities: Tuple[Vulnerability, ...] = ()
    plugins: Tuple[Plugin, ...] = ()
    themes: Tuple[Theme, ...] = ()
    users: Tuple[User, ...] = ()
    scan_date: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    warnings: Tuple[str, ...] = ()
    credential_issues: bool = False
    rate_limited: bool = False

    @classmethod
    def not_wordpress(cls, url: str) -> "ScanReport":
        return cls(url=url, is_wordpress=False)

    def all_vulnerabilities(self) -> Tuple[Vulnerability, ...]:
        """Core, plugin and theme vulnerabilities in report order."""
        found = list(self.vulnerabilities)
        for component in self.plugins + self.themes:
            found.extend(component.vulnerabilities)
        return tuple(found)

    def summary(self) -> Dict:
        """Counts for display and export."""
        by_severity = {s.value: 0 for s in Severity}
        for vuln in self.all_vulnerabilities():
            by_severity[vuln.severity] = by_severity.get(vuln.severity, 0) + 1

        unpatched = sum(1 for v in self.vulnerabilities if v.affects(self.wordpress_version))
        for component in self.plugins + self.themes:
            unpatched += sum(1 for v in component.vulnerabilities if v.affects(component.version))

        return {
            "plugins": len(self.plugins),
            "themes": len(self.themes),
            "users": len(self.users),
            "vulnerabilities": len(self.all_vulnerabilities()),
            "unpatched": unpatched,
            "by_severity": by_severity,
        }

    def to_dict(self) -> Dict:
        """Convert to a JSON-serializable dictionary."""
        return {
            "url": self.url,
            "is_wordpress": self.is_wordpress,
            "wordpress_version": self.wordpress_version,
            "vulnerabilities": [v.to_dict() for v in self.vulnerabilities],
            "plugins": [p.to_dict() for p in self.plugins],
            "themes": [t.to_dict() for t in self.themes],
            "users": [u.to_dict() for u in self.users],
            "scan_date": self.scan_date.isoformat(),
            "warnings": list(self.warnings),
            "credential_issues": self.credential_issues,
            "rate_limited": self.rate_limited,
        }
