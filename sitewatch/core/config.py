"""
SiteWatch - Configuration Module
================================
YAML-based configuration management with profile support.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml


DEFAULT_USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
]

TOKEN_ENV_VAR = "WPSCAN_API_TOKEN"


@dataclass
class ProxyConfig:
    enabled: bool = False
    url: str = "http://127.0.0.1:8080"


@dataclass
class RateLimitConfig:
    """Token bucket size; the refill rate comes from the active profile."""
    burst: int = 20


@dataclass
class ScanProfile:
    """How hard a scan may hit the target and the vulnerability database."""
    requests_per_second: float
    parallel_requests: int


@dataclass
class VulnDBConfig:
    """WPScan Vulnerability Database settings."""
    base_url: str = "https://wpscan.com/api/v3"
    api_token: Optional[str] = None
    timeout: float = 15.0


def default_profiles() -> Dict[str, ScanProfile]:
    return {
        "stealthy": ScanProfile(requests_per_second=2, parallel_requests=1),
        "normal": ScanProfile(requests_per_second=10, parallel_requests=4),
        "aggressive": ScanProfile(requests_per_second=50, parallel_requests=8),
    }


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    """A mapping section of the file; an empty ``key:`` counts as ``{}``."""
    value = data.get(name)
    return value if isinstance(value, dict) else {}


@dataclass
class SiteWatchConfig:
    """Main SiteWatch configuration."""

    # Per-request limits
    timeout: float = 15.0
    fingerprint_timeout: float = 10.0
    max_retries: int = 0
    verify_ssl: bool = True
    user_agents: List[str] = field(default_factory=lambda: list(DEFAULT_USER_AGENTS))
    proxy: ProxyConfig = field(default_factory=ProxyConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)

    profiles: Dict[str, ScanProfile] = field(default_factory=default_profiles)
    active_profile: str = "normal"
    max_concurrent_scans: int = 3

    vulndb: VulnDBConfig = field(default_factory=VulnDBConfig)

    storage_path: str = "websites.json"
    output_dir: str = "./reports"

    log_level: str = "INFO"
    log_file: Optional[str] = None
    colored_output: bool = True

    @classmethod
    def from_yaml(cls, config_path: str) -> "SiteWatchConfig":
        """
        Load a config file, or the defaults when it does not exist.

        The API token falls back to ``$WPSCAN_API_TOKEN`` when the file
        does not set one.
        """
        path = Path(config_path)
        if path.exists():
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
            config = cls.from_dict(data)
        else:
            config = cls()

        if not config.vulndb.api_token:
            config.vulndb.api_token = os.environ.get(TOKEN_ENV_VAR) or None
        return config

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SiteWatchConfig":
        config = cls()
        config._load_http(_section(data, "http"))

        proxy = _section(data, "proxy")
        config.proxy = ProxyConfig(
            enabled=bool(proxy.get("enabled", False)),
            url=proxy.get("url", config.proxy.url),
        )
        config.rate_limit = RateLimitConfig(
            burst=int(_section(data, "rate_limit").get("burst", config.rate_limit.burst)),
        )

        config._load_profiles(data)
        config._load_vulndb(_section(data, "vulndb"))

        config.storage_path = _section(data, "storage").get("path", config.storage_path)
        config.output_dir = _section(data, "reports").get("output_dir", config.output_dir)

        logging_section = _section(data, "logging")
        config.log_level = logging_section.get("level", config.log_level)
        config.log_file = logging_section.get("file")
        config.colored_output = bool(logging_section.get("colored", config.colored_output))
        return config

    def _load_http(self, http: Dict[str, Any]):
        self.timeout = float(http.get("timeout", self.timeout))
        self.fingerprint_timeout = float(http.get("fingerprint_timeout", self.fingerprint_timeout))
        self.max_retries = int(http.get("max_retries", self.max_retries))
        self.verify_ssl = bool(http.get("verify_ssl", self.verify_ssl))
        self.user_agents = http.get("user_agents") or self.user_agents

    def _load_profiles(self, data: Dict[str, Any]):
        # Profiles from the file are added to, or override, the built-in ones
        for name, settings in _section(data, "profiles").items():
            settings = settings if isinstance(settings, dict) else {}
            self.profiles[name] = ScanProfile(
                requests_per_second=float(settings.get("requests_per_second", 10)),
                parallel_requests=int(settings.get("parallel_requests", 4)),
            )
        self.active_profile = data.get("profile", self.active_profile)
        self.max_concurrent_scans = int(data.get("max_concurrent_scans", self.max_concurrent_scans))

    def _load_vulndb(self, vulndb: Dict[str, Any]):
        self.vulndb = VulnDBConfig(
            base_url=str(vulndb.get("base_url", self.vulndb.base_url)).rstrip('/'),
            api_token=vulndb.get("api_token") or None,
            timeout=float(vulndb.get("timeout", self.vulndb.timeout)),
        )

    def get_active_profile(self) -> ScanProfile:
        """Active profile; an unknown name behaves like ``normal``."""
        return self.profiles.get(self.active_profile) or default_profiles()["normal"]

    def set_profile(self, profile_name: str):
        if profile_name not in self.profiles:
            raise ValueError(f"Unknown profile: {profile_name}. Available: {', '.join(self.profiles)}")
        self.active_profile = profile_name

    def get_proxy_url(self) -> Optional[str]:
        return self.proxy.url if self.proxy.enabled else None
