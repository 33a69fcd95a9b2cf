"""
SiteWatch - Scan Orchestrator
=============================
Sequence fingerprinting, version detection, enumeration and vulnerability
lookups into one ``ScanReport``.

Only the first homepage fetch may fail the scan; every later step degrades
to an empty or missing value and is recorded in the report's warnings.
"""

import asyncio
import dataclasses
from typing import List, Optional, Sequence, Tuple, Union

import httpx

from sitewatch.core.config import SiteWatchConfig
from sitewatch.core.errors import ScanDiagnostics, TransportError
from sitewatch.core.http_client import SiteHttpClient
from sitewatch.core.logger import logger
from sitewatch.core.models import ComponentKind, Plugin, ScanReport, Theme, User
from sitewatch.core.utils import normalize_url
from sitewatch.modules.integrations.wpscan_api import LookupResult, LookupStatus, WPScanAPI
from sitewatch.modules.recon import PluginEnumerator, ThemeDetector, UserEnumerator, VersionDetector, WordPressDetector


class ScanOrchestrator:
    """
    Main scan orchestrator.

    Holds no state shared between scans: each ``scan`` call builds its own
    detectors and diagnostics, so one orchestrator may serve concurrent scans.
    """

    def __init__(
        self,
        config: Optional[SiteWatchConfig] = None,
        http_client: Optional[SiteHttpClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config or SiteWatchConfig()
        self.http = http_client or SiteHttpClient(self.config, transport=transport)
        self.vulndb = WPScanAPI(self.http, self.config.vulndb)

    async def extract_version(self, url: str, homepage: Optional[str] = None) -> Optional[str]:
        return await VersionDetector(self.http).detect(normalize_url(url), homepage)

    async def enumerate_plugins(self, url: str, homepage: Optional[str] = None) -> List[Plugin]:
        parallel = self.config.get_active_profile().parallel_requests
        return await PluginEnumerator(self.http, concurrency=parallel).enumerate(normalize_url(url), homepage)

    async def enumerate_themes(self, url: str, homepage: Optional[str] = None) -> List[Theme]:
        parallel = self.config.get_active_profile().parallel_requests
        return await ThemeDetector(self.http, concurrency=parallel).detect(normalize_url(url), homepage)

    async def enumerate_users(self, url: str) -> List[User]:
        return await UserEnumerator(self.http).enumerate(normalize_url(url))

    async def scan(self, url: str) -> ScanReport:
        """
        Scan one website.

        Raises:
            TransportError: the target could not be reached at all
        """
        target = normalize_url(url)
        logger.section(f"Scanning {target}")

        # Fingerprinting
        detector = WordPressDetector(self.http)
        if not await detector.detect(target):
            logger.info("Site is not WordPress, skipping scan")
            return ScanReport.not_wordpress(target)

        homepage = detector.homepage.text if detector.homepage else None

        # Version detection
        wp_version = await self.extract_version(target, homepage)

        # Enumeration
        plugins = await self.enumerate_plugins(target, homepage)
        themes = await self.enumerate_themes(target, homepage)
        users = await self.enumerate_users(target)

        # Vulnerability check
        diagnostics = ScanDiagnostics()
        lookups: List[Tuple[ComponentKind, str]] = []
        if wp_version:
            lookups.append((ComponentKind.CORE, wp_version))
        lookups.extend((ComponentKind.PLUGIN, p.slug) for p in plugins)
        lookups.extend((ComponentKind.THEME, t.slug) for t in themes)

        results = await self._run_lookups(lookups, diagnostics)

        core_vulns: Tuple = ()
        plugin_vulns = {}
        theme_vulns = {}
        for result in results:
            if result.kind is ComponentKind.CORE:
                core_vulns = result.vulnerabilities
            elif result.kind is ComponentKind.PLUGIN:
                plugin_vulns[result.identifier] = result.vulnerabilities
            else:
                theme_vulns[result.identifier] = result.vulnerabilities

        report = ScanReport(
            url=target,
            is_wordpress=True,
            wordpress_version=wp_version,
            vulnerabilities=tuple(core_vulns),
            plugins=tuple(
                dataclasses.replace(p, vulnerabilities=plugin_vulns.get(p.slug, ()))
                for p in plugins
            ),
            themes=tuple(
                dataclasses.replace(t, vulnerabilities=theme_vulns.get(t.slug, ()))
                for t in themes
            ),
            users=tuple(users),
            warnings=tuple(diagnostics.warnings()),
            credential_issues=diagnostics.credential_issues,
            rate_limited=diagnostics.rate_limited,
        )

        for warning in report.warnings:
            logger.warning(warning)
        logger.success(f"Scan complete: {len(report.all_vulnerabilities())} known vulnerabilities")
        return report

    async def _run_lookups(
        self,
        lookups: Sequence[Tuple[ComponentKind, str]],
        diagnostics: ScanDiagnostics,
    ) -> List[LookupResult]:
        """Run lookups on a bounded pool; results follow ``lookups`` order."""
        if not lookups:
            return []

        if not self.vulndb.enabled:
            logger.warning("WPScan API token not configured - skipping vulnerability lookup")
            diagnostics.vulndb_disabled = True
            return []

        semaphore = asyncio.Semaphore(max(1, self.config.get_active_profile().parallel_requests))

        async def lookup_with_semaphore(kind: ComponentKind, identifier: str) -> LookupResult:
            async with semaphore:
                return await self.vulndb.lookup_detailed(kind, identifier)

        results = await asyncio.gather(*(lookup_with_semaphore(k, i) for k, i in lookups))

        for result in results:
            diagnostics.lookups_total += 1
            if not result.degraded:
                diagnostics.lookups_ok += 1
            elif result.status is LookupStatus.UNAUTHORIZED:
                diagnostics.auth_errors += 1
            elif result.status is LookupStatus.RATE_LIMITED:
                diagnostics.rate_limit_errors += 1
            elif result.status is LookupStatus.MALFORMED:
                diagnostics.parse_errors += 1
            elif result.detail.startswith("HTTP"):
                diagnostics.http_errors += 1
            else:
                diagnostics.transport_errors += 1

        logger.debug(f"Lookup diagnostics: {diagnostics.to_dict()}")
        return list(results)

    async def scan_many(self, urls: Sequence[str]) -> List[Union[ScanReport, TransportError]]:
        """
        Scan several websites with a bounded number of concurrent scans.

        Results keep the order of ``urls``; an unreachable site is returned
        in place as its ``TransportError``.
        """
        semaphore = asyncio.Semaphore(max(1, self.config.max_concurrent_scans))

        async def scan_with_semaphore(url: str) -> Union[ScanReport, TransportError]:
            async with semaphore:
                try:
                    return await self.scan(url)
                except TransportError as e:
                    logger.error(f"Could not scan {url}: {e}")
                    return e

        return await asyncio.gather(*(scan_with_semaphore(url) for url in urls))
