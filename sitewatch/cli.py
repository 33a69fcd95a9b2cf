"""
SiteWatch - Website Portfolio Monitor
=====================================
Track websites, check their status and scan WordPress sites for known
vulnerabilities.

Usage:
    sitewatch add https://example.com --industry media
    sitewatch status
    sitewatch scan -u https://example.com
    sitewatch scan-all
    sitewatch export --full -o backup.json
    sitewatch import backup.json --replace
"""

import asyncio
import json
import time
from pathlib import Path
from typing import List, Optional

import typer
from rich.table import Table

from sitewatch import __version__
from sitewatch.core.config import SiteWatchConfig
from sitewatch.core.errors import StorageError, TransportError
from sitewatch.core.http_client import SiteHttpClient
from sitewatch.core.logger import console, logger
from sitewatch.core.models import ScanReport
from sitewatch.core.storage import Website, WebsiteStore
from sitewatch.core.utils import extract_domain, normalize_url
from sitewatch.modules.monitor import StatusChecker
from sitewatch.scanner import ScanOrchestrator

app = typer.Typer(help="SiteWatch - website portfolio monitor and WordPress scanner")


def load_config(config_path: str, profile: Optional[str] = None, token: Optional[str] = None) -> SiteWatchConfig:
    config = SiteWatchConfig.from_yaml(config_path)
    if profile:
        config.set_profile(profile)
    if token:
        config.vulndb.api_token = token
    logger.configure(config.log_level, config.log_file, config.colored_output)
    return config


def write_report(report: ScanReport, output_dir: str) -> Path:
    """Write a scan report as JSON and return its path."""
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    stamp = report.scan_date.strftime("%Y%m%d_%H%M%S")
    path = out / f"{extract_domain(report.url).replace(':', '_')}_{stamp}.json"
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(report.to_dict(), f, indent=2)
    return path


def print_report(report: ScanReport):
    """Render a scan report as rich tables."""
    if not report.is_wordpress:
        console.print(f"[yellow]{report.url} does not appear to run WordPress[/yellow]")
        return

    logger.table_result("Scan Summary", {
        "URL": report.url,
        "WordPress version": report.wordpress_version or "Unknown",
        **{k: v for k, v in report.summary().items() if k != "by_severity"},
    })

    components = Table(title="Components", show_header=True, header_style="bold magenta")
    components.add_column("Type", style="cyan")
    components.add_column("Slug")
    components.add_column("Version")
    components.add_column("Vulnerabilities", justify="right")
    for plugin in report.plugins:
        components.add_row("plugin", plugin.slug, plugin.version or "?", str(len(plugin.vulnerabilities)))
    for theme in report.themes:
        components.add_row("theme", theme.slug, theme.version or "?", str(len(theme.vulnerabilities)))
    console.print(components)

    for vuln in report.all_vulnerabilities():
        fixed = f" (fixed in {vuln.fixed_in})" if vuln.fixed_in else ""
        logger.vuln(vuln.severity, f"{vuln.title}{fixed}")

    for warning in report.warnings:
        logger.warning(warning)


async def scan_async(target: str, config: SiteWatchConfig, output: str) -> Optional[ScanReport]:
    start_time = time.time()
    orchestrator = ScanOrchestrator(config)

    try:
        report = await orchestrator.scan(target)
    except TransportError as e:
        logger.error(f"Could not scan this target: {e}")
        return None

    print_report(report)
    path = write_report(report, output)

    logger.section("Scan Complete")
    logger.info(f"Duration: {time.time() - start_time:.1f}s")
    logger.info(f"Report: {path}")
    logger.table_result("HTTP Statistics", orchestrator.http.get_stats())
    return report


@app.command()
def scan(
    target: str = typer.Option(..., "-u", "--url", help="Target website URL"),
    config: str = typer.Option("config.yaml", "-c", "--config", help="Config file path"),
    profile: str = typer.Option(None, "-p", "--profile", help="Scan profile: stealthy, normal, aggressive"),
    token: str = typer.Option(None, "--token", help="WPScan API token"),
    output: str = typer.Option(None, "-o", "--output", help="Output directory"),
    track: bool = typer.Option(False, "--track", help="Record the result on the tracked website"),
):
    """Scan one website for WordPress components and known vulnerabilities."""
    cfg = load_config(config, profile, token)
    report = asyncio.run(scan_async(target, cfg, output or cfg.output_dir))
    if report is None:
        raise typer.Exit(code=1)

    if track:
        store = WebsiteStore(cfg.storage_path)
        website = store.get(report.url)
        if website:
            website.record_scan(report)
            store.update(website)
        else:
            logger.warning(f"{report.url} is not tracked; use 'sitewatch add' first")


@app.command()
def add(
    url: str = typer.Argument(..., help="Website URL"),
    name: str = typer.Option(None, "-n", "--name", help="Display name (defaults to page title)"),
    industry: str = typer.Option("general", "-i", "--industry", help="Industry category"),
    config: str = typer.Option("config.yaml", "-c", "--config", help="Config file path"),
):
    """Start tracking a website."""
    cfg = load_config(config)

    if not name:
        result = asyncio.run(StatusChecker(SiteHttpClient(cfg)).check(normalize_url(url)))
        name = result.title

    try:
        website = WebsiteStore(cfg.storage_path).add(url, name=name, industry=industry)
    except (StorageError, ValueError) as e:
        logger.error(str(e))
        raise typer.Exit(code=1)
    logger.success(f"Added {website.name} ({website.url})")


@app.command("list")
def list_websites(
    config: str = typer.Option("config.yaml", "-c", "--config", help="Config file path"),
):
    """List tracked websites."""
    cfg = load_config(config)
    websites = WebsiteStore(cfg.storage_path).load()

    table = Table(title="Tracked Websites", show_header=True, header_style="bold magenta")
    for column in ("ID", "", "Name", "URL", "Industry", "Status", "WordPress", "Last scan"):
        table.add_column(column)
    for w in websites:
        wp = "?" if w.is_wordpress is None else ("yes " + (w.wordpress_version or "") if w.is_wordpress else "no")
        table.add_row(
            str(w.id), "*" if w.favorite else "", w.name, w.url, w.industry,
            str(w.status) if w.status is not None else "-",
            wp.strip(), w.last_scanned or "-",
        )
    console.print(table)


@app.command()
def remove(
    website_id: int = typer.Argument(..., help="Website id"),
    config: str = typer.Option("config.yaml", "-c", "--config", help="Config file path"),
):
    """Stop tracking a website."""
    cfg = load_config(config)
    if not WebsiteStore(cfg.storage_path).remove(website_id):
        logger.error(f"No website with id {website_id}")
        raise typer.Exit(code=1)
    logger.success(f"Removed website {website_id}")


@app.command()
def favorite(
    website_id: int = typer.Argument(..., help="Website id"),
    config: str = typer.Option("config.yaml", "-c", "--config", help="Config file path"),
):
    """Mark or unmark a website as favorite."""
    cfg = load_config(config)
    try:
        website = WebsiteStore(cfg.storage_path).toggle_favorite(website_id)
    except StorageError as e:
        logger.error(str(e))
        raise typer.Exit(code=1)
    state = "marked" if website.favorite else "unmarked"
    logger.success(f"{website.name} {state} as favorite")


@app.command()
def industry(
    website_id: int = typer.Argument(..., help="Website id"),
    value: str = typer.Argument(..., help="Industry category"),
    config: str = typer.Option("config.yaml", "-c", "--config", help="Config file path"),
):
    """Change the industry of a tracked website."""
    cfg = load_config(config)
    try:
        website = WebsiteStore(cfg.storage_path).set_industry(website_id, value)
    except (StorageError, ValueError) as e:
        logger.error(str(e))
        raise typer.Exit(code=1)
    logger.success(f"{website.name} is now in {website.industry}")


async def status_async(websites: List[Website], config: SiteWatchConfig) -> List[Website]:
    checker = StatusChecker(SiteHttpClient(config), concurrency=config.get_active_profile().parallel_requests)
    results = await checker.check_many([w.url for w in websites])
    for website, result in zip(websites, results):
        website.record_status(result.status)
        logger.site_status(result.status, website.url, result.is_up)
    return websites


@app.command()
def status(
    config: str = typer.Option("config.yaml", "-c", "--config", help="Config file path"),
):
    """Check the HTTP status of every tracked website."""
    cfg = load_config(config)
    store = WebsiteStore(cfg.storage_path)
    websites = store.load()
    if not websites:
        logger.info("No websites tracked yet")
        return
    store.save(asyncio.run(status_async(websites, cfg)))


@app.command("scan-all")
def scan_all(
    config: str = typer.Option("config.yaml", "-c", "--config", help="Config file path"),
    profile: str = typer.Option(None, "-p", "--profile", help="Scan profile: stealthy, normal, aggressive"),
    token: str = typer.Option(None, "--token", help="WPScan API token"),
    output: str = typer.Option(None, "-o", "--output", help="Output directory"),
):
    """Scan every tracked website and record the results."""
    cfg = load_config(config, profile, token)
    store = WebsiteStore(cfg.storage_path)
    websites = store.load()
    if not websites:
        logger.info("No websites tracked yet")
        return

    results = asyncio.run(ScanOrchestrator(cfg).scan_many([w.url for w in websites]))

    for website, result in zip(websites, results):
        if isinstance(result, TransportError):
            website.record_status(0)
            continue
        website.record_scan(result)
        path = write_report(result, output or cfg.output_dir)
        summary = result.summary()
        logger.info(f"{website.url}: {summary['vulnerabilities']} vulnerabilities ({path})")
    store.save(websites)


@app.command("export")
def export_websites(
    output: str = typer.Option("websites-export.json", "-o", "--output", help="Output file"),
    full: bool = typer.Option(False, "--full", help="Full backup with export date and format version"),
    config: str = typer.Option("config.yaml", "-c", "--config", help="Config file path"),
):
    """Export tracked websites to a JSON file."""
    cfg = load_config(config)
    try:
        data = WebsiteStore(cfg.storage_path).export_websites(full_backup=full)
    except StorageError as e:
        logger.error(str(e))
        raise typer.Exit(code=1)

    path = Path(output)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2)
    count = len(data["websites"] if full else data)
    logger.success(f"Exported {count} websites to {path}")


@app.command("import")
def import_websites(
    source: str = typer.Argument(..., help="JSON export or full backup"),
    replace: bool = typer.Option(False, "--replace", help="Discard tracked websites instead of merging"),
    config: str = typer.Option("config.yaml", "-c", "--config", help="Config file path"),
):
    """Import websites from a JSON export or full backup."""
    cfg = load_config(config)
    try:
        with open(source, 'r', encoding='utf-8') as f:
            data = json.load(f)
        result = WebsiteStore(cfg.storage_path).import_websites(data, merge=not replace)
    except (OSError, ValueError) as e:
        logger.error(f"Cannot read {source}: {e}")
        raise typer.Exit(code=1)
    except StorageError as e:
        logger.error(str(e))
        raise typer.Exit(code=1)
    logger.success(f"Imported {result.imported} websites, skipped {result.skipped} duplicates")


@app.command()
def version():
    """Show SiteWatch version."""
    console.print(f"[cyan]SiteWatch v{__version__}[/cyan]")
    console.print("Website portfolio monitor and WordPress scanner")


if __name__ == "__main__":
    app()
