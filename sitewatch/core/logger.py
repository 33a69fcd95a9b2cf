"""
SiteWatch - Logger Module
=========================
Rich console logging with colored output and file logging support.
"""

import logging
import sys
from pathlib import Path
from typing import Any, Mapping, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table
from rich.theme import Theme

PLAIN_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

SITEWATCH_THEME = Theme({
    "info": "cyan",
    "warning": "yellow",
    "error": "red bold",
    "success": "green bold",
    "site.up": "green",
    "site.down": "red",
    "severity.low": "blue",
    "severity.medium": "yellow",
    "severity.high": "red",
    "severity.critical": "red bold reverse",
})

console = Console(theme=SITEWATCH_THEME)


class SiteWatchLogger:
    """
    Process-wide logger.

    Plain messages go through ``logging`` so they reach the log file too;
    the styled helpers only print to the console.
    """

    def __init__(self, name: str = "SiteWatch"):
        self.logger = logging.getLogger(name)
        self.configure()

    def configure(self, level: str = "INFO", log_file: Optional[str] = None, colored: bool = True):
        """Replace the handlers according to the logging settings."""
        self.logger.setLevel(getattr(logging, level.upper(), logging.INFO))
        self.logger.handlers.clear()

        if colored:
            handler: logging.Handler = RichHandler(console=console, show_path=False, rich_tracebacks=True)
            handler.setFormatter(logging.Formatter("%(message)s"))
        else:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(logging.Formatter(PLAIN_FORMAT))
        self.logger.addHandler(handler)

        if log_file:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
            file_handler.setFormatter(logging.Formatter(PLAIN_FORMAT))
            self.logger.addHandler(file_handler)

    def debug(self, message: str):
        self.logger.debug(message)

    def info(self, message: str):
        self.logger.info(message)

    def warning(self, message: str):
        self.logger.warning(message)

    def error(self, message: str):
        self.logger.error(message)

    def success(self, message: str):
        console.print(f"[success]+ {escape(message)}[/success]")

    def vuln(self, severity: str, message: str):
        """Print a known vulnerability styled by its severity tier."""
        tier = severity.lower()
        style = f"severity.{tier}" if tier in ("low", "medium", "high", "critical") else "warning"
        console.print(f"[{style}]! {escape(f'[{severity.upper()}]')} {escape(message)}[/{style}]")

    def site_status(self, status: int, url: str, up: bool):
        """One line of a status check run; ``0`` means unreachable."""
        style = "site.up" if up else "site.down"
        code = "---" if status == 0 else str(status)
        console.print(f"[{style}]{code:>3}[/{style}] {escape(url)}")

    def section(self, title: str):
        rule = "=" * 60
        console.print(f"\n[bold cyan]{rule}\n  {escape(title)}\n{rule}[/bold cyan]\n")

    def table_result(self, title: str, data: Mapping[str, Any]):
        """Print a two-column property table."""
        table = Table(title=title, show_header=True, header_style="bold magenta")
        table.add_column("Property", style="cyan")
        table.add_column("Value")
        for key, value in data.items():
            table.add_row(str(key), escape(str(value)))
        console.print(table)


logger = SiteWatchLogger()
