"""
SiteWatch - Website Store
=========================
JSON-file persistence for the list of tracked websites, with local
backup export and import.
"""

import json
from dataclasses import asdict, dataclass, field, fields
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from .errors import StorageError
from .logger import logger
from .models import ScanReport
from .utils import normalize_url

BACKUP_FORMAT_VERSION = "1.0"


class Industry(Enum):
    GENERAL = "general"
    ECOMMERCE = "ecommerce"
    FINANCE = "finance"
    HEALTHCARE = "healthcare"
    EDUCATION = "education"
    TECHNOLOGY = "technology"
    MEDIA = "media"
    TRAVEL = "travel"
    GOVERNMENT = "government"
    NONPROFIT = "nonprofit"


INDUSTRIES = frozenset(i.value for i in Industry)


def check_industry(industry: str) -> str:
    if industry not in INDUSTRIES:
        raise ValueError(f"Unknown industry: {industry}. Available: {', '.join(sorted(INDUSTRIES))}")
    return industry


@dataclass
class Website:
    """A tracked website and the outcome of its latest checks."""
    id: int
    url: str
    name: str
    status: Optional[int] = None
    last_checked: Optional[str] = None
    industry: str = Industry.GENERAL.value
    favorite: bool = False
    is_wordpress: Optional[bool] = None
    wordpress_version: Optional[str] = None
    last_scanned: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict) -> "Website":
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    @classmethod
    def from_import(cls, data: Dict, website_id: int) -> "Website":
        """
        Build a record from a backup entry under a new id.

        Only ``url`` is required; a missing name falls back to the URL and
        an empty or unknown industry to ``general``.
        """
        url = data.get("url")
        if not isinstance(url, str) or not url.strip():
            raise StorageError(f"Imported website has no URL: {data!r}")

        record = {k: v for k, v in data.items() if k in {f.name for f in fields(cls)}}
        record["id"] = website_id
        record["url"] = normalize_url(url)
        record["name"] = data.get("name") or record["url"]
        if not isinstance(record.get("industry"), str) or record["industry"] not in INDUSTRIES:
            record["industry"] = Industry.GENERAL.value
        return cls(**record)

    def to_dict(self) -> Dict:
        return asdict(self)

    def record_status(self, status: int):
        self.status = status
        self.last_checked = datetime.now(timezone.utc).isoformat()

    def record_scan(self, report: ScanReport):
        """Keep the latest scan outcome on the record."""
        self.is_wordpress = report.is_wordpress
        self.wordpress_version = report.wordpress_version
        self.last_scanned = report.scan_date.isoformat()


@dataclass
class ImportResult:
    imported: int = 0
    skipped: int = 0
    websites: List[Website] = field(default_factory=list)


class WebsiteStore:
    """
    Tracked websites stored as a JSON array.

    A missing file is an empty store; unreadable JSON or records that cannot
    be rebuilt are reported as a ``StorageError`` rather than silently
    discarded.
    """

    def __init__(self, path: str):
        self.path = Path(path)

    def load(self) -> List[Website]:
        if not self.path.exists():
            return []
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise StorageError(f"Cannot read {self.path}: {e}") from e

        if not isinstance(data, list):
            raise StorageError(f"{self.path} does not contain a website list")

        websites = []
        for index, item in enumerate(data):
            if not isinstance(item, dict):
                continue
            try:
                websites.append(Website.from_dict(item))
            except TypeError as e:
                raise StorageError(f"Invalid website record #{index} in {self.path}: {e}") from e
        return websites

    def save(self, websites: List[Website]):
        urls = [w.url for w in websites]
        if len(urls) != len(set(urls)):
            raise StorageError("Duplicate website URLs")

        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump([w.to_dict() for w in websites], f, indent=2)
            tmp_path.replace(self.path)
        except OSError as e:
            raise StorageError(f"Cannot write {self.path}: {e}") from e

    def get(self, url: str) -> Optional[Website]:
        target = normalize_url(url)
        for website in self.load():
            if website.url == target:
                return website
        return None

    def add(self, url: str, name: Optional[str] = None, industry: str = Industry.GENERAL.value) -> Website:
        """Track a new website; the URL must not already be tracked."""
        check_industry(industry)
        websites = self.load()
        target = normalize_url(url)
        if any(w.url == target for w in websites):
            raise StorageError(f"Website already tracked: {target}")

        website = Website(
            id=max((w.id for w in websites), default=0) + 1,
            url=target,
            name=name or target,
            industry=industry,
        )
        websites.append(website)
        self.save(websites)
        logger.info(f"Tracking {target} (id {website.id})")
        return website

    def update(self, website: Website) -> bool:
        """Replace the stored record with the same id."""
        websites = self.load()
        for index, existing in enumerate(websites):
            if existing.id == website.id:
                websites[index] = website
                self.save(websites)
                return True
        return False

    def remove(self, website_id: int) -> bool:
        websites = self.load()
        remaining = [w for w in websites if w.id != website_id]
        if len(remaining) == len(websites):
            return False
        self.save(remaining)
        return True

    def _edit(self, website_id: int, change: Callable[[Website], None]) -> Website:
        websites = self.load()
        for website in websites:
            if website.id == website_id:
                change(website)
                self.save(websites)
                return website
        raise StorageError(f"No website with id {website_id}")

    def toggle_favorite(self, website_id: int) -> Website:
        def flip(website: Website):
            website.favorite = not website.favorite
        return self._edit(website_id, flip)

    def set_industry(self, website_id: int, industry: str) -> Website:
        check_industry(industry)
        return self._edit(website_id, lambda website: setattr(website, "industry", industry))

    def export_websites(self, full_backup: bool = False) -> Union[List[Dict], Dict[str, Any]]:
        """
        Stored websites as JSON-ready data.

        A full backup wraps the list with its ``export_date`` and format
        ``version``; otherwise the plain list is returned.
        """
        websites = [w.to_dict() for w in self.load()]
        if not full_backup:
            return websites
        return {
            "websites": websites,
            "export_date": datetime.now(timezone.utc).isoformat(),
            "version": BACKUP_FORMAT_VERSION,
        }

    def import_websites(self, data: Union[List[Dict], Dict[str, Any]], merge: bool = True) -> ImportResult:
        """
        Restore websites from a plain list or a full backup.

        Merging keeps the current websites, skips URLs already tracked and
        numbers new records after the highest id. Replacing discards the
        current websites and numbers the imported ones from 1. Repeated URLs
        within the import are skipped in both modes.
        """
        entries = data.get("websites") if isinstance(data, dict) else data
        if not isinstance(entries, list):
            raise StorageError("Import data is neither a website list nor a backup")
        entries = [e for e in entries if isinstance(e, dict)]
        if not entries:
            raise StorageError("No websites found in import data")

        websites = self.load() if merge else []
        seen = {w.url for w in websites}
        next_id = max((w.id for w in websites), default=0) + 1
        result = ImportResult()

        for entry in entries:
            website = Website.from_import(entry, next_id)
            if website.url in seen:
                logger.debug(f"Skipping duplicate URL: {website.url}")
                result.skipped += 1
                continue
            seen.add(website.url)
            websites.append(website)
            next_id += 1
            result.imported += 1

        self.save(websites)
        result.websites = websites
        logger.info(f"Imported {result.imported} websites ({result.skipped} skipped)")
        return result
