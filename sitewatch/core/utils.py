"""
SiteWatch - Utility Functions
=============================
Common URL and markup helpers.
"""

from typing import Optional
from urllib.parse import urlparse

from bs4 import BeautifulSoup


def normalize_url(url: str) -> str:
    """
    Normalize a URL to standard format.

    Args:
        url: Input URL

    Returns:
        URL with scheme and without trailing slash
    """
    url = url.strip()
    if not url.startswith(('http://', 'https://')):
        url = 'https://' + url

    parsed = urlparse(url)
    path = parsed.path.rstrip('/')

    return f"{parsed.scheme}://{parsed.netloc}{path}"


def site_base(url: str) -> str:
    """Base URL under which WordPress resources live (no query, no trailing slash)."""
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}{parsed.path.rstrip('/')}"


def extract_domain(url: str) -> str:
    """Extract domain from URL."""
    return urlparse(url).netloc


def extract_page_title(html: str) -> Optional[str]:
    """Return the stripped ``<title>`` text of a page, if any."""
    soup = BeautifulSoup(html, 'lxml')
    if soup.title and soup.title.string:
        title = " ".join(soup.title.string.split())
        return title or None
    return None
