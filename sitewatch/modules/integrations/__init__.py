# SiteWatch Integrations Module
from .wpscan_api import LookupResult, LookupStatus, WPScanAPI

__all__ = [
    'LookupResult',
    'LookupStatus',
    'WPScanAPI',
]
