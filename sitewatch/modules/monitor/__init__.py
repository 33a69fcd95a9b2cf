# SiteWatch Monitoring Modules
from .status import StatusChecker, StatusResult

__all__ = [
    'StatusChecker',
    'StatusResult',
]
