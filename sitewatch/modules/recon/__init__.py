# SiteWatch Recon Modules
from .fingerprint import WordPressDetector
from .version import VersionDetector
from .plugins import PluginEnumerator
from .themes import ThemeDetector
from .users import UserEnumerator

__all__ = [
    'WordPressDetector',
    'VersionDetector',
    'PluginEnumerator',
    'ThemeDetector',
    'UserEnumerator',
]
