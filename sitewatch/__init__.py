# SiteWatch - website portfolio monitor and WordPress scanner
__version__ = "1.0.0"
