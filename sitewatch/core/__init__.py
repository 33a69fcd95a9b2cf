# SiteWatch Core
