# SiteWatch Modules
