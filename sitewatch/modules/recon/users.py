"""
SiteWatch - User Enumeration
============================
List user accounts exposed by the WordPress REST API.
"""

from typing import List

from sitewatch.core.errors import ParseError, TransportError
from sitewatch.core.http_client import SiteHttpClient
from sitewatch.core.logger import logger
from sitewatch.core.models import User
from sitewatch.core.utils import site_base

USERS_ENDPOINT = "/wp-json/wp/v2/users"


class UserEnumerator:
    """Best-effort user enumeration via ``/wp-json/wp/v2/users``."""

    def __init__(self, http_client: SiteHttpClient):
        self.http = http_client

    async def enumerate(self, url: str) -> List[User]:
        """Return exposed users; an unavailable endpoint yields an empty list."""
        try:
            response = await self.http.get(f"{site_base(url)}{USERS_ENDPOINT}")
            if not response.ok:
                logger.debug(f"REST API users endpoint returned HTTP {response.status_code}")
                return []
            data = response.json()
        except (TransportError, ParseError) as e:
            logger.debug(f"REST API enumeration failed: {e}")
            return []

        users = self.parse_users(data)
        if users:
            logger.info(f"REST API exposed {len(users)} users")
        return users

    @staticmethod
    def parse_users(data) -> List[User]:
        """Admit entries carrying an integer ``id`` and a string ``slug``."""
        if not isinstance(data, list):
            return []

        users = []
        for user_data in data:
            if not isinstance(user_data, dict):
                continue
            user_id = user_data.get("id")
            slug = user_data.get("slug")
            if isinstance(user_id, bool) or not isinstance(user_id, int) or not isinstance(slug, str):
                continue
            name = user_data.get("name")
            users.append(User(
                id=user_id,
                login=slug,
                display_name=name if isinstance(name, str) else None,
            ))
        return users
