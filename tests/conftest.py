"""Shared fixtures: a fake web served through httpx.MockTransport."""

from __future__ import annotations

import json
from typing import Dict, List, Union

import httpx
import pytest

from sitewatch.core.config import SiteWatchConfig, VulnDBConfig
from sitewatch.core.http_client import SiteHttpClient

SITE = "https://wp.test"
VULNDB = "https://vulndb.test/api/v3"

Route = Union[httpx.Response, Exception, str, dict, list]


class FakeWeb:
    """Route table keyed by ``host + path``; unknown paths answer 404."""

    def __init__(self, routes: Dict[str, Route] = None):
        self.routes: Dict[str, Route] = dict(routes or {})
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = f"{request.url.host}{request.url.path}"
        route = self.routes.get(key)

        if route is None:
            return httpx.Response(404, text="Not Found")
        if isinstance(route, Exception):
            raise route
        if isinstance(route, httpx.Response):
            return route
        if isinstance(route, (dict, list)):
            return httpx.Response(200, json=route)
        return httpx.Response(200, text=route, headers={"content-type": "text/html"})

    @property
    def paths(self) -> List[str]:
        return [f"{r.url.host}{r.url.path}" for r in self.requests]

    def count(self, path: str) -> int:
        return self.paths.count(path)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def config() -> SiteWatchConfig:
    cfg = SiteWatchConfig()
    cfg.vulndb = VulnDBConfig(base_url=VULNDB, api_token="test-token", timeout=5)
    return cfg


@pytest.fixture
def web() -> FakeWeb:
    return FakeWeb()


@pytest.fixture
def http(config: SiteWatchConfig, web: FakeWeb) -> SiteHttpClient:
    return SiteHttpClient(config, transport=web.transport())


def json_response(status: int, payload) -> httpx.Response:
    return httpx.Response(status, text=json.dumps(payload), headers={"content-type": "application/json"})
