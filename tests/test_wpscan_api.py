"""Tests for the WPScan vulnerability database client and normalization."""

import httpx
import pytest

from sitewatch.core.config import VulnDBConfig
from sitewatch.core.errors import AuthorizationError, RateLimitError
from sitewatch.core.logger import logger
from sitewatch.core.models import ComponentKind
from sitewatch.modules.integrations import LookupStatus, WPScanAPI
from sitewatch.modules.integrations.wpscan_api import (
    UNKNOWN_TITLE,
    normalize_response,
    normalize_vulnerability,
)

from conftest import json_response

FOO_PATH = "vulndb.test/api/v3/plugins/foo"


@pytest.fixture
def api(http, config):
    return WPScanAPI(http, config.vulndb)


class TestNormalizeVulnerability:

    def test_full_record(self):
        vuln = normalize_vulnerability({
            "id": 4242,
            "title": "Foo <= 1.2 - Reflected XSS",
            "description": "Unescaped parameter",
            "cvss": {"score": 6.1, "vector": "AV:N"},
            "fixed_in": "1.3",
            "references": {"url": ["https://example.org/advisory"], "cve": ["2023-1234"]},
        })

        assert vuln.id == "4242"
        assert vuln.title == "Foo <= 1.2 - Reflected XSS"
        assert vuln.description == "Unescaped parameter"
        assert vuln.severity == "medium"
        assert vuln.fixed_in == "1.3"
        assert vuln.cve == "CVE-2023-1234"
        assert vuln.references == ("https://example.org/advisory",)

    def test_missing_title_uses_placeholder(self):
        vuln = normalize_vulnerability({"id": "x"})

        assert vuln.title == UNKNOWN_TITLE
        assert vuln.description == ""
        assert vuln.severity == "medium"
        assert vuln.cve is None
        assert vuln.fixed_in is None
        assert vuln.references == ()

    def test_explicit_severity_is_lowercased(self):
        vuln = normalize_vulnerability({"id": "1", "title": "t", "severity": "HIGH", "cvss": {"score": 2.0}})
        assert vuln.severity == "high"

    @pytest.mark.parametrize("raw,expected", [
        ({"cvss": {"score": 9.8}}, "critical"),
        ({"cvss": 7.0}, "high"),
        ({"cvss_score": "5.0"}, "medium"),
        ({"score": 3.9}, "low"),
        ({"cvss": {"score": "n/a"}}, "medium"),
    ])
    def test_severity_from_score_fields(self, raw, expected):
        assert normalize_vulnerability({"id": "1", "title": "t", **raw}).severity == expected

    def test_plain_reference_list_and_cve_field(self):
        vuln = normalize_vulnerability({
            "id": "1",
            "title": "t",
            "cve": "CVE-2024-0001",
            "references": ["https://a.example", None, ""],
        })

        assert vuln.cve == "CVE-2024-0001"
        assert vuln.references == ("https://a.example",)


class TestNormalizeResponse:

    def test_component_keyed_response(self):
        data = {
            "foo": {
                "latest_version": "2.0",
                "vulnerabilities": [
                    {"id": "1", "title": "First"},
                    {"id": "2", "title": "Second"},
                ],
            }
        }
        assert [v.title for v in normalize_response(data)] == ["First", "Second"]

    def test_top_level_vulnerability_list(self):
        data = {"vulnerabilities": [{"id": "1", "title": "Only"}, "junk"]}
        assert [v.title for v in normalize_response(data)] == ["Only"]

    def test_bare_list(self):
        assert [v.id for v in normalize_response([{"id": "1"}, {"nope": True}])] == ["1"]

    def test_single_object_per_key(self):
        data = {"a": {"id": "1", "title": "A"}, "b": [{"id": "2", "title": "B"}]}
        assert [v.title for v in normalize_response(data)] == ["A", "B"]

    def test_empty_inputs(self):
        assert normalize_response({}) == []
        assert normalize_response({"foo": {"vulnerabilities": []}}) == []
        assert normalize_response("text") == []


class TestWPScanAPI:

    def test_endpoints(self, api):
        assert api.endpoint(ComponentKind.CORE, "6.3.1") == "https://vulndb.test/api/v3/wordpresses/6.3.1"
        assert api.endpoint(ComponentKind.PLUGIN, "akismet") == "https://vulndb.test/api/v3/plugins/akismet"
        assert api.endpoint(ComponentKind.THEME, "astra") == "https://vulndb.test/api/v3/themes/astra"

    def test_enabled_follows_token(self, http):
        assert WPScanAPI(http, VulnDBConfig(api_token="t")).enabled is True
        assert WPScanAPI(http, VulnDBConfig(api_token=None)).enabled is False

    @pytest.mark.asyncio
    async def test_sends_token_header(self, api, web):
        web.routes[FOO_PATH] = {}

        await api.lookup(ComponentKind.PLUGIN, "foo")

        assert web.requests[0].headers["Authorization"] == "Token token=test-token"

    @pytest.mark.asyncio
    async def test_successful_lookup(self, api, web):
        web.routes[FOO_PATH] = {"foo": {"vulnerabilities": [{"id": "1", "title": "SQLi", "cvss": {"score": 8.8}}]}}

        result = await api.lookup_detailed(ComponentKind.PLUGIN, "foo")

        assert result.status is LookupStatus.OK
        assert not result.degraded
        assert [(v.title, v.severity) for v in result.vulnerabilities] == [("SQLi", "high")]

    @pytest.mark.asyncio
    async def test_lookup_leaves_reporting_to_caller(self, api, web, monkeypatch):
        printed = []
        monkeypatch.setattr(logger, "vuln", lambda severity, message: printed.append(message))
        web.routes[FOO_PATH] = {"foo": {"vulnerabilities": [{"id": "1", "title": "SQLi"}]}}

        result = await api.lookup_detailed(ComponentKind.PLUGIN, "foo")

        assert len(result.vulnerabilities) == 1
        assert printed == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("route,status", [
        (json_response(401, {"error": "bad token"}), LookupStatus.UNAUTHORIZED),
        (json_response(403, {"error": "forbidden"}), LookupStatus.UNAUTHORIZED),
        (json_response(429, {"error": "quota"}), LookupStatus.RATE_LIMITED),
        (json_response(500, {"error": "boom"}), LookupStatus.FAILED),
        (httpx.Response(200, text="<html>maintenance</html>"), LookupStatus.MALFORMED),
        (json_response(200, "just a string"), LookupStatus.MALFORMED),
        (httpx.ConnectTimeout("timed out"), LookupStatus.FAILED),
    ])
    async def test_degraded_outcomes(self, api, web, route, status):
        web.routes[FOO_PATH] = route

        result = await api.lookup_detailed(ComponentKind.PLUGIN, "foo")

        assert result.status is status
        assert result.degraded
        assert result.vulnerabilities == ()

    @pytest.mark.asyncio
    async def test_unknown_component_is_not_degraded(self, api, web):
        result = await api.lookup_detailed(ComponentKind.PLUGIN, "foo")

        assert result.status is LookupStatus.NOT_FOUND
        assert not result.degraded

    @pytest.mark.asyncio
    async def test_lookup_returns_empty_list_on_failure(self, api, web):
        web.routes[FOO_PATH] = json_response(401, {})

        assert await api.lookup(ComponentKind.PLUGIN, "foo") == []

    @pytest.mark.asyncio
    async def test_http_error_detail(self, api, web):
        web.routes[FOO_PATH] = json_response(502, {})

        result = await api.lookup_detailed(ComponentKind.PLUGIN, "foo")

        assert result.detail == "HTTP 502"

    @pytest.mark.asyncio
    async def test_fetch_raises_typed_errors(self, api, web):
        web.routes[FOO_PATH] = json_response(403, {})
        web.routes["vulndb.test/api/v3/themes/bar"] = json_response(429, {})

        with pytest.raises(AuthorizationError):
            await api.fetch(ComponentKind.PLUGIN, "foo")
        with pytest.raises(RateLimitError):
            await api.fetch(ComponentKind.THEME, "bar")

    @pytest.mark.asyncio
    async def test_fetch_returns_none_for_unknown_component(self, api, web):
        assert await api.fetch(ComponentKind.THEME, "missing") is None
