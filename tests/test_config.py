"""Tests for YAML configuration loading."""

import pytest
import yaml

from sitewatch.core.config import TOKEN_ENV_VAR, SiteWatchConfig


@pytest.fixture(autouse=True)
def no_env_token(monkeypatch):
    monkeypatch.delenv(TOKEN_ENV_VAR, raising=False)


class TestSiteWatchConfig:

    def test_defaults_when_file_missing(self, tmp_path):
        config = SiteWatchConfig.from_yaml(str(tmp_path / "missing.yaml"))

        assert config.active_profile == "normal"
        assert config.max_retries == 0
        assert config.vulndb.api_token is None
        assert config.vulndb.base_url == "https://wpscan.com/api/v3"

    def test_values_from_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({
            "http": {"timeout": 20, "max_retries": 2},
            "profile": "stealthy",
            "profiles": {"custom": {"requests_per_second": 5, "parallel_requests": 2}},
            "vulndb": {"base_url": "https://db.example/api/v3/", "api_token": "from-file"},
            "storage": {"path": "sites.json"},
            "proxy": {"enabled": True, "url": "http://proxy.local:3128"},
        }))

        config = SiteWatchConfig.from_yaml(str(path))

        assert config.timeout == 20.0
        assert config.max_retries == 2
        assert config.get_active_profile().parallel_requests == 1
        assert config.profiles["custom"].requests_per_second == 5
        assert "aggressive" in config.profiles
        assert config.vulndb.base_url == "https://db.example/api/v3"
        assert config.vulndb.api_token == "from-file"
        assert config.storage_path == "sites.json"
        assert config.get_proxy_url() == "http://proxy.local:3128"

    def test_token_from_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv(TOKEN_ENV_VAR, "env-token")

        config = SiteWatchConfig.from_yaml(str(tmp_path / "missing.yaml"))

        assert config.vulndb.api_token == "env-token"

    def test_file_token_beats_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv(TOKEN_ENV_VAR, "env-token")
        path = tmp_path / "config.yaml"
        path.write_text("vulndb:\n  api_token: from-file\n")

        assert SiteWatchConfig.from_yaml(str(path)).vulndb.api_token == "from-file"

    def test_empty_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")

        assert SiteWatchConfig.from_yaml(str(path)).active_profile == "normal"

    def test_set_profile(self):
        config = SiteWatchConfig()

        config.set_profile("aggressive")
        assert config.get_active_profile().parallel_requests == 8

        with pytest.raises(ValueError):
            config.set_profile("reckless")

    def test_proxy_disabled_by_default(self):
        assert SiteWatchConfig().get_proxy_url() is None

    def test_empty_sections_use_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("http:\nvulndb:\nprofiles:\n")

        config = SiteWatchConfig.from_yaml(str(path))

        assert config.timeout == 15.0
        assert config.vulndb.base_url == "https://wpscan.com/api/v3"
        assert set(config.profiles) == {"stealthy", "normal", "aggressive"}
