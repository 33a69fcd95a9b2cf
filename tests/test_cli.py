"""Tests for the website management commands."""

import json

import pytest
import yaml
from typer.testing import CliRunner

from sitewatch.cli import app
from sitewatch.core.storage import WebsiteStore

runner = CliRunner()


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({"storage": {"path": str(tmp_path / "websites.json")}}))
    return str(path)


@pytest.fixture
def store(tmp_path):
    store = WebsiteStore(str(tmp_path / "websites.json"))
    store.add("https://a.test", name="A")
    store.add("https://b.test", name="B")
    return store


class TestBackupCommands:

    def test_export_writes_full_backup(self, config_file, store, tmp_path):
        output = tmp_path / "backup.json"

        result = runner.invoke(app, ["export", "--full", "-o", str(output), "-c", config_file])

        assert result.exit_code == 0
        data = json.loads(output.read_text())
        assert data["version"] == "1.0"
        assert [w["url"] for w in data["websites"]] == ["https://a.test", "https://b.test"]

    def test_import_merges_by_default(self, config_file, store, tmp_path):
        source = tmp_path / "import.json"
        source.write_text(json.dumps([{"url": "https://b.test"}, {"url": "https://c.test"}]))

        result = runner.invoke(app, ["import", str(source), "-c", config_file])

        assert result.exit_code == 0
        assert [(w.id, w.url) for w in store.load()] == [
            (1, "https://a.test"), (2, "https://b.test"), (3, "https://c.test"),
        ]

    def test_import_replace(self, config_file, store, tmp_path):
        source = tmp_path / "import.json"
        source.write_text(json.dumps({"websites": [{"url": "https://c.test"}]}))

        result = runner.invoke(app, ["import", str(source), "--replace", "-c", config_file])

        assert result.exit_code == 0
        assert [(w.id, w.url) for w in store.load()] == [(1, "https://c.test")]

    def test_import_rejects_unreadable_file(self, config_file, store, tmp_path):
        source = tmp_path / "import.json"
        source.write_text("{broken")

        result = runner.invoke(app, ["import", str(source), "-c", config_file])

        assert result.exit_code == 1
        assert len(store.load()) == 2

    def test_import_rejects_empty_list(self, config_file, store, tmp_path):
        source = tmp_path / "import.json"
        source.write_text("[]")

        result = runner.invoke(app, ["import", str(source), "-c", config_file])

        assert result.exit_code == 1


class TestEditCommands:

    def test_favorite_toggles(self, config_file, store):
        assert runner.invoke(app, ["favorite", "2", "-c", config_file]).exit_code == 0

        assert [w.favorite for w in store.load()] == [False, True]

    def test_favorite_unknown_id(self, config_file, store):
        assert runner.invoke(app, ["favorite", "9", "-c", config_file]).exit_code == 1

    def test_industry(self, config_file, store):
        assert runner.invoke(app, ["industry", "1", "finance", "-c", config_file]).exit_code == 0

        assert store.load()[0].industry == "finance"

    def test_industry_rejects_unknown_value(self, config_file, store):
        result = runner.invoke(app, ["industry", "1", "casino", "-c", config_file])

        assert result.exit_code == 1
        assert store.load()[0].industry == "general"
