"""
Unit tests for the configuration repository.
"""

import json

import pytest

from corewright.config.defaults import build_default_config
from corewright.config.repository import ConfigurationError, Repository


class TestRepository:
    """Tests for Repository."""

    def test_nested_get_and_default(self):
        config = Repository({"app": {"name": "demo"}})

        assert config.get("app.name") == "demo"
        assert config.get("app.missing", "fallback") == "fallback"
        assert config["app"] == {"name": "demo"}

    def test_falsy_values_are_present(self):
        config = Repository({"app": {"debug": False, "log_file": None}})

        assert config.has("app.debug")
        assert config.has("app.log_file")
        assert config.get("app.debug", True) is False

    def test_set_creates_intermediate_levels(self):
        config = Repository()
        config.set("server.kernels.http", "app.kernel.Kernel")

        assert config.get("server") == {"kernels": {"http": "app.kernel.Kernel"}}

    def test_set_many(self):
        config = Repository()
        config.set({"a.b": 1, "c": 2})

        assert config.get("a.b") == 1
        assert "c" in config

    def test_push(self):
        config = Repository({"app": {"providers": ["A"]}})
        config.push("app.providers", "B")

        assert config.get("app.providers") == ["A", "B"]

    def test_defaults_merge_under_items(self):
        config = Repository({"app": {"name": "demo"}}, defaults=build_default_config())

        assert config.get("app.name") == "demo"
        assert config.get("app.timezone") == "UTC"
        assert config.get("server.kernels") == {}

    def test_defaults_are_not_shared(self):
        defaults = {"app": {"providers": []}}
        config = Repository(defaults=defaults)
        config.push("app.providers", "A")

        assert defaults["app"]["providers"] == []


class TestFromFile:
    """Tests for loading JSON configuration."""

    def test_missing_file_uses_defaults(self, tmp_path):
        config = Repository.from_file(str(tmp_path / "missing.json"), {"app": {"name": "x"}})

        assert config.get("app.name") == "x"

    def test_loads_and_merges(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"app": {"name": "site"}}), encoding="utf-8")

        config = Repository.from_file(str(path), build_default_config())

        assert config.get("app.name") == "site"
        assert config.get("app.locale") == "en"

    @pytest.mark.parametrize("content", ["{not json", "[1, 2]"])
    def test_invalid_file(self, tmp_path, content):
        path = tmp_path / "config.json"
        path.write_text(content, encoding="utf-8")

        with pytest.raises(ConfigurationError):
            Repository.from_file(str(path))
