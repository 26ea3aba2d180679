"""
Configuration Validation Tests.
Tests environment variables, config files, and missing configurations.

Run with: pytest tests/test_configuration.py -v
"""
import os
from unittest.mock import patch

import pytest
import yaml

from src.recurrence.generator import DeadlineGenerator
from src.recurrence.grouping import GroupingMode
from src.utils.config import (
    DEFAULT_DATABASE_URL,
    get_config_value,
    get_database_url,
    get_recurrence_settings,
    load_api_config,
)
from src.utils.errors import ValidationError


@pytest.fixture
def config_file(tmp_path):
    """Write a YAML config and return its path."""
    def _write(data):
        path = tmp_path / "api_config.yaml"
        path.write_text(yaml.safe_dump(data))
        return str(path)
    return _write


class TestConfigFile:
    """Test loading of config/api_config.yaml."""

    def test_default_config_has_required_sections(self):
        config = load_api_config()

        for section in ("api", "server", "database", "recurrence"):
            assert section in config
        assert config["api"]["prefix"] == "/api/v1"
        assert config["recurrence"]["lookahead_cap"] == 3
        assert config["recurrence"]["grouping"] == "per_call"

    def test_load_from_explicit_path(self, config_file):
        path = config_file({"recurrence": {"lookahead_cap": 5}})

        assert load_api_config(path) == {"recurrence": {"lookahead_cap": 5}}

    def test_load_from_config_path_env(self, config_file):
        path = config_file({"api": {"title": "Custom"}})

        with patch.dict(os.environ, {"CONFIG_PATH": path}):
            assert load_api_config()["api"]["title"] == "Custom"

    def test_empty_file_yields_empty_config(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert load_api_config(str(path)) == {}

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_api_config(str(tmp_path / "missing.yaml"))


class TestConfigValues:
    """Test placeholder handling."""

    def test_placeholder_falls_back_to_default(self):
        assert get_config_value({"url": "${DATABASE_URL}"}, "url", "fallback") == "fallback"

    def test_none_falls_back_to_default(self):
        assert get_config_value({"url": None}, "url", "fallback") == "fallback"

    def test_plain_value_is_kept(self):
        assert get_config_value({"url": "sqlite://"}, "url", "fallback") == "sqlite://"


class TestEnvironmentVariables:
    """Test environment variable handling."""

    def test_database_url_placeholder_uses_default(self):
        with patch.dict(os.environ, {}, clear=True):
            assert get_database_url({"database": {"url": "${DATABASE_URL}"}}) == DEFAULT_DATABASE_URL

    def test_database_url_from_config(self):
        with patch.dict(os.environ, {}, clear=True):
            assert get_database_url({"database": {"url": "postgresql://db/deadlines"}}) == "postgresql://db/deadlines"

    def test_database_url_env_override(self):
        with patch.dict(os.environ, {"DATABASE_URL": "sqlite:///./other.db"}):
            assert get_database_url({"database": {"url": "postgresql://db/deadlines"}}) == "sqlite:///./other.db"

    def test_recurrence_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            assert get_recurrence_settings({}) == {"lookahead_cap": 3, "grouping": "per_call"}

    def test_recurrence_from_config(self):
        config = {"recurrence": {"lookahead_cap": 6, "grouping": "per_target"}}

        with patch.dict(os.environ, {}, clear=True):
            assert get_recurrence_settings(config) == {"lookahead_cap": 6, "grouping": "per_target"}

    def test_recurrence_env_override(self):
        env = {"RECURRENCE_LOOKAHEAD_CAP": "12", "RECURRENCE_GROUPING": "PER_TARGET"}

        with patch.dict(os.environ, env):
            settings = get_recurrence_settings({"recurrence": {"lookahead_cap": 3}})

        assert settings == {"lookahead_cap": 12, "grouping": "per_target"}

    def test_invalid_cap_is_rejected(self):
        with patch.dict(os.environ, {"RECURRENCE_LOOKAHEAD_CAP": "invalid"}):
            with pytest.raises(ValueError):
                get_recurrence_settings({})

    def test_env_example_documents_variables(self):
        """Test that the environment variables are documented."""
        if not os.path.exists(".env.example"):
            pytest.skip(".env.example not found")

        with open(".env.example", "r") as f:
            content = f.read()
        for var in ("DATABASE_URL", "LOG_LEVEL", "LOG_FILE", "RECURRENCE_LOOKAHEAD_CAP", "RECURRENCE_GROUPING"):
            assert var in content


class TestSettingsApplied:
    """Test that resolved settings build a valid generator."""

    def test_generator_from_settings(self):
        settings = {"lookahead_cap": 4, "grouping": "per_target"}

        generator = DeadlineGenerator(cap=settings["lookahead_cap"], grouping=settings["grouping"])

        assert generator.cap == 4
        assert generator.grouping == GroupingMode.PER_TARGET

    def test_unknown_grouping_is_rejected(self):
        with pytest.raises(ValueError):
            DeadlineGenerator(grouping="per_planet")

    def test_zero_cap_is_rejected(self):
        with pytest.raises(ValidationError):
            DeadlineGenerator(cap=0)
