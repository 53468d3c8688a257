"""Tests for settings and logging configuration."""

import json
import logging

import pytest

pytestmark = pytest.mark.unit

from contentgate.config import JsonLogFormatter, Settings, configure_logging, get_settings


class TestSettings:
    """Test settings defaults and environment overrides."""

    def test_defaults(self, monkeypatch):
        for name in ("SANITY_DATASET", "SANITY_API_VERSION", "RELEASE_DOCUMENT_LIMIT"):
            monkeypatch.delenv(name, raising=False)
        settings = Settings()

        assert settings.sanity_dataset == "production"
        assert settings.sanity_api_version == "2024-05-23"
        assert settings.release_document_limit == 50
        assert settings.strict_field_operations is True
        assert settings.subscription_idle_timeout is None

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("SANITY_PROJECT_ID", "abc123")
        monkeypatch.setenv("SANITY_DATASET", "staging")
        monkeypatch.setenv("SUBSCRIPTION_IDLE_TIMEOUT", "120")

        settings = get_settings()

        assert settings.sanity_project_id == "abc123"
        assert settings.sanity_dataset == "staging"
        assert settings.subscription_idle_timeout == 120.0
        assert get_settings() is settings

    def test_api_version_and_url(self):
        settings = Settings(sanity_api_version="v2025-02-19", sanity_api_host="https://api.example.com/")

        assert settings.get_api_version() == "2025-02-19"
        assert settings.project_url("abc") == "https://abc.api.example.com/v2025-02-19"
        assert settings.project_url("abc", "vX") == "https://abc.api.example.com/vX"


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


@pytest.mark.usefixtures("restore_root_logger")
class TestLogging:
    """Test logging configuration."""

    def test_json_formatter(self):
        record = logging.LogRecord("contentgate.test", logging.INFO, __file__, 1, "hello %s", ("world",), None)
        payload = json.loads(JsonLogFormatter().format(record))

        assert payload["message"] == "hello world"
        assert payload["level"] == "INFO"
        assert payload["logger"] == "contentgate.test"

    def test_configure_logging_json(self):
        configure_logging(Settings(log_level="debug", log_format="json"))

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert isinstance(root.handlers[0].formatter, JsonLogFormatter)

    def test_configure_logging_text(self):
        configure_logging(Settings(log_level="WARNING", log_format="text"))

        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert not isinstance(root.handlers[0].formatter, JsonLogFormatter)
