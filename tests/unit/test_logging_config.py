"""
Unit Tests for Settings and Logging Configuration
"""
import logging

import pytest
import structlog

from diastology.config.config import Settings
from diastology.config.logging_config import build_renderer, configure_logging


def make_settings(**overrides) -> Settings:
    values = {"environment": "development", "log_format": None, "log_level": "INFO"}
    values.update(overrides)
    return Settings(**values)


class TestLogFormat:
    """Tests for choosing the log output format."""

    @pytest.mark.parametrize(
        "environment,log_format,expected",
        [
            ("development", None, "console"),
            ("staging", None, "console"),
            ("production", None, "json"),
            ("production", "console", "console"),
            ("development", "json", "json"),
        ],
    )
    def test_effective_format(self, environment, log_format, expected):
        settings = make_settings(environment=environment, log_format=log_format)
        assert settings.effective_log_format == expected

    def test_renderer_follows_environment(self):
        assert isinstance(build_renderer(make_settings(environment="production")), structlog.processors.JSONRenderer)
        assert isinstance(build_renderer(make_settings()), structlog.dev.ConsoleRenderer)


class TestConfigureLogging:
    """Tests for the installed stdout handler."""

    @pytest.fixture(autouse=True)
    def restore_root_logger(self):
        root_logger = logging.getLogger()
        handlers, level = root_logger.handlers[:], root_logger.level
        yield
        root_logger.handlers = handlers
        root_logger.setLevel(level)

    def test_production_installs_json_renderer(self):
        configure_logging(make_settings(environment="production", log_level="warning"))

        root_logger = logging.getLogger()
        assert len(root_logger.handlers) == 1
        formatter = root_logger.handlers[0].formatter
        assert isinstance(formatter, structlog.stdlib.ProcessorFormatter)
        assert isinstance(formatter.processors[-1], structlog.processors.JSONRenderer)
        assert root_logger.level == logging.WARNING

    def test_development_installs_console_renderer(self):
        configure_logging(make_settings())

        formatter = logging.getLogger().handlers[0].formatter
        assert isinstance(formatter.processors[-1], structlog.dev.ConsoleRenderer)
