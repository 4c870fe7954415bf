"""Tests for logging configuration read from the environment."""

import logging

import pytest

from contextual import config


@pytest.mark.unit
class TestLogLevel:

    def test_default_level(self, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        assert config.get_log_level() == logging.INFO

    def test_level_from_env(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        assert config.get_log_level() == logging.DEBUG

    def test_invalid_level_falls_back(self, monkeypatch, caplog):
        monkeypatch.setenv("LOG_LEVEL", "LOUD")
        with caplog.at_level(logging.WARNING, logger="contextual"):
            assert config.get_log_level() == logging.INFO
        assert "Invalid LOG_LEVEL 'LOUD'" in caplog.text


@pytest.mark.unit
class TestConfigureLogging:

    def test_applies_level_and_format(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        monkeypatch.setenv("LOG_FORMAT", "%(levelname)s %(message)s")

        config.configure_logging()

        contextual_logger = logging.getLogger("contextual")
        assert contextual_logger.level == logging.ERROR
        assert len(contextual_logger.handlers) == 1
        assert contextual_logger.handlers[0].formatter._fmt == "%(levelname)s %(message)s"

    def test_repeat_calls_do_not_stack_handlers(self):
        config.configure_logging()
        config.configure_logging()
        assert len(logging.getLogger("contextual").handlers) == 1
