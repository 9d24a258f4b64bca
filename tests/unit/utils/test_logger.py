# tests/unit/utils/test_logger.py
"""Tests for utils/logger.py — structlog configuration."""

from __future__ import annotations

import json
import logging

import pytest
import structlog

from slack_relay.config.settings import Settings
from slack_relay.utils.logger import configure_from_settings, configure_structured_logging, get_logger


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.reset_defaults()


class TestConfigureStructuredLogging:
    def test_json_rendering(self, caplog):
        configure_structured_logging("INFO", "json")
        caplog.set_level(logging.INFO)

        get_logger("relay.json").info("Slack message sent", channel_id="C123")

        event = json.loads(caplog.records[-1].getMessage())
        assert event["event"] == "Slack message sent"
        assert event["channel_id"] == "C123"
        assert event["level"] == "info"
        assert event["logger"] == "relay.json"
        assert "timestamp" in event

    def test_level_filter(self, caplog):
        configure_from_settings(Settings(_env_file=None, LOG_LEVEL="WARNING", LOG_FORMAT="text"))
        caplog.set_level(logging.WARNING)

        get_logger("relay.text").debug("hidden")
        get_logger("relay.text").warning("shown")

        messages = [record.getMessage() for record in caplog.records]
        assert not any("hidden" in m for m in messages)
        assert any("shown" in m for m in messages)
