"""Shared test fixtures for unit tests.

Slack and Linear collaborators are mocked; no network access is needed.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from slack_relay.config.settings import Settings


@pytest.fixture
def settings() -> Settings:
    """Settings with a default-account token and Linear disabled."""
    return Settings(
        _env_file=None,
        SLACK_BOT_TOKEN="xoxb-test",
        SLACK_ACCOUNTS={},
        LINEAR_API_KEY=None,
    )


@pytest.fixture
def slack_client() -> MagicMock:
    """AsyncWebClient stand-in returning minimal successful responses."""
    client = MagicMock()
    client.chat_postMessage = AsyncMock(return_value={"ok": True, "ts": "1700000000.000100"})
    client.api_call = AsyncMock(return_value={"ok": True, "ts": "1700000000.000200"})
    client.conversations_open = AsyncMock(return_value={"ok": True, "channel": {"id": "D0DM"}})
    client.files_upload_v2 = AsyncMock(return_value={"ok": True, "files": [{"id": "F0FILE"}]})
    return client


@pytest.fixture
def table_markdown() -> str:
    return (
        "Quarterly summary\n"
        "\n"
        "| Team | Status |\n"
        "| :--- | ---: |\n"
        "| Core | **on track** |\n"
        "| Infra | [board](https://example.com/b) |\n"
        "\n"
        "Questions welcome."
    )
