"""
Configuration package for the Slack relay.

This package provides environment-based settings, per-account
resolution and constants.
"""

from slack_relay.config.settings import (
    get_settings,
    resolve_slack_account,
    Settings,
    SlackAccountConfig,
    ResolvedSlackAccount,
)
from slack_relay.config.constants import (
    SERVICE_NAME,
    SLACK_TEXT_LIMIT,
    MAX_TABLE_COLUMNS,
    MAX_TABLE_DATA_ROWS,
    ChunkMode,
    MarkdownTableMode,
)

__all__ = [
    "get_settings",
    "resolve_slack_account",
    "Settings",
    "SlackAccountConfig",
    "ResolvedSlackAccount",
    "SERVICE_NAME",
    "SLACK_TEXT_LIMIT",
    "MAX_TABLE_COLUMNS",
    "MAX_TABLE_DATA_ROWS",
    "ChunkMode",
    "MarkdownTableMode",
]
