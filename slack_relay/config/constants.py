"""
Application constants and enumerations.

This module defines the Slack API limits, formatting placeholders and
Linear colour mappings used throughout the relay.
"""

from enum import Enum
from typing import Dict

# Service Information
SERVICE_NAME = "slack-relay"

# Slack message limits
SLACK_TEXT_LIMIT = 4000
SLACK_MAX_BLOCKS = 50
BLOCKS_FALLBACK_TEXT = "Shared a Block Kit message"

# Slack table block limits (100 rows total including the header)
MAX_TABLE_COLUMNS = 20
MAX_TABLE_DATA_ROWS = 99

# Cell placeholders
EMPTY_CELL_TEXT = " "
MISSING_CELL_TEXT = "—"

# Text sent alongside a message that only carries blocks or metadata
BLANK_MESSAGE_TEXT = " "

UNKNOWN_MESSAGE_ID = "unknown"

# Scope required for custom username / icon on chat.postMessage
CUSTOMIZE_SCOPE = "chat:write.customize"


class ChunkMode(str, Enum):
    """How outgoing text is pre-split before length chunking."""
    LENGTH = "length"
    NEWLINE = "newline"


class MarkdownTableMode(str, Enum):
    """How markdown pipe tables are rendered for Slack."""
    OFF = "off"
    CODE = "code"
    SLACK_BLOCKS = "slack-blocks"


class TargetKind(str, Enum):
    """Slack recipient kinds."""
    USER = "user"
    CHANNEL = "channel"


# Linear Work Objects
LINEAR_API_URL = "https://api.linear.app/graphql"
LINEAR_PRODUCT_NAME = "Linear"
WORK_OBJECT_ENTITY_TYPE = "slack#/entities/task"
WORK_OBJECT_USER_TYPE = "slack#/types/user"
WORK_OBJECT_DEFAULT_LIMIT = 5
WORK_OBJECT_DESCRIPTION_LIMIT = 500
DEFAULT_TAG_COLOR = "gray"

# Valid Slack tag_color values: red, yellow, green, gray, blue
STATE_TYPE_COLORS: Dict[str, str] = {
    "backlog": "gray",
    "unstarted": "blue",
    "started": "yellow",
    "completed": "green",
    "cancelled": "red",
    "triage": "blue",
}

PRIORITY_COLORS: Dict[int, str] = {
    0: "gray",    # No priority
    1: "red",     # Urgent
    2: "red",     # High
    3: "yellow",  # Medium
    4: "blue",    # Low
}
