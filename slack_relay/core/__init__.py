"""
Core package: channels, formatters, targets, media and Work Objects.
"""

from slack_relay.core import exceptions
from slack_relay.core.channels import SlackChannel
from slack_relay.core.formatters import extract_slack_table_block
from slack_relay.core.work_objects import build_linear_work_objects

__all__ = [
    "exceptions",
    "SlackChannel",
    "extract_slack_table_block",
    "build_linear_work_objects",
]
