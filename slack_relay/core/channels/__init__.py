"""
Channels package: the channel interface and the Slack implementation.
"""

from slack_relay.core.channels.base_channel import BaseChannel, ChannelMetrics
from slack_relay.core.channels.slack_channel import SlackChannel, is_customize_scope_error

__all__ = [
    "BaseChannel",
    "ChannelMetrics",
    "SlackChannel",
    "is_customize_scope_error",
]
