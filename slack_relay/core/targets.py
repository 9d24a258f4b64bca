"""
Recipient and token parsing for Slack sends.
"""

import re
from typing import Optional

from slack_relay.config.constants import TargetKind
from slack_relay.models.types import SlackTarget

USER_MENTION_PATTERN = re.compile(r"^<@([A-Z0-9]+)(?:\|[^>]*)?>$", re.IGNORECASE)
CHANNEL_MENTION_PATTERN = re.compile(r"^<#([A-Z0-9]+)(?:\|[^>]*)?>$", re.IGNORECASE)
USER_ID_PATTERN = re.compile(r"^[UW][A-Z0-9]{2,}$")

PREFIXES = {
    "user:": TargetKind.USER,
    "channel:": TargetKind.CHANNEL,
}


def parse_slack_target(raw: Optional[str]) -> Optional[SlackTarget]:
    """
    Parse a recipient string.

    Accepts ``<@U123>``, ``@U123``, ``user:U123``, ``<#C123|general>``,
    ``#C123``, ``channel:C123`` and bare ids (``U``/``W`` ids are users,
    anything else a channel).

    Returns:
        SlackTarget, or None for empty input
    """
    value = (raw or "").strip()
    if not value:
        return None

    lowered = value.lower()
    for prefix, kind in PREFIXES.items():
        if lowered.startswith(prefix):
            target_id = value[len(prefix):].strip()
            return SlackTarget(kind=kind, id=target_id) if target_id else None

    match = USER_MENTION_PATTERN.match(value)
    if match:
        return SlackTarget(kind=TargetKind.USER, id=match.group(1))

    match = CHANNEL_MENTION_PATTERN.match(value)
    if match:
        return SlackTarget(kind=TargetKind.CHANNEL, id=match.group(1))

    if value.startswith("@") and len(value) > 1:
        return SlackTarget(kind=TargetKind.USER, id=value[1:])
    if value.startswith("#") and len(value) > 1:
        return SlackTarget(kind=TargetKind.CHANNEL, id=value[1:])

    if USER_ID_PATTERN.match(value):
        return SlackTarget(kind=TargetKind.USER, id=value)
    return SlackTarget(kind=TargetKind.CHANNEL, id=value)


def resolve_slack_bot_token(raw: Optional[str]) -> Optional[str]:
    """Trimmed token, or None when blank."""
    token = (raw or "").strip()
    return token or None
