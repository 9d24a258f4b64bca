"""
Utility helpers shared across the relay.
"""

from slack_relay.utils.logger import (
    configure_structured_logging,
    configure_from_settings,
    get_logger,
)

__all__ = [
    "configure_structured_logging",
    "configure_from_settings",
    "get_logger",
]
