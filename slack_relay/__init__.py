"""
Slack relay - formats and sends chat messages through the Slack Web API.

Markdown tables are lifted into Block Kit table blocks and Linear tickets
mentioned in a message are attached as Work Objects.
"""

__version__ = "1.0.0"
__description__ = "Slack message relay with Block Kit tables and Linear Work Objects"

# Service identification
SERVICE_NAME = "slack-relay"

# Export commonly used components for convenience
from slack_relay.config.settings import get_settings
from slack_relay.utils.logger import get_logger, configure_structured_logging

__all__ = [
    "__version__",
    "__description__",
    "SERVICE_NAME",
    "get_settings",
    "get_logger",
    "configure_structured_logging",
]
