"""
Models package: Block Kit table types, send-path models and Linear payloads.
"""

from slack_relay.models.types import (
    RunStyle,
    StyledRun,
    RichTextSection,
    PlainCell,
    StyledCell,
    TableCell,
    ColumnSetting,
    TableBlock,
    TableExtraction,
    SlackTarget,
    SlackSendIdentity,
    SlackSendOptions,
    SlackSendResult,
    LoadedMedia,
    LinearIssue,
    WorkObjectMetadata,
)

__all__ = [
    "RunStyle",
    "StyledRun",
    "RichTextSection",
    "PlainCell",
    "StyledCell",
    "TableCell",
    "ColumnSetting",
    "TableBlock",
    "TableExtraction",
    "SlackTarget",
    "SlackSendIdentity",
    "SlackSendOptions",
    "SlackSendResult",
    "LoadedMedia",
    "LinearIssue",
    "WorkObjectMetadata",
]
