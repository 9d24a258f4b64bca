"""
Formatters: markdown table extraction to Block Kit, and markdown to mrkdwn.
"""

from slack_relay.core.formatters.table_blocks import (
    ParsedTable,
    build_cell,
    build_table_block,
    extract_slack_table_block,
    locate_first_table,
    parse_inline_markdown,
)
from slack_relay.core.formatters.mrkdwn import (
    chunk_markdown_text,
    chunk_text,
    markdown_to_slack_mrkdwn,
    markdown_to_slack_mrkdwn_chunks,
)

__all__ = [
    "ParsedTable",
    "build_cell",
    "build_table_block",
    "extract_slack_table_block",
    "locate_first_table",
    "parse_inline_markdown",
    "chunk_markdown_text",
    "chunk_text",
    "markdown_to_slack_mrkdwn",
    "markdown_to_slack_mrkdwn_chunks",
]
