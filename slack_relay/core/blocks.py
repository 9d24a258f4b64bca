"""
Validation and plain-text fallback for caller-supplied Block Kit blocks.
"""

from typing import Any, Dict, List

from slack_relay.config.constants import SLACK_MAX_BLOCKS, BLOCKS_FALLBACK_TEXT
from slack_relay.core.exceptions import ValidationError


def validate_slack_blocks_array(blocks: Any) -> List[Dict[str, Any]]:
    """
    Check that ``blocks`` is a usable chat.postMessage ``blocks`` value.

    Raises:
        ValidationError: When blocks is not a list of 1-50 typed objects
    """
    if not isinstance(blocks, list):
        raise ValidationError(
            field="blocks",
            value=type(blocks).__name__,
            validation_rule="blocks must be a list",
            expected_format="list of Block Kit objects"
        )
    if not blocks:
        raise ValidationError(
            field="blocks",
            value="[]",
            validation_rule="blocks must not be empty"
        )
    if len(blocks) > SLACK_MAX_BLOCKS:
        raise ValidationError(
            field="blocks",
            value=len(blocks),
            validation_rule=f"at most {SLACK_MAX_BLOCKS} blocks are allowed"
        )

    for index, block in enumerate(blocks):
        if not isinstance(block, dict):
            raise ValidationError(
                field=f"blocks[{index}]",
                value=type(block).__name__,
                validation_rule="each block must be an object"
            )
        block_type = block.get("type")
        if not isinstance(block_type, str) or not block_type.strip():
            raise ValidationError(
                field=f"blocks[{index}].type",
                value=block_type,
                validation_rule="each block needs a non-empty string type"
            )
    return blocks


def _text_of(obj: Any) -> str:
    if isinstance(obj, str):
        return obj
    if isinstance(obj, dict):
        text = obj.get("text")
        if isinstance(text, str):
            return text
        if isinstance(text, dict):
            return _text_of(text)
    return ""


def _rich_text_of(elements: Any) -> str:
    parts: List[str] = []
    for element in elements or []:
        if not isinstance(element, dict):
            continue
        if element.get("type") in ("text", "link"):
            parts.append(element.get("text") or element.get("url") or "")
        elif "elements" in element:
            parts.append(_rich_text_of(element["elements"]))
    return "".join(parts)


def _block_text(block: Dict[str, Any]) -> List[str]:
    block_type = block.get("type")
    texts: List[str] = []

    if block_type in ("header", "section"):
        texts.append(_text_of(block.get("text")))
        for field in block.get("fields") or []:
            texts.append(_text_of(field))
    elif block_type == "context":
        for element in block.get("elements") or []:
            texts.append(_text_of(element))
    elif block_type == "rich_text":
        texts.append(_rich_text_of(block.get("elements")))
    elif block_type == "table":
        for row in block.get("rows") or []:
            cells = []
            for cell in row:
                if not isinstance(cell, dict):
                    continue
                if cell.get("type") == "raw_text":
                    cells.append(cell.get("text") or "")
                else:
                    cells.append(_rich_text_of(cell.get("elements")))
            texts.append(" | ".join(c.strip() for c in cells))

    return [t.strip() for t in texts if t and t.strip()]


def build_slack_blocks_fallback_text(blocks: List[Dict[str, Any]]) -> str:
    """Plain-text summary of blocks for notifications and accessibility."""
    lines: List[str] = []
    for block in blocks:
        lines.extend(_block_text(block))
    return "\n".join(lines) or BLOCKS_FALLBACK_TEXT
