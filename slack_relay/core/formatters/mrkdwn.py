"""
Markdown to Slack mrkdwn conversion and text chunking.

Best-effort conversion of common (GitHub-flavoured) markdown to Slack's
mrkdwn dialect. Fenced code blocks and inline code are left untouched.
"""

import re
from typing import List

from slack_relay.config.constants import MarkdownTableMode
from slack_relay.core.formatters.table_blocks import is_header_candidate, is_separator_row

FENCE = "```"
FENCED_BLOCK_PATTERN = re.compile(r"(```[\s\S]*?```)")
INLINE_CODE_PATTERN = re.compile(r"`[^`\n]+`")

BULLET_PATTERN = re.compile(r"^([ \t]*)[-*+][ \t]+", re.MULTILINE)
ITALIC_STAR_PATTERN = re.compile(r"(?<![\w*])\*(?![*\s])([^*\n]+?)(?<![\s*])\*(?![\w*])")
BOLD_PATTERN = re.compile(r"\*\*(.+?)\*\*|__(.+?)__")
STRIKE_PATTERN = re.compile(r"~~(.+?)~~")
LINK_PATTERN = re.compile(r"\[([^\]]+)\]\(([^)\s]+)\)")
HEADING_PATTERN = re.compile(r"^#{1,6}[ \t]+(.+?)[ \t]*#*[ \t]*$", re.MULTILINE)
PLACEHOLDER_PATTERN = re.compile(r"\x00(\d+)\x00")


def _convert_inline(text: str) -> str:
    """Convert one prose segment; inline code spans and links are shielded."""
    shielded: List[str] = []

    def _shield(value: str) -> str:
        shielded.append(value)
        return f"\x00{len(shielded) - 1}\x00"

    t = INLINE_CODE_PATTERN.sub(lambda m: _shield(m.group(0)), text)
    t = LINK_PATTERN.sub(lambda m: _shield(f"<{m.group(2)}|{m.group(1)}>"), t)

    t = BULLET_PATTERN.sub(r"\1• ", t)
    # Single-star italics first so converted bold is not re-read as italic
    t = ITALIC_STAR_PATTERN.sub(r"_\1_", t)
    t = BOLD_PATTERN.sub(lambda m: f"*{m.group(1) if m.group(1) is not None else m.group(2)}*", t)
    t = STRIKE_PATTERN.sub(r"~\1~", t)
    t = HEADING_PATTERN.sub(lambda m: f"*{m.group(1).strip('*').strip()}*", t)

    def _restore(match) -> str:
        return PLACEHOLDER_PATTERN.sub(_restore, shielded[int(match.group(1))])

    return PLACEHOLDER_PATTERN.sub(_restore, t)


def _fence_tables(text: str) -> List[str]:
    """Split prose into segments, wrapping each pipe table in a code fence."""
    lines = text.split("\n")
    segments: List[str] = []
    prose: List[str] = []
    i = 0

    while i < len(lines):
        line = lines[i].strip()
        if (
            is_header_candidate(line)
            and i + 1 < len(lines)
            and is_separator_row(lines[i + 1].strip())
        ):
            table = [lines[i], lines[i + 1]]
            i += 2
            while i < len(lines) and lines[i].strip().startswith("|"):
                table.append(lines[i])
                i += 1
            if prose:
                segments.append("\n".join(prose) + "\n")
                prose = []
            segments.append(FENCE + "\n" + "\n".join(table) + "\n" + FENCE)
            if i < len(lines):
                prose.append("")
            continue
        prose.append(lines[i])
        i += 1

    if prose:
        segments.append("\n".join(prose))
    return segments


def markdown_to_slack_mrkdwn(
        text: str,
        table_mode: MarkdownTableMode = MarkdownTableMode.CODE
) -> str:
    """
    Convert markdown to Slack mrkdwn.

    Key conversions:
    - **bold** / __bold__ -> *bold*
    - *italic* -> _italic_
    - ~~strike~~ -> ~strike~
    - [label](url) -> <url|label>
    - # Heading -> *Heading*
    - "- item" -> "• item"

    With ``table_mode`` CODE, pipe tables are wrapped in code fences; OFF
    leaves them as they are.
    """
    if not text:
        return ""

    out: List[str] = []
    for part in FENCED_BLOCK_PATTERN.split(text):
        if not part:
            continue
        if part.startswith(FENCE) and part.endswith(FENCE) and len(part) >= 2 * len(FENCE):
            out.append(part)
            continue
        if table_mode == MarkdownTableMode.CODE:
            for segment in _fence_tables(part):
                out.append(segment if segment.startswith(FENCE) else _convert_inline(segment))
        else:
            out.append(_convert_inline(part))

    return "".join(out)


def chunk_text(text: str, limit: int) -> List[str]:
    """Split text into chunks of at most ``limit`` characters.

    Breaks on the last newline inside the window, then the last space, and
    only cuts mid-word when neither exists.
    """
    if limit <= 0:
        raise ValueError("limit must be positive")

    chunks: List[str] = []
    remaining = text
    while len(remaining) > limit:
        window = remaining[:limit]
        break_point = window.rfind("\n")
        if break_point <= 0:
            break_point = window.rfind(" ")
        if break_point <= 0:
            break_point = limit

        chunk = remaining[:break_point].rstrip()
        if chunk:
            chunks.append(chunk)
        remaining = remaining[break_point:]
        if remaining[:1] in ("\n", " "):
            remaining = remaining[1:]

    if remaining.strip():
        chunks.append(remaining)
    return chunks


def chunk_markdown_text(text: str, limit: int) -> List[str]:
    """Split on paragraph boundaries (blank lines outside code fences).

    Each paragraph becomes its own chunk; paragraphs longer than ``limit``
    are further split by length.
    """
    paragraphs: List[str] = []
    current: List[str] = []
    in_fence = False

    for line in text.split("\n"):
        if line.strip().startswith(FENCE):
            in_fence = not in_fence
        if not in_fence and not line.strip():
            if current:
                paragraphs.append("\n".join(current))
                current = []
            continue
        current.append(line)
    if current:
        paragraphs.append("\n".join(current))

    chunks: List[str] = []
    for paragraph in paragraphs:
        chunks.extend(chunk_text(paragraph, limit))
    return chunks


def markdown_to_slack_mrkdwn_chunks(
        markdown: str,
        limit: int,
        table_mode: MarkdownTableMode = MarkdownTableMode.CODE
) -> List[str]:
    """Convert to mrkdwn, then split by length."""
    return chunk_text(markdown_to_slack_mrkdwn(markdown, table_mode), limit)
