"""
Extract markdown tables from text and convert them to Slack Block Kit table blocks.

Slack constraints:
- Only one table block per message
- Max 100 rows (header included), max 20 columns
- Cells are ``raw_text`` or ``rich_text``

The first pipe table found is removed from the text and returned as a block;
the remaining text is sent as usual. Nothing here raises: malformed input
simply means "no table".
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from slack_relay.config.constants import (
    MAX_TABLE_COLUMNS,
    MAX_TABLE_DATA_ROWS,
    EMPTY_CELL_TEXT,
    MISSING_CELL_TEXT,
)
from slack_relay.models.types import (
    ColumnSetting,
    PlainCell,
    RichTextSection,
    StyledCell,
    StyledRun,
    TableBlock,
    TableCell,
    TableExtraction,
)

# Order matters: bold before italic before strike before code before link.
INLINE_PATTERN = re.compile(
    r"\*\*(.+?)\*\*|__(.+?)__"
    r"|\*(.+?)\*|_(.+?)_"
    r"|~~(.+?)~~"
    r"|`([^`]+)`"
    r"|\[([^\]]+)\]\(([^)]+)\)"
)
INLINE_MARKER_PATTERN = re.compile(
    r"\*\*.+?\*\*|__.+?__|\*.+?\*|_.+?_|~~.+?~~|`[^`]+`|\[.+?\]\(.+?\)"
)
SEPARATOR_CELL_PATTERN = re.compile(r"^\s*:?-+:?\s*$")


@dataclass
class ParsedTable:
    """First pipe table of a text. ``start``/``end`` are character offsets."""
    headers: List[str]
    rows: List[List[str]]
    start: int
    end: int


class ScanState(str, Enum):
    SEARCHING = "searching"
    AWAITING_SEPARATOR = "awaiting_separator"
    COLLECTING = "collecting"


# ============================================================================
# ROW HELPERS
# ============================================================================

def _strip_outer_pipes(line: str) -> str:
    if line.startswith("|"):
        line = line[1:]
    if line.endswith("|"):
        line = line[:-1]
    return line


def parse_pipe_row(line: str) -> List[str]:
    """Split ``| a | b |`` into trimmed cells."""
    return [cell.strip() for cell in _strip_outer_pipes(line).split("|")]


def is_separator_row(line: str) -> bool:
    """True for alignment rows such as ``| :--- | ---: | :---: |``."""
    if not line.startswith("|"):
        return False
    cells = _strip_outer_pipes(line).split("|")
    return all(SEPARATOR_CELL_PATTERN.match(cell) for cell in cells)


def is_header_candidate(line: str) -> bool:
    return line.startswith("|") and line.endswith("|") and "|" in line[1:]


# ============================================================================
# TABLE LOCATOR
# ============================================================================

def locate_first_table(text: str) -> Optional[ParsedTable]:
    """
    Find the first markdown pipe table in ``text``.

    Lines are split on ``\\n`` only; a trailing ``\\r`` stays part of the line
    and is stripped along with other whitespace when the line is inspected.

    Returns:
        ParsedTable, or None when no header + separator + data row is found
    """
    lines = text.split("\n")
    state = ScanState.SEARCHING
    header_index = -1
    last_row_index = -1
    headers: List[str] = []
    rows: List[List[str]] = []

    for index, raw_line in enumerate(lines):
        line = raw_line.strip()

        if state == ScanState.SEARCHING:
            if not is_header_candidate(line):
                continue
            next_line = lines[index + 1].strip() if index + 1 < len(lines) else ""
            if next_line and is_separator_row(next_line):
                headers = parse_pipe_row(line)
                header_index = index
                state = ScanState.AWAITING_SEPARATOR
            continue

        if state == ScanState.AWAITING_SEPARATOR:
            if is_separator_row(line):
                state = ScanState.COLLECTING
            else:
                headers = []
                header_index = -1
                state = ScanState.SEARCHING
            continue

        if not line.startswith("|"):
            break
        rows.append(parse_pipe_row(line))
        last_row_index = index

    if state != ScanState.COLLECTING or not headers or not rows:
        return None

    start = sum(len(line) + 1 for line in lines[:header_index])
    last_consumed = max(last_row_index, header_index + 1)
    end = sum(len(line) + 1 for line in lines[:last_consumed + 1])

    return ParsedTable(
        headers=headers[:MAX_TABLE_COLUMNS],
        rows=[row[:MAX_TABLE_COLUMNS] for row in rows[:MAX_TABLE_DATA_ROWS]],
        start=start,
        end=end,
    )


# ============================================================================
# INLINE MARKDOWN
# ============================================================================

def _run_from_match(match: "re.Match[str]") -> StyledRun:
    bold, bold_alt, italic, italic_alt, strike, code, link_text, link_url = match.groups()
    if bold is not None or bold_alt is not None:
        return StyledRun.styled(bold if bold is not None else bold_alt, bold=True)
    if italic is not None or italic_alt is not None:
        return StyledRun.styled(italic if italic is not None else italic_alt, italic=True)
    if strike is not None:
        return StyledRun.styled(strike, strike=True)
    if code is not None:
        return StyledRun.styled(code, code=True)
    return StyledRun.link(link_text, link_url)


def parse_inline_markdown(text: str) -> List[StyledRun]:
    """
    Convert inline markdown into rich text runs.

    Handles **bold**, __bold__, *italic*, _italic_, ~~strike~~, `code` and
    [text](url). Spans are not nested: markers inside a matched span stay
    literal.
    """
    runs: List[StyledRun] = []
    last_index = 0

    for match in INLINE_PATTERN.finditer(text):
        if match.start() > last_index:
            runs.append(StyledRun.plain(text[last_index:match.start()]))
        runs.append(_run_from_match(match))
        last_index = match.end()

    if last_index < len(text):
        runs.append(StyledRun.plain(text[last_index:]))

    return runs


def has_inline_formatting(text: str) -> bool:
    return INLINE_MARKER_PATTERN.search(text) is not None


# ============================================================================
# CELLS AND BLOCK
# ============================================================================

def build_cell(text: str) -> TableCell:
    """Use rich_text when formatting is present, raw_text otherwise."""
    trimmed = text.strip() or EMPTY_CELL_TEXT
    if not has_inline_formatting(trimmed):
        return PlainCell(text=trimmed)
    return StyledCell(elements=[RichTextSection(elements=parse_inline_markdown(trimmed))])


def build_table_block(table: ParsedTable) -> TableBlock:
    """Build the Block Kit table; every row gets exactly one cell per header."""
    header_row = [build_cell(header or EMPTY_CELL_TEXT) for header in table.headers]
    column_count = len(table.headers)

    data_rows = [
        [
            build_cell(row[i] if i < len(row) else MISSING_CELL_TEXT)
            for i in range(column_count)
        ]
        for row in table.rows
    ]

    return TableBlock(
        column_settings=[ColumnSetting(is_wrapped=True) for _ in table.headers],
        rows=[header_row, *data_rows],
    )


def extract_slack_table_block(markdown: str) -> TableExtraction:
    """
    Extract the first markdown table.

    Returns:
        TableExtraction with the table removed from the text and the block,
        or the original text and no block when there is no table
    """
    table = locate_first_table(markdown)
    if table is None:
        return TableExtraction(text=markdown, table_block=None)

    before = markdown[:table.start].rstrip()
    after = markdown[table.end:].lstrip()
    text = "\n\n".join(part for part in (before, after) if part)

    return TableExtraction(text=text, table_block=build_table_block(table))
