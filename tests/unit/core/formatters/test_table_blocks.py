# tests/unit/core/formatters/test_table_blocks.py
"""Tests for core/formatters/table_blocks.py — markdown table to Block Kit."""

from __future__ import annotations

import pydantic
import pytest

from slack_relay.core.formatters.table_blocks import (
    build_cell,
    build_table_block,
    extract_slack_table_block,
    has_inline_formatting,
    is_separator_row,
    locate_first_table,
    parse_inline_markdown,
    parse_pipe_row,
)
from slack_relay.models.types import PlainCell, StyledCell, StyledRun


def _table(columns: int, rows: int) -> str:
    header = "| " + " | ".join(f"h{i}" for i in range(columns)) + " |"
    separator = "|" + "---|" * columns
    data = [
        "| " + " | ".join(f"r{r}c{c}" for c in range(columns)) + " |"
        for r in range(rows)
    ]
    return "\n".join([header, separator, *data])


class TestRowHelpers:
    def test_parse_pipe_row_trims_cells(self):
        assert parse_pipe_row("|  a | b  |c|") == ["a", "b", "c"]

    def test_parse_pipe_row_keeps_empty_cells(self):
        assert parse_pipe_row("| | x |") == ["", "x"]

    def test_alignment_separator_accepted(self):
        assert is_separator_row("| :--- | ---: | :---: |")
        assert is_separator_row("|---|---|")

    def test_non_dash_separator_rejected(self):
        assert not is_separator_row("| abc | --- |")

    def test_separator_must_start_with_pipe(self):
        assert not is_separator_row("--- | ---")


class TestLocateFirstTable:
    def test_no_pipes_returns_none(self):
        assert locate_first_table("just some text\nand more") is None

    def test_offsets_span_header_through_last_row(self):
        text = "Intro\n\n| a | b |\n| --- | --- |\n| 1 | 2 |\n\nOutro"
        table = locate_first_table(text)

        assert table is not None
        assert table.headers == ["a", "b"]
        assert table.rows == [["1", "2"]]
        assert table.start == 7
        assert text[table.start:table.end] == "| a | b |\n| --- | --- |\n| 1 | 2 |\n"

    def test_table_at_end_without_newline(self):
        text = "| a |\n|---|\n| 1 |"
        table = locate_first_table(text)

        assert table is not None
        assert table.start == 0
        assert table.end >= len(text)

    def test_bad_separator_abandons_candidate(self):
        assert locate_first_table("| a | b |\n| abc | --- |\n| 1 | 2 |") is None

    def test_header_and_separator_without_rows_is_not_a_table(self):
        assert locate_first_table("| a |\n|---|") is None
        assert locate_first_table("| a |\n|---|\n\nafter") is None

    def test_single_pipe_line_is_not_a_header(self):
        assert locate_first_table("|\n|---|\n| 1 |") is None

    def test_first_non_pipe_line_ends_table(self):
        text = "| a |\n|---|\n| 1 |\nnot table\n| 2 |"
        table = locate_first_table(text)

        assert table is not None
        assert table.rows == [["1"]]

    def test_only_first_table_returned(self):
        text = "| a |\n|---|\n| 1 |\n\n| b |\n|---|\n| 2 |"
        table = locate_first_table(text)

        assert table is not None
        assert table.headers == ["a"]

    def test_columns_truncated_to_twenty(self):
        table = locate_first_table(_table(25, 1))

        assert table is not None
        assert len(table.headers) == 20
        assert len(table.rows[0]) == 20

    def test_rows_truncated_to_ninety_nine(self):
        text = _table(2, 150)
        table = locate_first_table(text)

        assert table is not None
        assert len(table.rows) == 99
        # offsets still cover every source row
        assert table.end >= len(text)

    def test_crlf_lines_are_detected(self):
        text = "| a | b |\r\n|---|---|\r\n| 1 | 2 |\r\nafter"
        table = locate_first_table(text)

        assert table is not None
        assert table.headers == ["a", "b"]
        assert table.rows == [["1", "2"]]
        assert text[table.end:] == "after"


class TestParseInlineMarkdown:
    def test_bold_and_italic(self):
        assert parse_inline_markdown("**bold** and *italic*") == [
            StyledRun.styled("bold", bold=True),
            StyledRun.plain(" and "),
            StyledRun.styled("italic", italic=True),
        ]

    def test_underscore_variants(self):
        assert parse_inline_markdown("__b__ _i_") == [
            StyledRun.styled("b", bold=True),
            StyledRun.plain(" "),
            StyledRun.styled("i", italic=True),
        ]

    def test_strike_code_and_link(self):
        runs = parse_inline_markdown("~~old~~ `x=1` [docs](https://example.com)")

        assert runs == [
            StyledRun.styled("old", strike=True),
            StyledRun.plain(" "),
            StyledRun.styled("x=1", code=True),
            StyledRun.plain(" "),
            StyledRun.link("docs", "https://example.com"),
        ]

    def test_trailing_text_kept(self):
        assert parse_inline_markdown("*a* tail") == [
            StyledRun.styled("a", italic=True),
            StyledRun.plain(" tail"),
        ]

    def test_no_nesting(self):
        assert parse_inline_markdown("**a *b* c**") == [StyledRun.styled("a *b* c", bold=True)]
        assert parse_inline_markdown("**_x_**") == [StyledRun.styled("_x_", bold=True)]

    def test_no_markers_single_run(self):
        assert parse_inline_markdown("plain") == [StyledRun.plain("plain")]

    def test_empty_text(self):
        assert parse_inline_markdown("") == []

    def test_link_text_not_styled(self):
        (run,) = parse_inline_markdown("[**x**](https://e.com)")
        assert run.type == "link"
        assert run.text == "**x**"
        assert run.style is None


class TestBuildCell:
    def test_plain_cell(self):
        assert build_cell("  plain value ") == PlainCell(text="plain value")

    def test_blank_cell_becomes_space(self):
        assert build_cell("   ") == PlainCell(text=" ")

    def test_formatted_cell_is_single_section(self):
        cell = build_cell("**bold** and *italic*")

        assert isinstance(cell, StyledCell)
        assert len(cell.elements) == 1
        assert [run.text for run in cell.runs] == ["bold", " and ", "italic"]

    def test_detector_matches_without_tokens(self):
        # detector sees a link, the tokenizer does not: text falls back to one run
        assert has_inline_formatting("[a]b](c)")
        cell = build_cell("[a]b](c)")
        assert isinstance(cell, StyledCell)
        assert cell.runs == [StyledRun.plain("[a]b](c)")]


class TestBuildTableBlock:
    def test_short_row_padded_with_placeholder(self):
        table = locate_first_table("| a | b |\n|---|---|\n| 1 |")
        block = build_table_block(table)

        assert block.rows[1] == [PlainCell(text="1"), PlainCell(text="—")]

    def test_long_row_cut_to_header_count(self):
        table = locate_first_table("| a |\n|---|\n| 1 | 2 | 3 |")
        block = build_table_block(table)

        assert block.rows[1] == [PlainCell(text="1")]

    def test_empty_header_becomes_space(self):
        table = locate_first_table("|  | b |\n|---|---|\n| 1 | 2 |")
        block = build_table_block(table)

        assert block.rows[0][0] == PlainCell(text=" ")

    def test_column_settings_per_header(self):
        block = build_table_block(locate_first_table(_table(25, 150)))

        assert len(block.column_settings) == 20
        assert all(setting.is_wrapped for setting in block.column_settings)
        assert len(block.rows) == 100
        assert all(len(row) == 20 for row in block.rows)

    def test_to_slack_payload(self):
        block = build_table_block(locate_first_table("| **H** | L |\n|---|---|\n| [d](https://e.com) | x |"))
        payload = block.to_slack()

        assert payload["type"] == "table"
        assert payload["column_settings"] == [{"is_wrapped": True}, {"is_wrapped": True}]
        assert payload["rows"][0][0] == {
            "type": "rich_text",
            "elements": [{
                "type": "rich_text_section",
                "elements": [{"type": "text", "text": "H", "style": {"bold": True}}],
            }],
        }
        assert payload["rows"][0][1] == {"type": "raw_text", "text": "L"}
        assert payload["rows"][1][0]["elements"][0]["elements"] == [
            {"type": "link", "text": "d", "url": "https://e.com"}
        ]


class TestExtractSlackTableBlock:
    def test_no_table_returns_input(self):
        text = "nothing | here\nat all"
        result = extract_slack_table_block(text)

        assert result.text == text
        assert result.table_block is None

    def test_table_removed_with_single_blank_line(self, table_markdown: str):
        result = extract_slack_table_block(table_markdown)

        assert result.text == "Quarterly summary\n\nQuestions welcome."
        assert result.table_block is not None
        assert len(result.table_block.rows) == 3

    def test_only_table(self):
        result = extract_slack_table_block("| a |\n|---|\n| 1 |")

        assert result.text == ""
        assert result.table_block is not None

    def test_table_first(self):
        result = extract_slack_table_block("| a |\n|---|\n| 1 |\n\n\nafter  ")
        assert result.text == "after  "

    def test_truncated_rows_still_removed_from_text(self):
        result = extract_slack_table_block("Before\n\n" + _table(2, 150) + "\nAfter")
        assert result.text == "Before\n\nAfter"

    def test_splice_reconstructs_original(self, table_markdown: str):
        table = locate_first_table(table_markdown)
        result = extract_slack_table_block(table_markdown)
        before, after = result.text.split("\n\n", 1)
        removed = table_markdown[table.start:table.end]

        rebuilt = before + "\n\n" + removed + after
        assert rebuilt.split() == table_markdown.split()

    def test_crlf_residual(self):
        result = extract_slack_table_block("before\r\n| a |\r\n|---|\r\n| 1 |\r\nafter")

        assert result.text == "before\n\nafter"
        assert result.table_block.rows[1] == [PlainCell(text="1")]


class TestStyledRunModel:
    def test_link_runs_reject_style(self):
        with pytest.raises(pydantic.ValidationError):
            StyledRun(type="link", text="x", url="https://e.com", style={"bold": True})

    def test_runs_are_immutable(self):
        run = StyledRun.plain("x")
        with pytest.raises(pydantic.ValidationError):
            run.text = "y"
