"""Unit tests for boardbot_lite.display.preview."""

import pytest

from boardbot_lite.display.preview import PreviewRenderer, render_preview

pytestmark = [pytest.mark.unit, pytest.mark.fast]


def test_render_preview_when_lines_fit_then_each_marked_ok() -> None:
    """test_render_preview_when_lines_fit_then_each_marked_ok"""
    assert render_preview("HELLO\nWORLD") == (
        "Preview (5x21 content area):\n\nHELLO |ok 5 chars\nWORLD |ok 5 chars"
    )


def test_render_preview_when_line_too_wide_then_overflow_and_wrap_shown() -> None:
    """test_render_preview_when_line_too_wide_then_overflow_and_wrap_shown"""
    text = render_preview("ABCDEFGHIJ ABCDEFGHIJ ABC")
    lines = text.split("\n")
    assert lines[2] == "ABCDEFGHIJ ABCDEFGHIJ ABC |ERR 25 chars (+4)"
    assert lines[3:] == ["  would wrap to:", "  - ABCDEFGHIJ ABCDEFGHIJ", "  - ABC"]


def test_render_preview_when_too_many_rows_then_error_footer() -> None:
    """test_render_preview_when_too_many_rows_then_error_footer"""
    text = render_preview("A\nB\nC\nD\nE\nF")
    assert text.endswith("\n\nERROR: 6 rows exceeds 5 max rows")


def test_preview_renderer_when_full_mode_then_uses_whole_board() -> None:
    """test_preview_renderer_when_full_mode_then_uses_whole_board"""
    result = PreviewRenderer("full").render("X" * 22)
    assert not result.has_errors
    assert result.to_text().startswith("Preview (6x22 full display):")


def test_preview_renderer_when_unknown_mode_then_value_error() -> None:
    """test_preview_renderer_when_unknown_mode_then_value_error"""
    with pytest.raises(ValueError):
        PreviewRenderer("sideways")


def test_preview_renderer_when_trailing_newline_then_no_phantom_row() -> None:
    """test_preview_renderer_when_trailing_newline_then_no_phantom_row"""
    result = PreviewRenderer().render("ONE\nTWO\n")
    assert [line.text for line in result.lines] == ["ONE", "TWO"]
