"""Structural validation of generated content against the board constraints."""

from __future__ import annotations

import logging

import regex

from ..domain.exceptions import ContentValidationError, MissingLayoutError
from ..domain.models import GeneratedContent, OutputMode, ValidationResult
from .charset import (
    COLOR_EMOJI_MAP,
    COLS,
    FRAMED_COLS,
    FRAMED_ROWS,
    MAX_CODE,
    ROWS,
    grapheme_len,
    graphemes,
    is_supported_char,
    wrap_text,
)

logger = logging.getLogger(__name__)

TEXT_NORMALIZATIONS: dict[str, str] = {
    "“": '"',
    "”": '"',
    "„": '"',
    "‘": "'",
    "’": "'",
    "‚": "'",
    "—": "-",
    "–": "-",
    "…": "...",
    "\u00a0": " ",
}

# Accented Latin letters fold to their base letter, either case.
_ACCENT_FOLDS = {
    "A": "ÀÁÂÃÄÅàáâãäå",
    "E": "ÈÉÊËèéêë",
    "I": "ÌÍÎÏìíîï",
    "O": "ÒÓÔÕÖòóôõö",
    "U": "ÙÚÛÜùúûü",
    "Y": "Ýý",
    "N": "Ññ",
    "C": "Çç",
}
for _base, _variants in _ACCENT_FOLDS.items():
    for _variant in _variants:
        TEXT_NORMALIZATIONS[_variant] = _base

_PICTOGRAPHIC_RE = regex.compile(r"\p{Extended_Pictographic}")

# Match Extended_Pictographic but are ordinary text symbols.
LEGACY_SYMBOLS = frozenset("™®©℗℠")

SUPPORTED_CHARS_HINT = "A-Z, 0-9, space, color emoji, and .,:;!?'\"-()+=/°"


def normalize_text(text: str) -> str:
    """Replace typographic characters with their ASCII equivalents."""
    return "".join(TEXT_NORMALIZATIONS.get(ch, ch) for ch in text)


def strip_unsupported_emojis(text: str) -> tuple[str, bool]:
    """Remove emoji that have no color code.

    Returns:
        Tuple of (cleaned text, whether anything was removed)
    """
    kept: list[str] = []
    stripped = False
    for cluster in graphemes(text):
        if cluster in COLOR_EMOJI_MAP or cluster in LEGACY_SYMBOLS:
            kept.append(cluster)
        elif _PICTOGRAPHIC_RE.search(cluster):
            stripped = True
        else:
            kept.append(cluster)
    return "".join(kept), stripped


def find_invalid_characters(text: str) -> list[str]:
    """Return unsupported graphemes in order of first appearance."""
    invalid: list[str] = []
    for cluster in graphemes(text):
        if cluster == "\n" or is_supported_char(cluster):
            continue
        if cluster not in invalid:
            invalid.append(cluster)
    return invalid


def validate_text_content(
    text: str,
    max_lines: int = FRAMED_ROWS,
    max_cols: int = FRAMED_COLS,
    word_wrap: bool = True,
) -> ValidationResult:
    """Check that text fits the framed content area once word-wrapped.

    Lines longer than ``max_cols`` are wrapped before counting, so content
    that only fits after wrapping still passes. With ``word_wrap`` off an
    overlong line is an error, since the renderer would cut it.

    Args:
        text: Raw text as produced by a source
        max_lines: Maximum line count after wrapping
        max_cols: Maximum line width in cells
        word_wrap: Whether the renderer will wrap overlong lines

    Returns:
        ValidationResult with the normalized, wrapped text attached
    """
    if not text.strip():
        return ValidationResult(
            valid=False,
            errors=["text content cannot be empty"],
        )

    cleaned, _ = strip_unsupported_emojis(normalize_text(text))
    original_lines = cleaned[:-1].split("\n") if cleaned.endswith("\n") else cleaned.split("\n")

    wrapping_applied = word_wrap and any(
        grapheme_len(line) > max_cols for line in original_lines
    )
    if wrapping_applied:
        lines: list[str] = []
        for line in original_lines:
            if grapheme_len(line) > max_cols:
                lines.extend(wrap_text(line, max_cols))
            else:
                lines.append(line)
    else:
        lines = original_lines

    line_count = len(lines)
    max_line_length = max((grapheme_len(line) for line in lines), default=0)
    errors: list[str] = []

    if line_count > max_lines:
        if wrapping_applied:
            errors.append(
                f"content exceeds {max_lines} lines after wrapping (found: {line_count})"
            )
        else:
            errors.append(f"text content must have at most {max_lines} lines (found: {line_count})")

    for index, line in enumerate(lines):
        length = grapheme_len(line)
        if length > max_cols:
            errors.append(f"line {index} exceeds {max_cols} characters (found: {length})")
            break

    invalid_chars = find_invalid_characters("".join(lines).upper())
    if invalid_chars:
        errors.append(f"text contains invalid characters: {', '.join(invalid_chars)}")

    return ValidationResult(
        valid=not errors,
        line_count=line_count,
        max_line_length=max_line_length,
        invalid_chars=invalid_chars,
        wrapping_applied=wrapping_applied,
        errors=errors,
        normalized_text="\n".join(lines),
    )


def validate_layout_content(layout: list[list[int]]) -> ValidationResult:
    """Check that a grid is exactly 6x22 with codes in range."""
    errors: list[str] = []
    row_count = len(layout)
    max_row_length = max((len(row) for row in layout), default=0)

    if row_count != ROWS:
        errors.append(f"layout must have exactly {ROWS} rows (found: {row_count})")

    for index, row in enumerate(layout):
        if len(row) != COLS:
            errors.append(
                f"layout row {index} must have exactly {COLS} columns (found: {len(row)})"
            )
            break

    for row_index, row in enumerate(layout):
        bad = next(
            (
                (col, code)
                for col, code in enumerate(row)
                if isinstance(code, bool) or not isinstance(code, int) or not 0 <= code <= MAX_CODE
            ),
            None,
        )
        if bad is not None:
            col, code = bad
            errors.append(
                f"Invalid character code {code!r} at row {row_index}, col {col} "
                f"(must be 0-{MAX_CODE})"
            )
            break

    return ValidationResult(
        valid=not errors,
        line_count=row_count,
        max_line_length=max_row_length,
        errors=errors,
    )


def validate_generator_output(
    content: GeneratedContent,
    max_lines: int = FRAMED_ROWS,
    max_cols: int = FRAMED_COLS,
    word_wrap: bool = True,
) -> ValidationResult:
    """Validate content according to its output mode.

    Raises:
        ContentValidationError: Content violates the display constraints
        MissingLayoutError: Layout-mode content carries no grid
    """
    if content.output_mode == OutputMode.LAYOUT:
        if not content.layout:
            raise MissingLayoutError("layout mode requires layout data")
        result = validate_layout_content(content.layout)
    else:
        result = validate_text_content(
            content.text, max_lines=max_lines, max_cols=max_cols, word_wrap=word_wrap
        )

    if not result.valid:
        logger.debug("Generator output rejected: %s", result.errors)
        raise ContentValidationError(
            result.errors[0],
            invalid_chars=result.invalid_chars,
            line_count=result.line_count,
            max_line_length=result.max_line_length,
        )
    return result
