"""Character codes and text <-> grid conversion for the 6x22 split-flap board.

The board addresses every cell with an integer code. Letters, digits and a
fixed punctuation subset map to 0..60, colors to 63..70. The digit table is
not contiguous: "1".."9" are 27..35 and "0" is 36, matching the device wire
format.

All width measurements in this module are done in extended grapheme clusters
(``regex`` ``\\X``), so a multi-codepoint emoji such as a heart with a
variation selector occupies exactly one cell.
"""

from __future__ import annotations

import regex

ROWS = 6
COLS = 22
FRAMED_ROWS = 5
FRAMED_COLS = 21

BLANK = 0

Layout = list[list[int]]

COLOR_CODES: dict[str, int] = {
    "RED": 63,
    "ORANGE": 64,
    "YELLOW": 65,
    "GREEN": 66,
    "BLUE": 67,
    "VIOLET": 68,
    "WHITE": 69,
    "BLACK": 70,
}

# Emoji are looked up before the alphabet. Black shapes render as a blank cell.
COLOR_EMOJI_MAP: dict[str, int] = {
    "\U0001F7E5": 63,  # red square
    "\U0001F534": 63,  # red circle
    "❤️": 63,
    "❤": 63,
    "\U0001F53A": 63,
    "\U0001F53B": 63,
    "\U0001F7E7": 64,  # orange square
    "\U0001F7E0": 64,
    "\U0001F9E1": 64,
    "\U0001F7E8": 65,  # yellow square
    "\U0001F7E1": 65,
    "\U0001F49B": 65,
    "\U0001F7E9": 66,  # green square
    "\U0001F7E2": 66,
    "\U0001F49A": 66,
    "\U0001F7E6": 67,  # blue square
    "\U0001F535": 67,
    "\U0001F499": 67,
    "\U0001F7EA": 68,  # violet square
    "\U0001F7E3": 68,
    "\U0001F49C": 68,
    "⬜": 69,  # white square
    "◻️": 69,
    "◻": 69,
    "◽": 69,
    "▫️": 69,
    "▫": 69,
    "⚪": 69,
    "\U0001F90D": 69,
    "⬛": BLANK,  # black square
    "◼️": BLANK,
    "◼": BLANK,
    "◾": BLANK,
    "▪️": BLANK,
    "▪": BLANK,
    "⚫": BLANK,
    "\U0001F5A4": BLANK,
}

# Canonical glyph used when turning a color code back into text.
COLOR_GLYPHS: dict[int, str] = {
    63: "\U0001F7E5",
    64: "\U0001F7E7",
    65: "\U0001F7E8",
    66: "\U0001F7E9",
    67: "\U0001F7E6",
    68: "\U0001F7EA",
    69: "⬜",
}

CHARACTER_MAP: dict[str, int] = {" ": BLANK}
CHARACTER_MAP.update({chr(ord("A") + i): i + 1 for i in range(26)})
CHARACTER_MAP.update({str(d): 26 + d for d in range(1, 10)})
CHARACTER_MAP["0"] = 36
CHARACTER_MAP.update(
    {
        "!": 37,
        "@": 38,
        "#": 39,
        "$": 40,
        "(": 41,
        ")": 42,
        "-": 44,
        "+": 46,
        "&": 47,
        "=": 48,
        ";": 49,
        ":": 50,
        "'": 52,
        '"': 53,
        "%": 54,
        ",": 55,
        ".": 56,
        "/": 59,
        "?": 60,
        "°": 62,
    }
)

_CODE_TO_CHAR: dict[int, str] = {code: ch for ch, code in CHARACTER_MAP.items()}
_CODE_TO_CHAR.update(COLOR_GLYPHS)

MAX_CODE = 70

_GRAPHEME_RE = regex.compile(r"\X")


def graphemes(text: str) -> list[str]:
    """Split text into extended grapheme clusters."""
    return _GRAPHEME_RE.findall(text)


def grapheme_len(text: str) -> int:
    """Display width of text in cells."""
    return len(graphemes(text))


def truncate_graphemes(text: str, width: int) -> str:
    """Cut text to at most ``width`` grapheme clusters."""
    clusters = graphemes(text)
    if len(clusters) <= width:
        return text
    return "".join(clusters[:width])


def is_supported_char(ch: str) -> bool:
    """Return True if a single grapheme has a code on the board.

    Space and the black emoji intentionally map to blank and count as
    supported; anything else that maps to 0 does not.
    """
    if ch in COLOR_EMOJI_MAP:
        return True
    return ch.upper() in CHARACTER_MAP


def char_to_code(ch: str) -> int:
    """Map one grapheme to its board code (unmapped -> 0)."""
    code = COLOR_EMOJI_MAP.get(ch)
    if code is not None:
        return code
    return CHARACTER_MAP.get(ch.upper(), BLANK)


def code_to_char(code: int) -> str:
    """Map a board code back to text (unknown codes and 70 -> space)."""
    return _CODE_TO_CHAR.get(code, " ")


def wrap_text(text: str, max_width: int) -> list[str]:
    """Greedy word wrap measured in grapheme clusters.

    Explicit newlines always start a new line and blank paragraphs are kept as
    empty strings. A single word wider than ``max_width`` is hard-truncated.

    Args:
        text: Text to wrap, may contain ``\\n``
        max_width: Maximum line width in cells

    Returns:
        Wrapped lines; ``['']`` for empty or whitespace-only input
    """
    if not text or not text.strip():
        return [""]

    lines: list[str] = []
    for paragraph in text.split("\n"):
        if not paragraph.strip():
            lines.append("")
            continue

        current = ""
        current_len = 0
        for word in paragraph.split(" "):
            if not word:
                continue
            word_len = grapheme_len(word)
            if not current:
                current = truncate_graphemes(word, max_width)
                current_len = min(word_len, max_width)
            elif current_len + 1 + word_len <= max_width:
                current = f"{current} {word}"
                current_len += 1 + word_len
            else:
                lines.append(current)
                current = truncate_graphemes(word, max_width)
                current_len = min(word_len, max_width)
        if current:
            lines.append(current)

    return lines or [""]


def center_text(text: str, width: int) -> str:
    """Center text in ``width`` cells, truncating when it does not fit."""
    length = grapheme_len(text)
    if length >= width:
        return truncate_graphemes(text, width)
    padding = width - length
    left = padding // 2
    return " " * left + text + " " * (padding - left)


def align_left(text: str, width: int) -> str:
    """Left-justify text in ``width`` cells, truncating when it does not fit."""
    length = grapheme_len(text)
    if length >= width:
        return truncate_graphemes(text, width)
    return text + " " * (width - length)


def strip_blank_edges(lines: list[str]) -> list[str]:
    """Drop blank lines at the start and end, keeping interior ones."""
    start = 0
    end = len(lines)
    while start < end and not lines[start].strip():
        start += 1
    while end > start and not lines[end - 1].strip():
        end -= 1
    return lines[start:end]


def line_to_codes(line: str) -> list[int]:
    """Map every grapheme of a line to its code."""
    return [char_to_code(ch) for ch in graphemes(line)]


def empty_layout(rows: int = ROWS, cols: int = COLS) -> Layout:
    """Return an all-blank grid."""
    return [[BLANK] * cols for _ in range(rows)]


def text_to_layout(text: str, rows: int = ROWS, cols: int = COLS) -> Layout:
    """Lay text out as a centered ``rows`` x ``cols`` grid of codes.

    Lines beyond ``rows`` are dropped silently; callers that need to report
    truncation check the wrapped line count themselves. Blank lines around
    the text are ignored so that laying out ``layout_to_text`` output again
    yields the same grid.
    """
    lines = strip_blank_edges(wrap_text(text.upper(), cols))
    return place_lines(lines, rows, cols)


def place_lines(lines: list[str], rows: int, cols: int, centered: bool = True) -> Layout:
    """Place already wrapped lines into a grid, vertically centered.

    Lines past ``rows`` are dropped. Each line is centered horizontally, or
    left-justified when ``centered`` is False.
    """
    kept = lines[:rows]
    justify = center_text if centered else align_left
    top = (rows - len(kept)) // 2
    layout = empty_layout(rows, cols)
    for offset, line in enumerate(kept):
        layout[top + offset] = line_to_codes(justify(line, cols))
    return layout


def layout_to_text(layout: Layout) -> str:
    """Convert a grid back into text, trimming trailing blanks and rows."""
    rows = ["".join(code_to_char(code) for code in row).rstrip() for row in layout]
    while rows and not rows[-1]:
        rows.pop()
    return "\n".join(rows)


def is_valid_layout(layout: object, rows: int = ROWS, cols: int = COLS) -> bool:
    """Check grid shape and code range without raising."""
    if not isinstance(layout, list) or len(layout) != rows:
        return False
    for row in layout:
        if not isinstance(row, list) or len(row) != cols:
            return False
        for code in row:
            if isinstance(code, bool) or not isinstance(code, int):
                return False
            if code < 0 or code > MAX_CODE:
                return False
    return True
