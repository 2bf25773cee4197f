"""Plain-text preview of how content lands in the content area.

The preview is shown to generative models when a submission is rejected, so
it lists every line with its width and, for lines that are too wide, the
lines word-wrapping would turn them into.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .charset import COLS, FRAMED_COLS, FRAMED_ROWS, ROWS, grapheme_len, wrap_text

CONTENT_MODE = "content"
FULL_MODE = "full"


@dataclass
class PreviewLine:
    number: int
    text: str
    length: int
    overflow_by: int = 0
    wrap_preview: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.overflow_by == 0


@dataclass
class PreviewResult:
    """Rendered preview plus the facts it was built from."""

    lines: list[PreviewLine]
    mode: str
    max_rows: int
    max_cols: int

    @property
    def row_overflow(self) -> bool:
        return len(self.lines) > self.max_rows

    @property
    def has_errors(self) -> bool:
        return self.row_overflow or any(not line.ok for line in self.lines)

    def to_text(self) -> str:
        label = "content area" if self.mode == CONTENT_MODE else "full display"
        output = [f"Preview ({self.max_rows}x{self.max_cols} {label}):", ""]

        for line in self.lines:
            status = "ok" if line.ok else "ERR"
            overflow = f" (+{line.overflow_by})" if line.overflow_by else ""
            output.append(f"{line.text} |{status} {line.length} chars{overflow}")
            if not line.ok and len(line.wrap_preview) > 1:
                output.append("  would wrap to:")
                output.extend(f"  - {wrapped}" for wrapped in line.wrap_preview)

        if self.row_overflow:
            output.append("")
            output.append(f"ERROR: {len(self.lines)} rows exceeds {self.max_rows} max rows")

        return "\n".join(output)


class PreviewRenderer:
    """Builds previews for the framed content area or the full board."""

    def __init__(self, mode: str = CONTENT_MODE) -> None:
        if mode not in (CONTENT_MODE, FULL_MODE):
            raise ValueError(f"Unknown preview mode: {mode}")
        self.mode = mode
        self.max_cols = FRAMED_COLS if mode == CONTENT_MODE else COLS
        self.max_rows = FRAMED_ROWS if mode == CONTENT_MODE else ROWS

    def render(self, text: str) -> PreviewResult:
        lines: list[PreviewLine] = []
        if text:
            body = text[:-1] if text.endswith("\n") else text
            for number, raw in enumerate(body.split("\n"), start=1):
                lines.append(self._line(number, raw))
        return PreviewResult(
            lines=lines, mode=self.mode, max_rows=self.max_rows, max_cols=self.max_cols
        )

    def _line(self, number: int, text: str) -> PreviewLine:
        length = grapheme_len(text)
        if length <= self.max_cols:
            return PreviewLine(number=number, text=text, length=length)
        return PreviewLine(
            number=number,
            text=text,
            length=length,
            overflow_by=length - self.max_cols,
            wrap_preview=wrap_text(text, self.max_cols),
        )


def render_preview(text: str, mode: Optional[str] = None) -> str:
    """Render a preview of ``text`` as plain text."""
    return PreviewRenderer(mode or CONTENT_MODE).render(text).to_text()
