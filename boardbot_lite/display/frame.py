"""Framed 6x22 layout: content area, color column and info row.

Layout of a framed grid::

    rows 0-4, cols 0-20   content (5x21)
    rows 0-5, col 21      color column
    row 5,    cols 0-20   info bar (date, time, optional weather)

Rendering never raises. Anything that goes wrong along the way becomes a
warning string on the returned ``FrameResult`` and the grid is still a full
6x22 layout.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..core.protocols import ColorPaletteProvider, WeatherProvider
from ..domain.models import FormatOptions, TextAlign, WeatherData
from .charset import (
    COLOR_CODES,
    COLS,
    FRAMED_COLS,
    FRAMED_ROWS,
    ROWS,
    Layout,
    empty_layout,
    graphemes,
    is_supported_char,
    place_lines,
    strip_blank_edges,
    text_to_layout,
    truncate_graphemes,
    wrap_text,
)
from .info_bar import info_bar_codes

logger = logging.getLogger(__name__)

FALLBACK_COLORS: list[int] = [
    COLOR_CODES["RED"],
    COLOR_CODES["ORANGE"],
    COLOR_CODES["YELLOW"],
    COLOR_CODES["GREEN"],
    COLOR_CODES["BLUE"],
    COLOR_CODES["VIOLET"],
]


@dataclass
class FrameResult:
    """Rendered grid plus the warnings collected while rendering it."""

    layout: Layout
    warnings: list[str] = field(default_factory=list)


def sanitize_text(text: str) -> tuple[str, list[str]]:
    """Uppercase text and blank out graphemes the board cannot show.

    Returns:
        Tuple of (sanitized text, unsupported graphemes in first-seen order)
    """
    unsupported: list[str] = []
    parts: list[str] = []
    for cluster in graphemes(text.upper()):
        if cluster == "\n" or is_supported_char(cluster):
            parts.append(cluster)
            continue
        if cluster not in unsupported:
            unsupported.append(cluster)
        parts.append(" ")
    return "".join(parts), unsupported


def _content_lines(text: str, options: FormatOptions) -> list[str]:
    if options.word_wrap:
        lines = wrap_text(text, options.max_chars_per_line)
    else:
        width = options.max_chars_per_line
        lines = [truncate_graphemes(line.strip(), width) for line in text.split("\n")]
    return strip_blank_edges(lines)


def _color_column(color_bar: Optional[list[int]]) -> list[int]:
    colors = list(color_bar or FALLBACK_COLORS)[:ROWS]
    white = COLOR_CODES["WHITE"]
    column = [code if 63 <= code <= 70 else white for code in colors]
    column.extend([white] * (ROWS - len(column)))
    return column


def render_frame(
    text: str,
    timestamp: Optional[datetime] = None,
    weather: Optional[WeatherData] = None,
    color_bar: Optional[list[int]] = None,
    format_options: Optional[FormatOptions] = None,
) -> FrameResult:
    """Compose a framed grid from text and already fetched auxiliary data.

    Args:
        text: Content text; uppercased and word-wrapped here
        timestamp: Time shown on the info row (defaults to now)
        weather: Optional weather for the info row
        color_bar: Six color codes for the color column; a fixed palette
            is used when omitted
        format_options: Per-source overrides for the content area

    Returns:
        FrameResult whose layout is always 6x22
    """
    warnings: list[str] = []
    try:
        options = format_options or FormatOptions()
        sanitized, unsupported = sanitize_text(text)
        if unsupported:
            warnings.append(
                f"Unsupported characters replaced with space: {', '.join(unsupported)}"
            )

        lines = _content_lines(sanitized, options)
        if len(lines) > options.max_lines:
            warnings.append(
                f"Content truncated: {len(lines)} lines reduced to {options.max_lines}"
            )
            lines = lines[: options.max_lines]

        content = place_lines(
            lines, FRAMED_ROWS, FRAMED_COLS, centered=options.text_align == TextAlign.CENTER
        )
        column = _color_column(color_bar)
        info_row = info_bar_codes(timestamp or datetime.now(), weather)

        layout = [content[row] + [column[row]] for row in range(FRAMED_ROWS)]
        layout.append(info_row + [column[FRAMED_ROWS]])
        return FrameResult(layout=layout, warnings=warnings)
    except Exception as exc:
        logger.exception("Frame generation failed")
        warnings.append(f"Frame generation failed: {exc}")
        return FrameResult(layout=minimal_frame(), warnings=warnings)


def minimal_frame() -> Layout:
    """Blank content area and info row with the fixed color column."""
    layout = empty_layout(ROWS, COLS)
    for row, code in enumerate(FALLBACK_COLORS):
        layout[row][FRAMED_COLS] = code
    return layout


def layout_from_text(text: str) -> Layout:
    """Unframed rendering: the whole 6x22 grid is content."""
    sanitized, _ = sanitize_text(text)
    return text_to_layout(sanitized, ROWS, COLS)


class FrameRenderer:
    """Renders framed layouts, fetching weather and palette when asked to.

    Providers are optional. Without a palette provider the fixed palette is
    used silently; a provider that fails produces a warning and the same
    fixed palette. Weather works the same way, minus the fallback value.
    """

    def __init__(
        self,
        weather_provider: Optional[WeatherProvider] = None,
        color_provider: Optional[ColorPaletteProvider] = None,
    ) -> None:
        self.weather_provider = weather_provider
        self.color_provider = color_provider

    async def render(
        self,
        text: str,
        *,
        timestamp: Optional[datetime] = None,
        weather: Optional[WeatherData] = None,
        color_bar: Optional[list[int]] = None,
        format_options: Optional[FormatOptions] = None,
    ) -> FrameResult:
        """Render text, fetching auxiliary data not passed in explicitly."""
        warnings: list[str] = []

        if weather is None and self.weather_provider is not None:
            try:
                weather = await self.weather_provider.get_weather()
            except Exception as exc:
                logger.warning("Weather fetch failed: %s", exc)
                warnings.append(f"Weather unavailable: {exc}")

        if color_bar is None and self.color_provider is not None:
            try:
                color_bar = await self.color_provider.get_colors()
            except Exception as exc:
                logger.warning("Color palette fetch failed: %s", exc)
                warnings.append(f"Color bar unavailable: {exc}")

        result = render_frame(
            text,
            timestamp=timestamp,
            weather=weather,
            color_bar=color_bar,
            format_options=format_options,
        )
        result.warnings[:0] = warnings
        return result

    @staticmethod
    def pass_through(layout: Layout) -> FrameResult:
        """Hand an already gridded layout through unchanged."""
        return FrameResult(layout=[list(row) for row in layout])

