"""Date/time/weather line shown on the bottom row of a framed layout."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..domain.models import WeatherData
from .charset import FRAMED_COLS, align_left, line_to_codes

_DAYS = ("MON", "TUE", "WED", "THU", "FRI", "SAT", "SUN")
_MONTHS = ("JAN", "FEB", "MAR", "APR", "MAY", "JUN", "JUL", "AUG", "SEP", "OCT", "NOV", "DEC")


def _date_part(timestamp: datetime) -> str:
    day = _DAYS[timestamp.weekday()]
    return f"{day} {timestamp.day}{_MONTHS[timestamp.month - 1]} {timestamp:%H:%M}"


def format_temperature(weather: WeatherData) -> str:
    """Format as ``72F`` / ``22C``; the degree sign is left out to save a cell."""
    unit = "C" if weather.unit.upper().endswith("C") else "F"
    return f"{weather.temperature}{unit}"


def format_info_bar(timestamp: datetime, weather: Optional[WeatherData] = None) -> str:
    """Return the 21-character info line, e.g. ``WED 26NOV 10:30  72F``.

    When weather is present, the cell right after the time separator is kept
    blank; ``info_bar_codes`` puts the weather color there.
    """
    info = _date_part(timestamp)
    if weather is not None:
        info = f"{info}  {format_temperature(weather)}"
    return align_left(info, FRAMED_COLS)


def info_bar_codes(timestamp: datetime, weather: Optional[WeatherData] = None) -> list[int]:
    """Return the info line as 21 codes with the weather color cell applied."""
    codes = line_to_codes(format_info_bar(timestamp, weather))
    if weather is not None and weather.color_code is not None:
        position = len(_date_part(timestamp)) + 1
        if position < FRAMED_COLS:
            codes[position] = weather.color_code
    return codes
