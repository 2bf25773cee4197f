"""Concurrent prefetch of weather and palette data for a major cycle."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from ..core.async_utils import gather_with_timeout
from ..core.protocols import ColorPaletteProvider, WeatherProvider
from .models import WeatherData

logger = logging.getLogger(__name__)


@dataclass
class AuxiliaryData:
    """Result of a prefetch; missing values mean the renderer uses its defaults."""

    weather: Optional[WeatherData] = None
    color_bar: Optional[list[int]] = None
    warnings: list[str] = field(default_factory=list)


class ContentDataProvider:
    """Fetches weather and palette concurrently, never raising.

    Args:
        weather: Optional weather collaborator
        palette: Optional color palette collaborator
        timeout: Deadline shared by both fetches
    """

    def __init__(
        self,
        weather: Optional[WeatherProvider] = None,
        palette: Optional[ColorPaletteProvider] = None,
        timeout: Optional[float] = 10.0,
    ) -> None:
        self.weather = weather
        self.palette = palette
        self.timeout = timeout

    async def fetch(self) -> AuxiliaryData:
        data = AuxiliaryData()
        labels: list[str] = []
        calls = []
        if self.weather is not None:
            labels.append("weather")
            calls.append(self.weather.get_weather())
        if self.palette is not None:
            labels.append("color_bar")
            calls.append(self.palette.get_colors())
        if not calls:
            return data

        results = await gather_with_timeout(*calls, timeout=self.timeout)
        for label, result in zip(labels, results):
            if isinstance(result, BaseException):
                logger.warning("Auxiliary %s fetch failed: %s", label, result)
                data.warnings.append(f"{label} unavailable: {result}")
            elif label == "weather":
                data.weather = result
            else:
                data.color_bar = list(result) if result else None
        return data
