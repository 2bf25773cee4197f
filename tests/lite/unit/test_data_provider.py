"""Unit tests for auxiliary data prefetch and background persistence."""

import asyncio
from typing import Optional

import pytest

from boardbot_lite.domain.data_provider import ContentDataProvider
from boardbot_lite.domain.models import ContentRecord, RecordStatus, WeatherData
from boardbot_lite.domain.persistence import BackgroundRecorder
from tests.lite.fakes import BlockingSink, RecordingSink, RefusingSink

pytestmark = [pytest.mark.unit, pytest.mark.fast]


class DummyWeather:
    def __init__(
        self,
        weather: Optional[WeatherData] = None,
        error: Optional[Exception] = None,
        delay: float = 0,
    ) -> None:
        self.weather = weather
        self.error = error
        self.delay = delay

    async def get_weather(self) -> Optional[WeatherData]:
        await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.weather


class DummyPalette:
    def __init__(self, colors: list[int], error: Optional[Exception] = None) -> None:
        self.colors = colors
        self.error = error

    async def get_colors(self) -> list[int]:
        if self.error is not None:
            raise self.error
        return self.colors


class TestContentDataProvider:
    @pytest.mark.asyncio
    async def test_fetch_when_no_collaborators_then_empty(self) -> None:
        data = await ContentDataProvider().fetch()
        assert data.weather is None
        assert data.color_bar is None
        assert data.warnings == []

    @pytest.mark.asyncio
    async def test_fetch_when_both_succeed_then_both_populated(self) -> None:
        provider = ContentDataProvider(
            weather=DummyWeather(WeatherData(temperature=60)), palette=DummyPalette([63] * 6)
        )
        data = await provider.fetch()
        assert data.weather.temperature == 60
        assert data.color_bar == [63] * 6

    @pytest.mark.asyncio
    async def test_fetch_when_palette_fails_then_weather_kept_and_warning(self) -> None:
        provider = ContentDataProvider(
            weather=DummyWeather(WeatherData(temperature=60)),
            palette=DummyPalette([], error=RuntimeError("no palette")),
        )
        data = await provider.fetch()
        assert data.weather is not None
        assert data.color_bar is None
        assert data.warnings == ["color_bar unavailable: no palette"]

    @pytest.mark.asyncio
    async def test_fetch_when_weather_times_out_then_warning(self) -> None:
        provider = ContentDataProvider(
            weather=DummyWeather(WeatherData(temperature=60), delay=1.0), timeout=0.01
        )
        data = await provider.fetch()
        assert data.weather is None
        assert data.warnings[0].startswith("weather unavailable: Operation exceeded timeout")


class TestBackgroundRecorder:
    @pytest.mark.asyncio
    async def test_record_when_drained_then_sink_has_records(self) -> None:
        sink = RecordingSink()
        recorder = BackgroundRecorder(sink)
        recorder.record(ContentRecord(status=RecordStatus.SUCCESS, source_id="a"))
        recorder.record(ContentRecord(status=RecordStatus.FAILED, source_id="b"))
        await recorder.drain()
        assert [r.source_id for r in sink.records] == ["a", "b"]
        assert recorder.pending == 0

    @pytest.mark.asyncio
    async def test_record_when_sink_fails_then_failure_counted(self) -> None:
        recorder = BackgroundRecorder(RecordingSink(error=RuntimeError("db down")))
        recorder.record(ContentRecord(status=RecordStatus.SUCCESS, source_id="a"))
        await recorder.drain(timeout=1.0)
        assert recorder.failures == 1

    @pytest.mark.asyncio
    async def test_record_when_sink_raises_before_await_then_swallowed(self, caplog) -> None:
        sink = RefusingSink(RuntimeError("db connection refused"))
        recorder = BackgroundRecorder(sink)
        with caplog.at_level("WARNING", logger="boardbot_lite.domain.persistence"):
            recorder.record(ContentRecord(status=RecordStatus.FAILED, source_id="a"))
        await recorder.drain()
        assert recorder.failures == 1
        assert recorder.pending == 0
        assert "Failed to persist failed record for a" in caplog.text

    @pytest.mark.asyncio
    async def test_record_when_sink_is_synchronous_then_saved_without_task(self) -> None:
        sink = BlockingSink()
        recorder = BackgroundRecorder(sink)
        recorder.record(ContentRecord(status=RecordStatus.SUCCESS, source_id="a"))
        assert [r.source_id for r in sink.records] == ["a"]
        assert recorder.pending == 0
        assert recorder.failures == 0
