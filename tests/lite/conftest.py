"""Shared fixtures for boardbot_lite tests."""

from collections.abc import Generator
from datetime import datetime
from typing import Any

import pytest

from tests.lite.fakes import FirstChoice


@pytest.fixture
def fixed_now() -> datetime:
    """Wednesday 26 November 2025, 10:30 local time."""
    return datetime(2025, 11, 26, 10, 30)


@pytest.fixture
def first_choice() -> FirstChoice:
    return FirstChoice()


@pytest.fixture(autouse=True)
def clean_boardbot_environment(monkeypatch: Any) -> Generator[None, Any, None]:
    """Keep BOARDBOT_* variables from leaking into or out of tests.

    Each key is set then deleted through monkeypatch so that values written
    during a test (e.g. by ``ConfigManager.load_env_file``) are undone too.
    """
    for key in (
        "BOARDBOT_DEBUG",
        "BOARDBOT_LOG_LEVEL",
        "BOARDBOT_PREFERRED_PROVIDER",
        "BOARDBOT_PROVIDERS",
        "BOARDBOT_MAX_ATTEMPTS",
        "BOARDBOT_EXHAUSTION_POLICY",
        "BOARDBOT_PROVIDER_TIMEOUT",
    ):
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    yield
