"""Shared test fixtures and configuration for all tests.

This conftest.py provides common fixtures used across unit and integration tests.
"""

import pytest

from retry_orchestrator.config import Settings
from retry_orchestrator.retry.engine import RetryEngine


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with safe defaults for local testing.

    Override specific settings in individual tests as needed:
        def test_something(test_settings):
            test_settings.RETRY_DEFAULT_COUNT = 2
    """
    return Settings(
        # === Application ===
        APP_NAME="Retry Orchestrator (Test)",
        APP_VERSION="0.1.0",
        LOG_LEVEL="DEBUG",
        ENVIRONMENT="development",

        # === Retry Defaults ===
        RETRY_DEFAULT_COUNT=4,
        RETRY_DEFAULT_INTERVAL_SECONDS=3.0,
        RETRY_MAX_INTERVAL_SECONDS=None,

        # === Monitoring ===
        METRICS_ENABLED=False,  # Enable explicitly in metrics tests
    )


class SleepRecorder:
    """Records requested delays instead of sleeping."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class AsyncSleepRecorder(SleepRecorder):
    """Async variant of SleepRecorder (awaitable, never suspends for real)."""

    async def __call__(self, seconds: float) -> None:  # type: ignore[override]
        self.calls.append(seconds)


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def async_sleep_recorder() -> AsyncSleepRecorder:
    return AsyncSleepRecorder()


@pytest.fixture
def engine(test_settings, sleep_recorder, async_sleep_recorder) -> RetryEngine:
    """RetryEngine that never actually waits."""
    return RetryEngine(
        settings=test_settings,
        sleep=sleep_recorder,
        async_sleep=async_sleep_recorder,
    )
