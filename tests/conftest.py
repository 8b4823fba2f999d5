"""Shared test fixtures for the funding radar."""

from decimal import Decimal

import pytest

from funding_radar.config import (
    AlertSettings,
    AppSettings,
    NotifierSettings,
    ScreenerSettings,
    SourceSettings,
)

# 2023-11-14T22:13:20Z
NOW_MS = 1_700_000_000_000
MINUTE_MS = 60_000


@pytest.fixture
def now_ms() -> int:
    return NOW_MS


@pytest.fixture
def source_settings() -> SourceSettings:
    """Short timeouts so timeout tests stay fast."""
    return SourceSettings(timeout_seconds=0.5, targeted_concurrency=10)


@pytest.fixture
def screener_settings() -> ScreenerSettings:
    return ScreenerSettings(
        significance_threshold=Decimal("0.0005"),
        lookahead_window_ms=3_600_000,
    )


@pytest.fixture
def alert_settings() -> AlertSettings:
    return AlertSettings(
        timezone="Asia/Shanghai",
        lower_bound_minutes=15,
        upper_bound_minutes=35,
        severity="high",
        digest_severity="high_medium",
        quiet_start_hour=2,
        quiet_end_hour=6,
        hourly_window_start_minute=50,
        hourly_window_end_minute=2,
        digest_hours=[19, 21],
        top_instruments=3,
    )


@pytest.fixture
def mock_settings() -> AppSettings:
    """Return AppSettings with test defaults and a dummy push key."""
    return AppSettings(
        log_level="DEBUG",
        notifier=NotifierSettings(sendkey="test-sendkey"),  # type: ignore[arg-type]
    )
