"""Tests for settlement time resolution and pair eligibility."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from funding_radar.market_data.settlement import (
    base_symbol,
    estimate_next_funding,
    in_window,
    is_eligible_pair,
    resolve_settlement,
)
from funding_radar.models import FundingRateRecord

HOUR_MS = 3_600_000
NOW_MS = 1_700_000_000_000  # 2023-11-14T22:13:20Z
DAY_START_MS = 1_699_920_000_000  # 2023-11-14T00:00:00Z


def _utc_ms(*args: int) -> int:
    return int(datetime(*args, tzinfo=timezone.utc).timestamp() * 1000)


class TestEstimateNextFunding:
    def test_late_evening_rolls_to_next_midnight(self) -> None:
        assert estimate_next_funding(NOW_MS) == _utc_ms(2023, 11, 15, 0, 0)

    def test_morning_returns_eight_utc(self) -> None:
        assert estimate_next_funding(_utc_ms(2023, 11, 14, 3, 30)) == _utc_ms(2023, 11, 14, 8, 0)

    def test_afternoon_returns_sixteen_utc(self) -> None:
        assert estimate_next_funding(_utc_ms(2023, 11, 14, 9, 0)) == _utc_ms(2023, 11, 14, 16, 0)

    def test_exact_boundary_is_not_returned(self) -> None:
        """Strictly after now: sitting on 08:00 yields 16:00."""
        assert estimate_next_funding(_utc_ms(2023, 11, 14, 8, 0)) == _utc_ms(2023, 11, 14, 16, 0)

    def test_midnight_returns_eight_utc(self) -> None:
        assert estimate_next_funding(DAY_START_MS) == DAY_START_MS + 8 * HOUR_MS

    def test_epoch_zero(self) -> None:
        assert estimate_next_funding(0) == 8 * HOUR_MS

    def test_always_strictly_after_now_on_a_boundary(self) -> None:
        for offset in range(0, 24 * HOUR_MS, 7 * 60_000):
            now = DAY_START_MS + offset
            result = estimate_next_funding(now)
            assert now < result <= now + 8 * HOUR_MS
            assert (result - DAY_START_MS) in (8 * HOUR_MS, 16 * HOUR_MS, 24 * HOUR_MS)


class TestResolveSettlement:
    def test_future_funding_timestamp_preferred(self) -> None:
        record = FundingRateRecord(
            pair="BTC/USDT:USDT",
            funding_rate=Decimal("0.0001"),
            funding_timestamp=NOW_MS + 600_000,
            next_funding_timestamp=NOW_MS + 9 * HOUR_MS,
        )
        assert resolve_settlement(record, NOW_MS) == (NOW_MS + 600_000, False)

    def test_past_funding_timestamp_falls_back_to_next(self) -> None:
        record = FundingRateRecord(
            pair="BTC/USDT:USDT",
            funding_rate=Decimal("0.0001"),
            funding_timestamp=NOW_MS - 600_000,
            next_funding_timestamp=NOW_MS + 1_200_000,
        )
        assert resolve_settlement(record, NOW_MS) == (NOW_MS + 1_200_000, False)

    def test_timestamp_equal_to_now_is_not_future(self) -> None:
        record = FundingRateRecord(
            pair="BTC/USDT:USDT",
            funding_rate=Decimal("0.0001"),
            funding_timestamp=NOW_MS,
        )
        timestamp, estimated = resolve_settlement(record, NOW_MS)
        assert estimated is True
        assert timestamp == estimate_next_funding(NOW_MS)

    def test_missing_timestamps_are_estimated(self) -> None:
        record = FundingRateRecord(pair="BTC/USDT:USDT", funding_rate=Decimal("0.0001"))
        assert resolve_settlement(record, NOW_MS) == (_utc_ms(2023, 11, 15, 0, 0), True)


class TestPairHelpers:
    @pytest.mark.parametrize(
        "pair,expected",
        [
            ("BTC/USDT:USDT", True),
            ("ETH/USDC:USDC", True),
            ("BTC/USD:BTC", False),
            ("BTC/USDT:USDT-250627", False),
            ("BTC/USDT", False),
        ],
    )
    def test_is_eligible_pair(self, pair: str, expected: bool) -> None:
        assert is_eligible_pair(pair) is expected

    def test_base_symbol(self) -> None:
        assert base_symbol("1000PEPE/USDT:USDT") == "1000PEPE"

    def test_in_window_bounds(self) -> None:
        assert not in_window(NOW_MS, NOW_MS, HOUR_MS)
        assert in_window(NOW_MS + 1, NOW_MS, HOUR_MS)
        assert in_window(NOW_MS + HOUR_MS, NOW_MS, HOUR_MS)
        assert not in_window(NOW_MS + HOUR_MS + 1, NOW_MS, HOUR_MS)
