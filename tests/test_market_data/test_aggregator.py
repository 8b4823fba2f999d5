"""Tests for RateAggregator -- window filter, grouping, and two-level ranking.

Verifies:
- Settlement window is a hard filter on (now, now + window]
- Groups below the significance threshold are dropped
- Groups sorted by max |rate| descending, observations by |rate| descending
- Ties keep arrival order
- earliest_settlement_timestamp is the group minimum
- Output is idempotent for a fixed now
"""

from decimal import Decimal

import pytest

from funding_radar.market_data.aggregator import RateAggregator
from funding_radar.models import RateObservation

MINUTE_MS = 60_000
WINDOW_MS = 3_600_000
THRESHOLD = Decimal("0.0005")


def _obs(
    now_ms: int,
    symbol: str = "BTC",
    rate: str = "0.0008",
    source: str = "binance",
    settles_in_min: float = 10,
) -> RateObservation:
    return RateObservation(
        source_id=source,
        source_name=source.title(),
        instrument_symbol=symbol,
        pair_identifier=f"{symbol}/USDT:USDT",
        funding_rate=Decimal(rate),
        next_settlement_timestamp=now_ms + int(settles_in_min * MINUTE_MS),
    )


@pytest.fixture
def aggregator(now_ms: int) -> RateAggregator:
    return RateAggregator(clock_ms=lambda: now_ms)


class TestExamples:
    def test_significant_rate_settling_soon_is_included(
        self, aggregator: RateAggregator, now_ms: int
    ) -> None:
        groups = aggregator.aggregate([_obs(now_ms, rate="0.0008")], THRESHOLD, WINDOW_MS)
        assert [g.instrument_symbol for g in groups] == ["BTC"]
        assert groups[0].max_absolute_funding_rate == Decimal("0.0008")

    def test_insignificant_rate_is_excluded(
        self, aggregator: RateAggregator, now_ms: int
    ) -> None:
        assert aggregator.aggregate([_obs(now_ms, rate="0.0001")], THRESHOLD, WINDOW_MS) == []

    def test_negative_rate_counts_by_magnitude(
        self, aggregator: RateAggregator, now_ms: int
    ) -> None:
        groups = aggregator.aggregate([_obs(now_ms, rate="-0.002")], THRESHOLD, WINDOW_MS)
        assert groups[0].max_absolute_funding_rate == Decimal("0.002")


class TestWindowFilter:
    def test_settlement_in_past_excluded(self, aggregator: RateAggregator, now_ms: int) -> None:
        assert aggregator.aggregate([_obs(now_ms, settles_in_min=-1)], THRESHOLD, WINDOW_MS) == []

    def test_settlement_at_now_excluded(self, aggregator: RateAggregator, now_ms: int) -> None:
        assert aggregator.aggregate([_obs(now_ms, settles_in_min=0)], THRESHOLD, WINDOW_MS) == []

    def test_settlement_at_window_end_included(
        self, aggregator: RateAggregator, now_ms: int
    ) -> None:
        groups = aggregator.aggregate([_obs(now_ms, settles_in_min=60)], THRESHOLD, WINDOW_MS)
        assert len(groups) == 1

    def test_settlement_beyond_window_excluded(
        self, aggregator: RateAggregator, now_ms: int
    ) -> None:
        groups = aggregator.aggregate([_obs(now_ms, settles_in_min=61)], THRESHOLD, WINDOW_MS)
        assert groups == []

    def test_out_of_window_source_does_not_lift_group(
        self, aggregator: RateAggregator, now_ms: int
    ) -> None:
        """A big rate settling later must not make a small in-window rate significant."""
        observations = [
            _obs(now_ms, rate="0.0001", source="binance", settles_in_min=30),
            _obs(now_ms, rate="0.005", source="okx", settles_in_min=240),
        ]
        assert aggregator.aggregate(observations, THRESHOLD, WINDOW_MS) == []

    def test_explicit_now_overrides_clock(self, aggregator: RateAggregator, now_ms: int) -> None:
        obs = _obs(now_ms, settles_in_min=10)
        later = now_ms + 20 * MINUTE_MS
        assert aggregator.aggregate([obs], THRESHOLD, WINDOW_MS, now=later) == []


class TestRanking:
    @pytest.fixture
    def observations(self, now_ms: int) -> list[RateObservation]:
        return [
            _obs(now_ms, "BTC", "0.0006", "binance", 30),
            _obs(now_ms, "ETH", "-0.0030", "binance", 30),
            _obs(now_ms, "BTC", "0.0009", "okx", 15),
            _obs(now_ms, "SOL", "0.0012", "bybit", 45),
            _obs(now_ms, "ETH", "0.0010", "okx", 20),
            _obs(now_ms, "DOGE", "0.0002", "okx", 20),
            _obs(now_ms, "BTC", "-0.0007", "gate", 50),
        ]

    def test_groups_sorted_by_max_abs_rate(
        self, aggregator: RateAggregator, observations: list[RateObservation]
    ) -> None:
        groups = aggregator.aggregate(observations, THRESHOLD, WINDOW_MS)
        assert [g.instrument_symbol for g in groups] == ["ETH", "SOL", "BTC"]
        rates = [g.max_absolute_funding_rate for g in groups]
        assert rates == sorted(rates, reverse=True)

    def test_observations_sorted_within_group(
        self, aggregator: RateAggregator, observations: list[RateObservation]
    ) -> None:
        groups = aggregator.aggregate(observations, THRESHOLD, WINDOW_MS)
        btc = next(g for g in groups if g.instrument_symbol == "BTC")
        assert [o.source_id for o in btc.observations] == ["okx", "gate", "binance"]
        assert btc.observation_count == 3

    def test_every_group_meets_invariants(
        self,
        aggregator: RateAggregator,
        observations: list[RateObservation],
        now_ms: int,
    ) -> None:
        for group in aggregator.aggregate(observations, THRESHOLD, WINDOW_MS):
            assert group.max_absolute_funding_rate >= THRESHOLD
            assert group.max_absolute_funding_rate == max(
                abs(o.funding_rate) for o in group.observations
            )
            assert group.earliest_settlement_timestamp == min(
                o.next_settlement_timestamp for o in group.observations
            )
            assert all(o.instrument_symbol == group.instrument_symbol for o in group.observations)
            for obs in group.observations:
                assert now_ms < obs.next_settlement_timestamp <= now_ms + WINDOW_MS
            abs_rates = [abs(o.funding_rate) for o in group.observations]
            assert abs_rates == sorted(abs_rates, reverse=True)

    def test_earliest_settlement(
        self, aggregator: RateAggregator, observations: list[RateObservation], now_ms: int
    ) -> None:
        groups = aggregator.aggregate(observations, THRESHOLD, WINDOW_MS)
        btc = next(g for g in groups if g.instrument_symbol == "BTC")
        assert btc.earliest_settlement_timestamp == now_ms + 15 * MINUTE_MS

    def test_ties_keep_arrival_order(self, aggregator: RateAggregator, now_ms: int) -> None:
        observations = [
            _obs(now_ms, "BTC", "0.001", "binance"),
            _obs(now_ms, "ETH", "0.001", "binance"),
            _obs(now_ms, "BTC", "-0.001", "okx"),
        ]
        groups = aggregator.aggregate(observations, THRESHOLD, WINDOW_MS)
        assert [g.instrument_symbol for g in groups] == ["BTC", "ETH"]
        assert [o.source_id for o in groups[0].observations] == ["binance", "okx"]

    def test_idempotent(
        self, aggregator: RateAggregator, observations: list[RateObservation]
    ) -> None:
        first = aggregator.aggregate(observations, THRESHOLD, WINDOW_MS)
        second = aggregator.aggregate(observations, THRESHOLD, WINDOW_MS)
        assert first == second

    def test_empty_input(self, aggregator: RateAggregator) -> None:
        assert aggregator.aggregate([], THRESHOLD, WINDOW_MS) == []
