"""Rate aggregation and two-level ranking.

Groups per-source observations by instrument and ranks twice:

  1. sources within an instrument by |funding rate| descending
  2. instruments against each other by their max |funding rate| descending

Only settlements inside the lookahead window are considered. The window is a
hard filter, not a sort key: the question answered is "what settles soon",
not "what is mispriced right now". Both sorts are stable, so ties keep
source-arrival order and first-seen instrument order.
"""

from collections.abc import Callable, Iterable
from decimal import Decimal

from funding_radar.market_data.settlement import in_window, now_ms
from funding_radar.models import InstrumentGroup, RateObservation


class RateAggregator:
    """Builds ranked InstrumentGroups from raw observations.

    Args:
        clock_ms: Returns the current Unix time in milliseconds. Used when
            ``aggregate`` is called without an explicit ``now``.
    """

    def __init__(self, clock_ms: Callable[[], int] = now_ms) -> None:
        self._clock_ms = clock_ms

    def aggregate(
        self,
        observations: Iterable[RateObservation],
        significance_threshold: Decimal,
        lookahead_window_ms: int,
        now: int | None = None,
    ) -> list[InstrumentGroup]:
        """Filter, group and rank observations.

        Args:
            observations: Observations from all sources for this cycle.
            significance_threshold: Minimum |funding rate| an instrument's most
                extreme source must reach.
            lookahead_window_ms: Settlement must fall in (now, now + window].
            now: Reference time in Unix ms (defaults to the clock).

        Returns:
            Groups sorted by max_absolute_funding_rate descending.
        """
        if now is None:
            now = self._clock_ms()

        by_symbol: dict[str, list[RateObservation]] = {}
        for obs in observations:
            if not in_window(obs.next_settlement_timestamp, now, lookahead_window_ms):
                continue
            by_symbol.setdefault(obs.instrument_symbol, []).append(obs)

        groups: list[InstrumentGroup] = []
        for symbol, members in by_symbol.items():
            max_abs = max(obs.absolute_rate for obs in members)
            if max_abs < significance_threshold:
                continue

            ranked = sorted(members, key=lambda o: o.absolute_rate, reverse=True)
            groups.append(
                InstrumentGroup(
                    instrument_symbol=symbol,
                    max_absolute_funding_rate=max_abs,
                    earliest_settlement_timestamp=min(
                        obs.next_settlement_timestamp for obs in members
                    ),
                    observations=ranked,
                )
            )

        groups.sort(key=lambda g: g.max_absolute_funding_rate, reverse=True)
        return groups
