"""Two-phase concurrent fetch of funding rates across all sources.

Phase 1 queries every bulk source concurrently, each under its own timeout.
The combined bulk result yields a shortlist of instruments that settle soon
with a significant rate. Phase 2 then asks every targeted source only about
the shortlist, at most ``targeted_concurrency`` requests in flight per source.

Failure isolation:
- A bulk source that raises or times out becomes exactly one SourceFailure
  and contributes nothing; siblings are never cancelled.
- A targeted source is recorded as failed only when it cannot be opened or
  its whole phase times out. Individual instrument requests that fail are
  dropped and only counted in a debug log.
"""

import asyncio
import time
import uuid
from collections.abc import Awaitable, Callable
from decimal import Decimal

import structlog

from funding_radar.config import SourceSettings
from funding_radar.exceptions import SourceError
from funding_radar.logging import get_logger
from funding_radar.market_data.aggregator import RateAggregator
from funding_radar.market_data.settlement import (
    base_symbol,
    in_window,
    is_eligible_pair,
    now_ms,
    resolve_settlement,
)
from funding_radar.models import (
    FetchCycleResult,
    FundingRateRecord,
    QueryMode,
    RateObservation,
    SourceDescriptor,
    SourceFailure,
)
from funding_radar.sources.client import SourceClient

logger = get_logger(__name__)

ClientFactory = Callable[[SourceDescriptor], SourceClient]
SourceQuery = Callable[[SourceClient], Awaitable[list[RateObservation]]]


def to_observation(
    descriptor: SourceDescriptor,
    pair: str,
    record: FundingRateRecord,
    now: int,
) -> RateObservation | None:
    """Normalize a raw record, or None if it is ineligible or has no rate."""
    if not is_eligible_pair(pair) or record.funding_rate is None:
        return None

    settlement, estimated = resolve_settlement(record, now)
    return RateObservation(
        source_id=descriptor.id,
        source_name=descriptor.display_name,
        instrument_symbol=base_symbol(pair),
        pair_identifier=pair,
        funding_rate=record.funding_rate,
        next_settlement_timestamp=settlement,
        mark_price=record.mark_price,
        settlement_estimated=estimated,
    )


def derive_shortlist(
    observations: list[RateObservation],
    significance_threshold: Decimal,
    lookahead_window_ms: int,
    now: int,
) -> list[str]:
    """Distinct instruments settling in the window with a significant rate.

    Order is first-seen, so Phase 2 requests go out in a stable order.
    """
    shortlist: dict[str, None] = {}
    for obs in observations:
        if obs.absolute_rate < significance_threshold:
            continue
        if not in_window(obs.next_settlement_timestamp, now, lookahead_window_ms):
            continue
        shortlist[obs.instrument_symbol] = None
    return list(shortlist)


def _describe_failure(error: BaseException, timeout: float) -> str:
    if isinstance(error, asyncio.TimeoutError):
        return f"timed out after {int(timeout * 1000)}ms"
    if isinstance(error, SourceError):
        return error.message
    return str(error) or type(error).__name__


class FetchOrchestrator:
    """Runs fetch cycles against a set of sources and ranks the result.

    Args:
        client_factory: Builds a fresh SourceClient for a descriptor. A client
            is opened and closed within a single cycle.
        aggregator: Ranks the combined observations.
        settings: Timeouts and targeted concurrency cap.
        clock_ms: Returns the current Unix time in milliseconds.
    """

    def __init__(
        self,
        client_factory: ClientFactory,
        aggregator: RateAggregator,
        settings: SourceSettings,
        clock_ms: Callable[[], int] = now_ms,
    ) -> None:
        self._client_factory = client_factory
        self._aggregator = aggregator
        self._settings = settings
        self._clock_ms = clock_ms

    async def run_fetch_cycle(
        self,
        sources: list[SourceDescriptor],
        significance_threshold: Decimal,
        lookahead_window_ms: int,
    ) -> FetchCycleResult:
        """Query all sources and return ranked groups plus per-source failures.

        Never raises for upstream problems: a cycle where every source fails
        returns no groups and one SourceFailure per source.
        """
        with structlog.contextvars.bound_contextvars(cycle_id=uuid.uuid4().hex[:8]):
            started = time.monotonic()
            bulk_sources = [s for s in sources if s.query_mode == QueryMode.BULK]
            targeted_sources = [s for s in sources if s.query_mode == QueryMode.TARGETED]

            # Phase 1: bulk
            now = self._clock_ms()
            observations, errors = await self._run_phase(
                bulk_sources, lambda client: self._fetch_bulk(client, now)
            )

            # Phase 2: targeted, restricted to the Phase 1 shortlist
            shortlist = derive_shortlist(
                observations, significance_threshold, lookahead_window_ms, now
            )
            logger.info(
                "bulk_phase_complete",
                observations=len(observations),
                failed_sources=len(errors),
                shortlist=len(shortlist),
            )

            if shortlist and targeted_sources:
                targeted_now = self._clock_ms()
                targeted_obs, targeted_errors = await self._run_phase(
                    targeted_sources,
                    lambda client: self._fetch_targeted(client, shortlist, targeted_now),
                )
                observations.extend(targeted_obs)
                errors.extend(targeted_errors)
            elif targeted_sources:
                logger.debug("targeted_phase_skipped", reason="empty_shortlist")

            groups = self._aggregator.aggregate(
                observations,
                significance_threshold,
                lookahead_window_ms,
                now=self._clock_ms(),
            )

            logger.info(
                "fetch_cycle_complete",
                observations=len(observations),
                groups=len(groups),
                failed_sources=[e.source_id for e in errors],
                duration_seconds=round(time.monotonic() - started, 2),
            )
            return FetchCycleResult(groups=groups, source_errors=errors)

    async def _run_phase(
        self,
        sources: list[SourceDescriptor],
        query: SourceQuery,
    ) -> tuple[list[RateObservation], list[SourceFailure]]:
        """Run ``query`` against every source concurrently under its own timeout."""
        timeout = self._settings.timeout_seconds
        tasks = [
            asyncio.wait_for(self._query_source(descriptor, query), timeout=timeout)
            for descriptor in sources
        ]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        observations: list[RateObservation] = []
        errors: list[SourceFailure] = []

        for descriptor, result in zip(sources, results):
            if isinstance(result, BaseException):
                failure = SourceFailure(
                    source_id=descriptor.id,
                    source_name=descriptor.display_name,
                    message=_describe_failure(result, timeout),
                )
                errors.append(failure)
                logger.warning(
                    "source_fetch_failed",
                    source=descriptor.id,
                    error=failure.message,
                )
            else:
                observations.extend(result)
                logger.debug(
                    "source_fetch_succeeded",
                    source=descriptor.id,
                    observations=len(result),
                )

        return observations, errors

    async def _query_source(
        self, descriptor: SourceDescriptor, query: SourceQuery
    ) -> list[RateObservation]:
        client = self._client_factory(descriptor)
        try:
            await client.open()
            return await query(client)
        finally:
            await client.close()

    async def _fetch_bulk(self, client: SourceClient, now: int) -> list[RateObservation]:
        records = await client.list_funding_rates()
        observations = []
        for pair, record in records.items():
            obs = to_observation(client.descriptor, pair, record, now)
            if obs is not None:
                observations.append(obs)
        return observations

    async def _fetch_targeted(
        self, client: SourceClient, shortlist: list[str], now: int
    ) -> list[RateObservation]:
        pairs = [
            pair
            for pair in (client.resolve_pair(symbol) for symbol in shortlist)
            if pair is not None
        ]
        semaphore = asyncio.Semaphore(self._settings.targeted_concurrency)

        async def fetch_one(pair: str) -> FundingRateRecord | None:
            async with semaphore:
                return await client.fetch_funding_rate(pair)

        results = await asyncio.gather(
            *(fetch_one(pair) for pair in pairs), return_exceptions=True
        )

        observations: list[RateObservation] = []
        dropped = 0
        for pair, result in zip(pairs, results):
            if isinstance(result, BaseException) or result is None:
                dropped += 1
                continue
            obs = to_observation(client.descriptor, pair, result, now)
            if obs is None:
                dropped += 1
                continue
            observations.append(obs)

        logger.debug(
            "targeted_source_queried",
            source=client.descriptor.id,
            requested=len(pairs),
            received=len(observations),
            dropped=dropped,
        )
        return observations
