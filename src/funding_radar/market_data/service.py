"""Cached read path for ranked funding rates."""

from funding_radar.cache import ResultCache
from funding_radar.config import ScreenerSettings
from funding_radar.market_data.fetch_orchestrator import FetchOrchestrator
from funding_radar.models import FetchCycleResult
from funding_radar.sources.registry import SourceRegistry


class FundingRateService:
    """Serves the latest FetchCycleResult, running a cycle when the cache is cold.

    Args:
        orchestrator: Runs fetch cycles.
        registry: Sources to query.
        cache: Single-slot cache for cycle results.
        settings: Significance threshold and lookahead window.
    """

    def __init__(
        self,
        orchestrator: FetchOrchestrator,
        registry: SourceRegistry,
        cache: ResultCache[FetchCycleResult],
        settings: ScreenerSettings,
    ) -> None:
        self._orchestrator = orchestrator
        self._registry = registry
        self._cache = cache
        self._settings = settings

    async def get_rates(self, force_refresh: bool = False) -> FetchCycleResult:
        return await self._cache.get_or_load(self._run_cycle, force=force_refresh)

    async def _run_cycle(self) -> FetchCycleResult:
        return await self._orchestrator.run_fetch_cycle(
            self._registry.list_sources(),
            self._settings.significance_threshold,
            self._settings.lookahead_window_ms,
        )
