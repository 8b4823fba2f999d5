"""Entry point for the funding radar.

Wires all components together and either serves the JSON API (default) or
runs a single alert job invocation and exits (API_ENABLED=false), which suits
an external cron/systemd timer.

Component wiring order (in build_components):
1. SourceRegistry (enabled exchanges)
2. RateAggregator + FetchOrchestrator (two-phase fetch)
3. Funding rate cache + FundingRateService (cached read path)
4. Event catalog + calendar cache + EventCatalogService
5. AlertGate + AlertSeenSet (time windows and dedup)
6. Notifier (ServerChan, only when a send key is configured)
7. AlertJob (periodic trigger body)
"""

import asyncio
from typing import Any

import uvicorn

from funding_radar.alerts.gate import AlertGate, AlertSeenSet
from funding_radar.alerts.job import AlertJob
from funding_radar.alerts.notifier import ServerChanNotifier
from funding_radar.cache import ResultCache
from funding_radar.config import AppSettings
from funding_radar.events.catalog import EventCatalogService, FairEconomyCatalog
from funding_radar.exceptions import ConfigurationError
from funding_radar.logging import get_logger, setup_logging
from funding_radar.market_data.aggregator import RateAggregator
from funding_radar.market_data.fetch_orchestrator import FetchOrchestrator
from funding_radar.market_data.service import FundingRateService
from funding_radar.sources.ccxt_client import ccxt_client_factory
from funding_radar.sources.registry import SourceRegistry


def build_components(settings: AppSettings) -> dict[str, Any]:
    """Build the full dependency graph from settings.

    Raises:
        ConfigurationError: If SOURCES_ENABLED names an unknown exchange.
    """
    logger = get_logger("funding_radar.main")

    registry = SourceRegistry.from_enabled(settings.sources.enabled)

    orchestrator = FetchOrchestrator(
        client_factory=ccxt_client_factory(settings.sources),
        aggregator=RateAggregator(),
        settings=settings.sources,
    )
    funding_service = FundingRateService(
        orchestrator=orchestrator,
        registry=registry,
        cache=ResultCache("funding_rates", settings.cache.funding_rate_ttl_seconds),
        settings=settings.screener,
    )

    catalog_service = EventCatalogService(
        catalog=FairEconomyCatalog(settings.calendar),
        cache=ResultCache("economic_calendar", settings.cache.calendar_ttl_seconds),
        country=settings.calendar.country,
    )

    gate = AlertGate(settings.alerts, country=settings.calendar.country)
    seen_set = AlertSeenSet()

    try:
        notifier: ServerChanNotifier | None = ServerChanNotifier(settings.notifier)
    except ConfigurationError:
        logger.warning(
            "no_sendkey_configured",
            note="Funding rate and calendar endpoints work; alert job will refuse to run.",
        )
        notifier = None

    alert_job = AlertJob(
        gate=gate,
        seen_set=seen_set,
        catalog_service=catalog_service,
        funding_service=funding_service,
        notifier=notifier,
        settings=settings.alerts,
    )

    logger.info(
        "components_built",
        sources=[s.id for s in registry.list_sources()],
        significance_threshold=str(settings.screener.significance_threshold),
        lookahead_window_ms=settings.screener.lookahead_window_ms,
    )

    return {
        "registry": registry,
        "orchestrator": orchestrator,
        "funding_service": funding_service,
        "catalog_service": catalog_service,
        "gate": gate,
        "seen_set": seen_set,
        "notifier": notifier,
        "alert_job": alert_job,
    }


async def run() -> None:
    """Serve the API, or run the alert job once when the API is disabled."""
    # 1. Load settings
    settings = AppSettings()

    # 2. Setup logging
    setup_logging(settings.log_level)
    logger = get_logger("funding_radar.main")

    # 3. Build all components
    components = build_components(settings)

    if settings.api.enabled:
        from funding_radar.dashboard.app import create_app

        app = create_app(components, settings)

        logger.info("starting_api", host=settings.api.host, port=settings.api.port)

        config = uvicorn.Config(
            app,
            host=settings.api.host,
            port=settings.api.port,
            log_level="warning",  # Suppress uvicorn access logs
        )
        server = uvicorn.Server(config)
        await server.serve()
    else:
        report = await components["alert_job"].run()
        logger.info(
            "alert_job_once_complete",
            skipped=report.skipped,
            reason=report.reason,
            deliveries=report.deliveries,
            failures=report.failures,
        )


def main() -> None:
    """Synchronous entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
