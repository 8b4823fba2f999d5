"""JSON API endpoints: ranked funding rates, economic calendar, and the cron trigger."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from funding_radar.exceptions import CatalogError, ConfigurationError
from funding_radar.models import (
    FetchCycleResult,
    InstrumentGroup,
    JobReport,
    RateObservation,
    ScheduledEvent,
)

log = structlog.get_logger(__name__)

router = APIRouter()


def _iso(ts: float) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()


def _observation_to_dict(obs: RateObservation) -> dict[str, Any]:
    return {
        "exchange": obs.source_name,
        "exchange_id": obs.source_id,
        "symbol": obs.instrument_symbol,
        "pair": obs.pair_identifier,
        "funding_rate": str(obs.funding_rate),
        "next_funding_timestamp": obs.next_settlement_timestamp,
        "settlement_estimated": obs.settlement_estimated,
        "mark_price": str(obs.mark_price) if obs.mark_price is not None else None,
        "volume_24h": str(obs.volume) if obs.volume is not None else None,
    }


def _group_to_dict(group: InstrumentGroup) -> dict[str, Any]:
    return {
        "symbol": group.instrument_symbol,
        "max_abs_funding_rate": str(group.max_absolute_funding_rate),
        "next_settlement": group.earliest_settlement_timestamp,
        "exchange_count": group.observation_count,
        "exchanges": [_observation_to_dict(o) for o in group.observations],
    }


def funding_result_to_dict(result: FetchCycleResult) -> dict[str, Any]:
    return {
        "coins": [_group_to_dict(g) for g in result.groups],
        "meta": {
            "total_coins": result.total_instruments,
            "total_exchanges": result.total_sources,
            "last_updated": _iso(result.fetched_at),
            "errors": [str(e) for e in result.source_errors],
        },
    }


def event_to_dict(event: ScheduledEvent) -> dict[str, Any]:
    return {
        "title": event.title,
        "country": event.origin_country,
        "date": event.scheduled_at.isoformat(),
        "impact": event.impact_level.value,
        "forecast": event.forecast or "",
        "previous": event.previous or "",
    }


def _report_to_dict(report: JobReport) -> dict[str, Any]:
    if report.skipped:
        return {"skipped": True, "reason": report.reason}
    return {
        "success": not report.failures,
        "action": report.reason or "pushed",
        "alerts": [event_to_dict(e) for e in report.alerts],
        "results": report.deliveries,
        "failures": report.failures,
    }


@router.get("/funding-rates")
async def get_funding_rates(request: Request, refresh: str | None = None) -> JSONResponse:
    """Ranked instruments settling soon; ``?refresh=1`` bypasses the cache."""
    service = request.app.state.funding_service
    result = await service.get_rates(force_refresh=refresh == "1")
    ttl = int(request.app.state.settings.cache.funding_rate_ttl_seconds)
    return JSONResponse(
        content=funding_result_to_dict(result),
        headers={"Cache-Control": f"s-maxage={ttl}, stale-while-revalidate={ttl * 2}"},
    )


@router.get("/economic-calendar")
async def get_economic_calendar(request: Request) -> JSONResponse:
    """This week's events for the configured country, sorted by time."""
    catalog_service = request.app.state.catalog_service
    try:
        events = await catalog_service.country_events()
    except CatalogError as exc:
        log.warning("economic_calendar_unavailable", error=str(exc))
        return JSONResponse(content={"error": str(exc)}, status_code=502)

    ttl = int(request.app.state.settings.cache.calendar_ttl_seconds)
    return JSONResponse(
        content={
            "events": [event_to_dict(e) for e in events],
            "last_updated": datetime.now(timezone.utc).isoformat(),
        },
        headers={"Cache-Control": f"s-maxage={ttl}, stale-while-revalidate={ttl * 2}"},
    )


@router.get("/cron")
async def run_cron(request: Request) -> JSONResponse:
    """Run one alert job invocation and report what was pushed."""
    job = request.app.state.alert_job
    try:
        report = await job.run()
    except ConfigurationError as exc:
        log.error("cron_misconfigured", error=str(exc))
        return JSONResponse(content={"error": str(exc)}, status_code=500)

    return JSONResponse(content=_report_to_dict(report))
