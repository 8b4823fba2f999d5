"""Economic event catalog client.

Fetches the weekly economic calendar published by FairEconomy (the
ForexFactory JSON export) and parses it into ScheduledEvents. The feed is
refreshed upstream about once a week, so the catalog is fronted by a
single-slot cache with a few minutes TTL.
"""

import asyncio
from abc import ABC, abstractmethod
from datetime import datetime

import aiohttp

from funding_radar.cache import ResultCache
from funding_radar.config import CalendarSettings
from funding_radar.exceptions import CatalogError
from funding_radar.logging import get_logger
from funding_radar.models import ImpactLevel, ScheduledEvent

logger = get_logger(__name__)


def parse_event(raw: dict) -> ScheduledEvent | None:
    """Parse one feed entry; returns None for entries that cannot be scheduled."""
    try:
        scheduled_at = datetime.fromisoformat(str(raw["date"]))
        impact = ImpactLevel(raw.get("impact"))
        title = str(raw["title"])
    except (KeyError, TypeError, ValueError):
        return None

    if scheduled_at.tzinfo is None:
        return None

    return ScheduledEvent(
        title=title,
        origin_country=str(raw.get("country", "")),
        impact_level=impact,
        scheduled_at=scheduled_at,
        forecast=raw.get("forecast") or None,
        previous=raw.get("previous") or None,
    )


def parse_events(payload: object) -> list[ScheduledEvent]:
    """Parse the whole feed payload.

    Raises:
        CatalogError: If the payload is not a list of entries.
    """
    if not isinstance(payload, list):
        raise CatalogError(f"Expected a JSON list, got {type(payload).__name__}")

    events: list[ScheduledEvent] = []
    skipped = 0
    for raw in payload:
        event = parse_event(raw) if isinstance(raw, dict) else None
        if event is None:
            skipped += 1
            continue
        events.append(event)

    if skipped:
        logger.debug("catalog_entries_skipped", skipped=skipped)
    return events


class EventCatalog(ABC):
    """Source of scheduled economic events."""

    @abstractmethod
    async def fetch_events(self) -> list[ScheduledEvent]:
        """Return this publication cycle's events. Raises CatalogError."""
        ...


class FairEconomyCatalog(EventCatalog):
    """Fetches the FairEconomy weekly calendar over HTTP."""

    def __init__(self, settings: CalendarSettings) -> None:
        self._settings = settings

    async def fetch_events(self) -> list[ScheduledEvent]:
        payload = await self._fetch_json()
        events = parse_events(payload)
        logger.info("catalog_fetched", events=len(events))
        return events

    async def _fetch_json(self) -> object:
        timeout = aiohttp.ClientTimeout(total=self._settings.request_timeout_seconds)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(self._settings.url) as resp:
                    if resp.status != 200:
                        raise CatalogError(f"HTTP {resp.status} from {self._settings.url}")
                    # Feed is served as text/html by some mirrors
                    return await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            raise CatalogError(f"Calendar fetch failed: {exc}") from exc


class EventCatalogService:
    """Cached view of an EventCatalog, plus per-country listing.

    Args:
        catalog: Upstream catalog.
        cache: Single-slot cache holding the full event list.
        country: Origin country served by ``country_events``.
    """

    def __init__(
        self,
        catalog: EventCatalog,
        cache: ResultCache[list[ScheduledEvent]],
        country: str,
    ) -> None:
        self._catalog = catalog
        self._cache = cache
        self._country = country

    async def get_events(self) -> list[ScheduledEvent]:
        """All events of the current publication cycle. Raises CatalogError."""
        return await self._cache.get_or_load(self._catalog.fetch_events)

    async def country_events(self) -> list[ScheduledEvent]:
        """Events for the configured country, sorted by scheduled time."""
        events = await self.get_events()
        return sorted(
            (e for e in events if e.origin_country == self._country),
            key=lambda e: e.scheduled_at,
        )
