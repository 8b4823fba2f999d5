"""Economic event catalog -- feed client and cached view."""

from funding_radar.events.catalog import (
    EventCatalog,
    EventCatalogService,
    FairEconomyCatalog,
    parse_events,
)

__all__ = ["EventCatalog", "EventCatalogService", "FairEconomyCatalog", "parse_events"]
