"""Static registry of funding rate sources."""

from collections.abc import Iterable

from funding_radar.exceptions import ConfigurationError
from funding_radar.models import QueryMode, SourceDescriptor

DEFAULT_SOURCES: tuple[SourceDescriptor, ...] = (
    SourceDescriptor("binance", "Binance", QueryMode.BULK),
    SourceDescriptor("okx", "OKX", QueryMode.BULK),
    SourceDescriptor("bybit", "Bybit", QueryMode.BULK),
    SourceDescriptor("gate", "Gate.io", QueryMode.BULK),
    SourceDescriptor("bitget", "Bitget", QueryMode.BULK),
    SourceDescriptor("htx", "HTX", QueryMode.TARGETED),
)


class SourceRegistry:
    """Read-only table of source descriptors.

    Args:
        sources: Descriptors to expose, in query order.
    """

    def __init__(self, sources: Iterable[SourceDescriptor] = DEFAULT_SOURCES) -> None:
        self._sources = tuple(sources)
        ids = [s.id for s in self._sources]
        if len(ids) != len(set(ids)):
            raise ConfigurationError(f"Duplicate source ids in registry: {ids}")

    @classmethod
    def from_enabled(
        cls,
        enabled: list[str],
        sources: Iterable[SourceDescriptor] = DEFAULT_SOURCES,
    ) -> "SourceRegistry":
        """Build a registry narrowed to ``enabled`` ids (all when empty)."""
        available = {s.id: s for s in sources}
        if not enabled:
            return cls(available.values())

        unknown = [source_id for source_id in enabled if source_id not in available]
        if unknown:
            raise ConfigurationError(
                f"Unknown source ids {unknown}; known: {sorted(available)}"
            )
        return cls(available[source_id] for source_id in enabled)

    def list_sources(self) -> list[SourceDescriptor]:
        return list(self._sources)

    def sources_by_mode(self, mode: QueryMode) -> list[SourceDescriptor]:
        return [s for s in self._sources if s.query_mode == mode]

    def get(self, source_id: str) -> SourceDescriptor | None:
        return next((s for s in self._sources if s.id == source_id), None)
