"""Shared data models for the funding radar.

All funding rates and prices use Decimal. Timestamps on the funding path are
Unix milliseconds; timestamps on the alert path are timezone-aware datetimes.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum


class QueryMode(str, Enum):
    """How a source is queried.

    BULK sources return every instrument's rate in one call; TARGETED
    sources need one call per instrument.
    """

    BULK = "bulk"
    TARGETED = "targeted"


@dataclass(frozen=True)
class SourceDescriptor:
    """Static description of one upstream exchange."""

    id: str  # ccxt exchange id, unique
    display_name: str
    query_mode: QueryMode


@dataclass(frozen=True)
class FundingRateRecord:
    """Raw funding rate report for one pair, as returned by a source client."""

    pair: str  # ccxt unified symbol, e.g. "BTC/USDT:USDT"
    funding_rate: Decimal | None
    funding_timestamp: int | None = None  # Unix milliseconds
    next_funding_timestamp: int | None = None  # Unix milliseconds
    mark_price: Decimal | None = None


@dataclass(frozen=True)
class RateObservation:
    """One source's funding rate for one instrument in the current cycle."""

    source_id: str
    source_name: str
    instrument_symbol: str  # base asset, e.g. "BTC"
    pair_identifier: str  # source pair, e.g. "BTC/USDT:USDT"
    funding_rate: Decimal
    next_settlement_timestamp: int  # Unix milliseconds
    mark_price: Decimal | None = None
    volume: Decimal | None = None
    settlement_estimated: bool = False

    @property
    def absolute_rate(self) -> Decimal:
        return abs(self.funding_rate)


@dataclass
class InstrumentGroup:
    """All observations for one instrument, most extreme source first."""

    instrument_symbol: str
    max_absolute_funding_rate: Decimal
    earliest_settlement_timestamp: int  # Unix milliseconds
    observations: list[RateObservation]

    @property
    def observation_count(self) -> int:
        return len(self.observations)


@dataclass(frozen=True)
class SourceFailure:
    """A source whose query failed or timed out in a fetch cycle."""

    source_id: str
    source_name: str
    message: str

    def __str__(self) -> str:
        return f"{self.source_name}: {self.message}"


@dataclass
class FetchCycleResult:
    """Ranked output of one fetch cycle plus the sources that failed."""

    groups: list[InstrumentGroup]
    source_errors: list[SourceFailure]
    fetched_at: float = field(default_factory=time.time)

    @property
    def total_instruments(self) -> int:
        return len(self.groups)

    @property
    def total_sources(self) -> int:
        """Number of distinct sources contributing to the reported groups."""
        return len(
            {obs.source_id for group in self.groups for obs in group.observations}
        )


class ImpactLevel(str, Enum):
    """Expected market impact of a scheduled economic event."""

    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"
    HOLIDAY = "Holiday"


@dataclass(frozen=True)
class ScheduledEvent:
    """An economic calendar entry."""

    title: str
    origin_country: str
    impact_level: ImpactLevel
    scheduled_at: datetime  # timezone-aware
    forecast: str | None = None
    previous: str | None = None

    @property
    def key(self) -> str:
        """Identity used to suppress duplicate alerts."""
        return f"{self.title}-{self.scheduled_at.isoformat()}"


@dataclass
class JobReport:
    """Outcome of one alert job invocation."""

    skipped: bool = False
    reason: str = ""
    alerts: list[ScheduledEvent] = field(default_factory=list)
    deliveries: list[str] = field(default_factory=list)  # "kind: receipt" lines
    failures: list[str] = field(default_factory=list)  # "kind: error" lines
