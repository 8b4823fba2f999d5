"""Abstract source client interface.

Defines the capability contract every funding rate source implements.
The fetch orchestrator depends only on this interface; how a given exchange
is reached stays in the concrete implementation.
"""

from abc import ABC, abstractmethod

from funding_radar.models import FundingRateRecord, SourceDescriptor


class SourceClient(ABC):
    """Abstract base class for funding rate source clients.

    All methods raise SourceError on network or protocol failure.
    """

    def __init__(self, descriptor: SourceDescriptor) -> None:
        self.descriptor = descriptor

    @abstractmethod
    async def open(self) -> None:
        """Prepare the client for queries (load markets)."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release network resources. Must be called even after failures."""
        ...

    @abstractmethod
    async def list_funding_rates(self) -> dict[str, FundingRateRecord]:
        """Return current funding rates for every pair, keyed by pair."""
        ...

    @abstractmethod
    async def fetch_funding_rate(self, pair: str) -> FundingRateRecord | None:
        """Return the current funding rate for one pair, or None if unavailable."""
        ...

    @abstractmethod
    def resolve_pair(self, instrument_symbol: str) -> str | None:
        """Map a base asset to this source's linear perpetual pair, if listed.

        Only valid after open().
        """
        ...
