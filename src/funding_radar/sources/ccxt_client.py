"""ccxt-backed source client.

Wraps any ccxt.async_support exchange with market loading, funding rate
normalization to Decimal, and async cleanup. ccxt errors are converted to
SourceError so callers only handle the radar's own taxonomy.
"""

from collections.abc import Callable
from decimal import Decimal, InvalidOperation

import ccxt.async_support as ccxt_async

from funding_radar.config import SourceSettings
from funding_radar.exceptions import SourceError
from funding_radar.logging import get_logger
from funding_radar.models import FundingRateRecord, SourceDescriptor
from funding_radar.sources.client import SourceClient

logger = get_logger(__name__)

# Settlement currencies of the perpetuals we track, in lookup priority order
_LINEAR_QUOTES = ("USDT", "USDC")


def _to_decimal(value: object) -> Decimal | None:
    if value is None:
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


def _to_millis(value: object) -> int | None:
    if value is None:
        return None
    try:
        millis = int(value)  # type: ignore[call-overload]
    except (TypeError, ValueError):
        return None
    return millis or None


def parse_funding_rate(pair: str, data: dict) -> FundingRateRecord:
    """Convert a ccxt unified funding rate structure into a FundingRateRecord."""
    return FundingRateRecord(
        pair=data.get("symbol") or pair,
        funding_rate=_to_decimal(data.get("fundingRate")),
        funding_timestamp=_to_millis(data.get("fundingTimestamp")),
        next_funding_timestamp=_to_millis(data.get("nextFundingTimestamp")),
        mark_price=_to_decimal(data.get("markPrice")),
    )


class CcxtSourceClient(SourceClient):
    """Source client for one ccxt exchange in swap mode.

    Args:
        descriptor: The source to connect to; ``descriptor.id`` must be a
            ccxt exchange id.
        settings: Request timeout and proxy configuration.
    """

    def __init__(self, descriptor: SourceDescriptor, settings: SourceSettings) -> None:
        super().__init__(descriptor)

        config: dict = {
            "enableRateLimit": True,
            "timeout": settings.request_timeout_ms,
            "options": {
                "defaultType": "swap",
            },
        }
        if settings.https_proxy:
            config["httpsProxy"] = settings.https_proxy

        exchange_class = getattr(ccxt_async, descriptor.id, None)
        if exchange_class is None:
            raise SourceError(descriptor.id, "not a ccxt exchange id")

        self._exchange = exchange_class(config)
        self._markets: dict = {}

    @property
    def exchange(self) -> ccxt_async.Exchange:
        """Access the underlying ccxt exchange instance."""
        return self._exchange

    async def open(self) -> None:
        try:
            self._markets = await self._exchange.load_markets()
        except ccxt_async.BaseError as exc:
            raise SourceError(self.descriptor.id, f"load_markets failed: {exc}") from exc
        logger.debug(
            "source_markets_loaded",
            source=self.descriptor.id,
            market_count=len(self._markets),
        )

    async def close(self) -> None:
        """Close the ccxt session. CRITICAL: avoids unclosed aiohttp connector warnings."""
        await self._exchange.close()

    async def list_funding_rates(self) -> dict[str, FundingRateRecord]:
        try:
            raw = await self._exchange.fetch_funding_rates()
        except ccxt_async.BaseError as exc:
            raise SourceError(
                self.descriptor.id, f"fetch_funding_rates failed: {exc}"
            ) from exc

        return {pair: parse_funding_rate(pair, data) for pair, data in raw.items()}

    async def fetch_funding_rate(self, pair: str) -> FundingRateRecord | None:
        try:
            raw = await self._exchange.fetch_funding_rate(pair)
        except ccxt_async.BaseError as exc:
            raise SourceError(
                self.descriptor.id, f"fetch_funding_rate({pair}) failed: {exc}"
            ) from exc

        if not raw:
            return None
        return parse_funding_rate(pair, raw)

    def resolve_pair(self, instrument_symbol: str) -> str | None:
        for quote in _LINEAR_QUOTES:
            pair = f"{instrument_symbol}/{quote}:{quote}"
            if pair in self._markets:
                return pair
        return None


def ccxt_client_factory(
    settings: SourceSettings,
) -> Callable[[SourceDescriptor], SourceClient]:
    """Return a factory that builds a fresh CcxtSourceClient per descriptor."""

    def factory(descriptor: SourceDescriptor) -> SourceClient:
        return CcxtSourceClient(descriptor, settings)

    return factory
