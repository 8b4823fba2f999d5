"""Source layer -- registry of exchanges and the ccxt-backed client contract."""

from funding_radar.sources.ccxt_client import CcxtSourceClient, ccxt_client_factory
from funding_radar.sources.client import SourceClient
from funding_radar.sources.registry import DEFAULT_SOURCES, SourceRegistry

__all__ = [
    "CcxtSourceClient",
    "DEFAULT_SOURCES",
    "SourceClient",
    "SourceRegistry",
    "ccxt_client_factory",
]
