"""Market data layer -- two-phase fetch, rate aggregation, and the cached read path."""

from funding_radar.market_data.aggregator import RateAggregator
from funding_radar.market_data.fetch_orchestrator import FetchOrchestrator
from funding_radar.market_data.service import FundingRateService
from funding_radar.market_data.settlement import estimate_next_funding

__all__ = [
    "FetchOrchestrator",
    "FundingRateService",
    "RateAggregator",
    "estimate_next_funding",
]
