"""Settlement time resolution and pair eligibility helpers.

Exchanges disagree on what ``fundingTimestamp`` means: it may be the
settlement that just happened or the upcoming one, or it may be missing.
resolve_settlement picks the first reported timestamp that is
still in the future and otherwise falls back to the standard 8-hour
grid (00:00, 08:00, 16:00 UTC).
"""

from datetime import datetime, timezone

from funding_radar.models import FundingRateRecord

_HOUR_MS = 3_600_000
_DAY_MS = 24 * _HOUR_MS
_FUNDING_INTERVAL_MS = 8 * _HOUR_MS

# Quote suffixes of USDT/USDC-margined perpetuals in ccxt unified symbols
_ELIGIBLE_SUFFIXES = ("/USDT:USDT", "/USDC:USDC")


def now_ms() -> int:
    """Current Unix time in milliseconds."""
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def estimate_next_funding(now: int) -> int:
    """Return the first 8-hour UTC boundary strictly after ``now`` (Unix ms).

    Candidates are 00:00, 08:00 and 16:00 of the current UTC day and 00:00 of
    the next day, so the result is always in ``(now, now + 8h]``.
    """
    day_start = now - now % _DAY_MS
    for i in range(4):
        candidate = day_start + i * _FUNDING_INTERVAL_MS
        if candidate > now:
            return candidate
    return day_start + _DAY_MS


def resolve_settlement(record: FundingRateRecord, now: int) -> tuple[int, bool]:
    """Pick the next settlement timestamp for a record.

    Returns:
        Tuple of (timestamp_ms, estimated). ``estimated`` is True when neither
        reported timestamp was in the future.
    """
    if record.funding_timestamp and record.funding_timestamp > now:
        return record.funding_timestamp, False
    if record.next_funding_timestamp and record.next_funding_timestamp > now:
        return record.next_funding_timestamp, False
    return estimate_next_funding(now), True


def is_eligible_pair(pair: str) -> bool:
    """True for USDT- or USDC-margined perpetual pairs."""
    return pair.endswith(_ELIGIBLE_SUFFIXES)


def base_symbol(pair: str) -> str:
    """Base asset of a pair: "BTC/USDT:USDT" -> "BTC"."""
    return pair.split("/", 1)[0]


def in_window(timestamp: int, now: int, window_ms: int) -> bool:
    """True if ``timestamp`` lies in ``(now, now + window_ms]``."""
    return now < timestamp <= now + window_ms
