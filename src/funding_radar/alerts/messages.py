"""Plain markdown bodies for push notifications."""

from datetime import datetime, tzinfo
from decimal import Decimal

from funding_radar.models import FetchCycleResult, ImpactLevel, ScheduledEvent

_IMPACT_MARKERS = {
    ImpactLevel.HIGH: "[HIGH]",
    ImpactLevel.MEDIUM: "[MED]",
}


def format_rate(rate: Decimal) -> str:
    """0.00075 -> "+0.0750%"."""
    return f"{rate * 100:+.4f}%"


def _clock(value: datetime, tz: tzinfo) -> str:
    return value.astimezone(tz).strftime("%H:%M")


def event_lines(events: list[ScheduledEvent], tz: tzinfo) -> str:
    lines = []
    for event in events:
        marker = _IMPACT_MARKERS.get(event.impact_level, "")
        line = f"{marker} **{_clock(event.scheduled_at, tz)}** {event.title}"
        if event.forecast:
            line += f" (forecast: {event.forecast})"
        if event.previous:
            line += f" (previous: {event.previous})"
        lines.append(line.strip())
    return "\n\n".join(lines) + "\n\n"


def event_alert(events: list[ScheduledEvent], tz: tzinfo) -> tuple[str, str]:
    return "Economic events starting soon", event_lines(events, tz)


def calendar_digest(events: list[ScheduledEvent], now: datetime, tz: tzinfo) -> tuple[str, str]:
    return f"{_clock(now, tz)} Today's economic calendar", event_lines(events, tz)


def funding_summary(
    result: FetchCycleResult, top: int, now: datetime, tz: tzinfo
) -> tuple[str, str]:
    """Top instruments with every source's rate, plus failed sources."""
    body = ""
    for group in result.groups[:top]:
        lead = group.observations[0]
        body += f"### {group.instrument_symbol} {format_rate(lead.funding_rate)}\n\n"
        for obs in group.observations:
            body += f"- **{obs.source_name}** {format_rate(obs.funding_rate)}\n"
        body += "\n"

    if result.source_errors:
        failed = ", ".join(str(e) for e in result.source_errors)
        body += f"> Partial failure: {failed}\n\n"

    return f"{_clock(now, tz)} Funding rate top {top}", body
