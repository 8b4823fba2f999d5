"""Time-window alert gating with duplicate suppression.

The gate is level-triggered: every invocation re-checks which events fall
inside the (lower, upper] minutes-ahead window, and only the seen-set keeps an
event from firing twice. With the default 15/35 bounds each event has a
20-minute firing window, so an irregular trigger cadence (e.g. a cron
scheduler that runs late) still catches it exactly once.

The seen-set lives for the process lifetime only. After a restart an event
still inside its window can fire again; this is best-effort dedup.
"""

import threading
from collections.abc import Iterable
from datetime import datetime
from zoneinfo import ZoneInfo

from funding_radar.config import AlertSettings
from funding_radar.logging import get_logger
from funding_radar.models import ImpactLevel, ScheduledEvent

logger = get_logger(__name__)

SEVERITY_LEVELS: dict[str, frozenset[ImpactLevel]] = {
    "high": frozenset({ImpactLevel.HIGH}),
    "high_medium": frozenset({ImpactLevel.HIGH, ImpactLevel.MEDIUM}),
}

_MINUTES_PER_DAY = 24 * 60


def in_wrapping_range(value: int, start: int, end: int) -> bool:
    """True if ``value`` is in ``[start, end)`` on a circular scale.

    When ``start > end`` the range wraps (e.g. 22..3 means 22, 23, 0, 1, 2).
    ``start == end`` is an empty range.
    """
    if start == end:
        return False
    if start < end:
        return start <= value < end
    return value >= start or value < end


class AlertSeenSet:
    """Keys of events already alerted in this process. Grows monotonically."""

    def __init__(self) -> None:
        self._keys: set[str] = set()
        self._lock = threading.Lock()

    def add_if_absent(self, key: str) -> bool:
        """Atomically insert ``key``. Returns False if it was already present."""
        with self._lock:
            if key in self._keys:
                return False
            self._keys.add(key)
            return True

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._keys

    def __len__(self) -> int:
        with self._lock:
            return len(self._keys)


class AlertGate:
    """Decides which scheduled events are due for an advance alert.

    Args:
        settings: Reference timezone, severity filter and schedule windows.
        country: Only events from this origin country are considered
            (empty string disables the filter).
    """

    def __init__(self, settings: AlertSettings, country: str = "USD") -> None:
        self._settings = settings
        self._country = country
        self._tz = ZoneInfo(settings.timezone)

    @property
    def timezone(self) -> ZoneInfo:
        return self._tz

    def local_time(self, now: datetime) -> datetime:
        return now.astimezone(self._tz)

    def evaluate_alerts(
        self,
        now: datetime,
        catalog: Iterable[ScheduledEvent],
        lower_bound_minutes: float,
        upper_bound_minutes: float,
        seen_set: AlertSeenSet,
    ) -> list[ScheduledEvent]:
        """Return events due for an alert and mark them as seen.

        An event is due when it passes the severity and country filters, is
        scheduled "today" in the reference timezone, lies in
        ``(lower, upper]`` minutes from ``now`` and has not been alerted yet.
        Safe to call at any cadence: each event fires at most once per process.
        """
        due: list[ScheduledEvent] = []
        for event in self._todays_events(now, catalog, self._settings.severity):
            minutes_until = (event.scheduled_at - now).total_seconds() / 60
            if not lower_bound_minutes < minutes_until <= upper_bound_minutes:
                continue
            if not seen_set.add_if_absent(event.key):
                continue
            due.append(event)

        logger.debug("alerts_evaluated", due=len(due), seen=len(seen_set))
        return due

    def todays_events(
        self, now: datetime, catalog: Iterable[ScheduledEvent]
    ) -> list[ScheduledEvent]:
        """Today's events at digest severity, sorted by scheduled time."""
        return sorted(
            self._todays_events(now, catalog, self._settings.digest_severity),
            key=lambda e: e.scheduled_at,
        )

    def is_admitted(self, now: datetime) -> bool:
        """False while the local time is inside the quiet window."""
        local = self.local_time(now)
        minute_of_day = local.hour * 60 + local.minute
        quiet = in_wrapping_range(
            minute_of_day,
            self._settings.quiet_start_hour * 60 % _MINUTES_PER_DAY,
            self._settings.quiet_end_hour * 60 % _MINUTES_PER_DAY,
        )
        return not quiet

    def in_hourly_window(self, now: datetime) -> bool:
        """True when minute-of-hour is within the inclusive hourly push window."""
        minute = self.local_time(now).minute
        return in_wrapping_range(
            minute,
            self._settings.hourly_window_start_minute,
            self._settings.hourly_window_end_minute + 1,
        )

    def is_digest_hour(self, now: datetime) -> bool:
        return self.local_time(now).hour in self._settings.digest_hours

    def _todays_events(
        self, now: datetime, catalog: Iterable[ScheduledEvent], severity: str
    ) -> Iterable[ScheduledEvent]:
        levels = SEVERITY_LEVELS[severity]
        today = self.local_time(now).date()
        for event in catalog:
            if event.impact_level not in levels:
                continue
            if self._country and event.origin_country != self._country:
                continue
            if self.local_time(event.scheduled_at).date() != today:
                continue
            yield event
