"""One invocation of the periodic alert trigger.

Each run, in order:
  1. ADMIT: skip everything inside the quiet window
  2. ALERT: push advance alerts for events entering their firing window
  3. HOURLY: inside the hourly window, push the top funding rate instruments
  4. DIGEST: on digest hours, also push today's calendar

The job owns no scheduler. An external trigger (cron route, systemd timer,
``python -m funding_radar``) calls run() at whatever cadence it likes; the
seen-set keeps advance alerts idempotent and the cache bounds upstream load.
"""

from collections.abc import Callable
from datetime import datetime, timezone

from funding_radar.alerts import messages
from funding_radar.alerts.gate import AlertGate, AlertSeenSet
from funding_radar.alerts.notifier import NotificationSink
from funding_radar.config import AlertSettings
from funding_radar.events.catalog import EventCatalogService
from funding_radar.exceptions import CatalogError, ConfigurationError, NotificationError
from funding_radar.logging import get_logger
from funding_radar.market_data.service import FundingRateService
from funding_radar.models import JobReport, ScheduledEvent

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AlertJob:
    """Runs the alert pipeline once per call.

    Args:
        gate: Window and admission decisions.
        seen_set: Process-wide record of events already alerted.
        catalog_service: Cached economic event catalog.
        funding_service: Cached ranked funding rates.
        notifier: Push sink; None when credentials are missing, in which case
            run() raises ConfigurationError.
        settings: Alert bounds and push sizing.
        clock: Returns the current aware datetime.
    """

    def __init__(
        self,
        gate: AlertGate,
        seen_set: AlertSeenSet,
        catalog_service: EventCatalogService,
        funding_service: FundingRateService,
        notifier: NotificationSink | None,
        settings: AlertSettings,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._gate = gate
        self._seen_set = seen_set
        self._catalog_service = catalog_service
        self._funding_service = funding_service
        self._notifier = notifier
        self._settings = settings
        self._clock = clock

    async def run(self, now: datetime | None = None) -> JobReport:
        if self._notifier is None:
            raise ConfigurationError("SC_SENDKEY not configured")

        now = now or self._clock()
        local = self._gate.local_time(now)
        logger.info("alert_job_started", local_time=local.strftime("%H:%M"))

        if not self._gate.is_admitted(now):
            reason = (
                f"local time {local:%H:%M} inside quiet window "
                f"{self._settings.quiet_start_hour:02d}:00-"
                f"{self._settings.quiet_end_hour:02d}:00"
            )
            logger.info("alert_job_skipped", reason=reason)
            return JobReport(skipped=True, reason=reason)

        report = JobReport()
        tz = self._gate.timezone
        events = await self._load_catalog(report)

        # 1) Advance alerts for events entering their firing window
        due = self._gate.evaluate_alerts(
            now,
            events,
            self._settings.lower_bound_minutes,
            self._settings.upper_bound_minutes,
            self._seen_set,
        )
        report.alerts = due
        if due:
            await self._deliver(report, "calendar_alert", *messages.event_alert(due, tz))

        # 2) Hourly pushes
        if self._gate.in_hourly_window(now):
            result = await self._funding_service.get_rates()
            if result.groups:
                await self._deliver(
                    report,
                    "funding",
                    *messages.funding_summary(
                        result, self._settings.top_instruments, now, tz
                    ),
                )
            else:
                logger.info("no_funding_rates_to_push", failed_sources=len(result.source_errors))

            if self._gate.is_digest_hour(now):
                today = self._gate.todays_events(now, events)
                if today:
                    await self._deliver(
                        report, "calendar", *messages.calendar_digest(today, now, tz)
                    )

        if not report.deliveries and not report.failures:
            report.reason = "no_push_needed"

        logger.info(
            "alert_job_complete",
            alerts=len(report.alerts),
            deliveries=len(report.deliveries),
            failures=len(report.failures),
        )
        return report

    async def _load_catalog(self, report: JobReport) -> list[ScheduledEvent]:
        """Catalog outages degrade to "no calendar work this run"."""
        try:
            return await self._catalog_service.get_events()
        except CatalogError as exc:
            logger.warning("catalog_unavailable", error=str(exc))
            report.failures.append(f"catalog: {exc}")
            return []

    async def _deliver(self, report: JobReport, kind: str, title: str, body: str) -> None:
        """Send one push. Delivery failures are recorded, not retried."""
        assert self._notifier is not None
        try:
            receipt = await self._notifier.send(title, body)
        except NotificationError as exc:
            logger.error("notification_failed", kind=kind, error=str(exc))
            report.failures.append(f"{kind}: {exc}")
            return
        report.deliveries.append(f"{kind}: {receipt}")
