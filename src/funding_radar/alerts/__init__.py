"""Alerting layer -- time-window gate, push sink, and the periodic alert job."""

from funding_radar.alerts.gate import AlertGate, AlertSeenSet
from funding_radar.alerts.job import AlertJob
from funding_radar.alerts.notifier import NotificationSink, ServerChanNotifier

__all__ = [
    "AlertGate",
    "AlertJob",
    "AlertSeenSet",
    "NotificationSink",
    "ServerChanNotifier",
]
