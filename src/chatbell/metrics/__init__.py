"""Prometheus metrics for chatbell.

Usage:
    from chatbell.metrics import start_metrics_server, NOTIFICATIONS

    start_metrics_server(port=9108)
    NOTIFICATIONS.labels(notifier="dingtalk", status="success").inc()
"""

from chatbell.metrics.chatbell import (
    LINES_READ,
    NOTIFICATIONS,
    NOTIFY_DURATION,
    RECORDS,
    SERVICE_INFO,
    TAIL_ERRORS,
    TRIGGERS_FIRED,
)
from chatbell.metrics.server import start_metrics_server

__all__ = [
    "start_metrics_server",
    "SERVICE_INFO",
    "LINES_READ",
    "RECORDS",
    "TRIGGERS_FIRED",
    "NOTIFICATIONS",
    "NOTIFY_DURATION",
    "TAIL_ERRORS",
]
