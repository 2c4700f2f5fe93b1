"""Prometheus metrics for the tail-and-notify pipeline.

All metrics use the 'chatbell_' prefix.
"""

from prometheus_client import Counter, Histogram, Info

SERVICE_INFO = Info(
    "chatbell_service",
    "Service metadata",
)

LINES_READ = Counter(
    "chatbell_lines_read_total",
    "Raw lines read from the chat log",
)

RECORDS = Counter(
    "chatbell_records_total",
    "Unique chat records after deduplication",
    ["channel"],
)

TRIGGERS_FIRED = Counter(
    "chatbell_triggers_fired_total",
    "Trigger rules that matched a record",
)

NOTIFICATIONS = Counter(
    "chatbell_notifications_total",
    "Notifier invocations",
    ["notifier", "status"],  # status: success, failure, error, unknown
)

NOTIFY_DURATION = Histogram(
    "chatbell_notify_duration_seconds",
    "Time spent inside a notifier",
    ["notifier"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
)

TAIL_ERRORS = Counter(
    "chatbell_tail_errors_total",
    "Failed reads of the chat log",
)
