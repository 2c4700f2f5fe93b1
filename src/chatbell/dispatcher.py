"""Concurrent fan-out of alerts to notifier backends."""

import time
from collections.abc import Iterable, Mapping
from concurrent.futures import Future, ThreadPoolExecutor

import structlog

from .metrics import NOTIFICATIONS, NOTIFY_DURATION
from .notifiers import Notifier

log = structlog.get_logger()


class Dispatcher:
    """Delivers alert text to named notifiers on a bounded worker pool.

    Every (alert, notifier) pair runs as its own unit. A unit never raises;
    its outcome is logged and counted, and the caller does not wait on it.
    """

    def __init__(self, notifiers: Mapping[str, Notifier], max_workers: int = 8):
        self.notifiers = dict(notifiers)
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="chatbell-notify"
        )

    def dispatch(self, message: str, names: Iterable[str]) -> list[Future]:
        """Hand the message to each named notifier.

        Returns:
            One future per name, resolving to the delivery success flag
        """
        return [self._executor.submit(self.deliver, name, message) for name in names]

    def deliver(self, name: str, message: str) -> bool:
        """Invoke one notifier, isolating any failure."""
        notifier = self.notifiers.get(name)
        if notifier is None:
            log.error("Unknown notifier", notifier=name)
            NOTIFICATIONS.labels(notifier=name, status="unknown").inc()
            return False

        start = time.monotonic()
        try:
            ok = notifier.notify(message)
        except Exception as e:
            log.error("Notify error", notifier=name, error=str(e), error_type=type(e).__name__)
            NOTIFICATIONS.labels(notifier=name, status="error").inc()
            return False
        finally:
            NOTIFY_DURATION.labels(notifier=name).observe(time.monotonic() - start)

        log.info("Notified", notifier=name, success=ok)
        NOTIFICATIONS.labels(notifier=name, status="success" if ok else "failure").inc()
        return ok

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
