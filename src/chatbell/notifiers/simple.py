"""Notifier that only writes the alert to the log."""

import structlog

from .base import Notifier

log = structlog.get_logger()


class SimpleNotifier(Notifier):
    name = "simple"

    def notify(self, message: str) -> bool:
        log.info("Simple notify", message=message)
        return True
