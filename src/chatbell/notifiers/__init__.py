"""Notifier backends.

Each configured backend is built once at startup; triggers refer to them by name.
"""

from ..config import NotifierConfig
from .base import Notifier, NotifierError
from .console import ConsoleNotifier
from .dingtalk import DingtalkNotifier
from .invoke import InvokeNotifier
from .ringtone import RingtoneNotifier
from .simple import SimpleNotifier


def build_notifiers(config: NotifierConfig) -> dict[str, Notifier]:
    """Build every configured backend, keyed by its name."""
    built: list[Notifier] = [SimpleNotifier()]
    if config.console is not None:
        built.append(ConsoleNotifier.from_config(config.console))
    if config.ringtone is not None:
        built.append(RingtoneNotifier.from_config(config.ringtone))
    if config.dingtalk is not None:
        built.append(DingtalkNotifier.from_config(config.dingtalk))
    if config.invoke is not None:
        built.append(InvokeNotifier.from_config(config.invoke))
    return {notifier.name: notifier for notifier in built}


__all__ = [
    "build_notifiers",
    "Notifier",
    "NotifierError",
    "SimpleNotifier",
    "ConsoleNotifier",
    "RingtoneNotifier",
    "DingtalkNotifier",
    "InvokeNotifier",
]
