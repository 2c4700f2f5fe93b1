"""Notifier that echoes alerts to the terminal."""

import click
import structlog

from ..config import ConfigError, ConsoleConfig
from .base import Notifier

log = structlog.get_logger()


class ConsoleNotifier(Notifier):
    """Prints formatted alerts, optionally colored, or routes them to the log."""

    name = "console"

    def __init__(self, color: str = "", format: str = "{message}", by_log: bool = False):
        if color:
            try:
                click.style("", fg=color)
            except (TypeError, ValueError) as e:
                raise ConfigError(f"Unknown console color: {color}") from e
        self.color = color
        self.format = format
        self.by_log = by_log

    @classmethod
    def from_config(cls, config: ConsoleConfig) -> "ConsoleNotifier":
        return cls(color=config.color, format=config.format, by_log=config.by_log)

    def render(self, message: str) -> str:
        return self.format.replace("{message}", message)

    def notify(self, message: str) -> bool:
        text = self.render(message)
        if self.by_log:
            log.info("Console notify", message=text)
        else:
            click.echo(click.style(text, fg=self.color) if self.color else text)
        return True
