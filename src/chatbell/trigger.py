"""Trigger rules: pattern matching and alert text formatting."""

import re
from collections.abc import Iterable
from dataclasses import dataclass

from .chat.record import Channel, Record
from .config import ConfigError, TriggerConfig

# {0}, {1}, ... bind capture groups; {time} binds the record time
PLACEHOLDER_PATTERN = re.compile(r"\{(0|[1-9]\d*|time)\}")


@dataclass(frozen=True)
class Trigger:
    """Compiled trigger rule."""

    pattern: re.Pattern
    template: str
    channel: Channel | None  # None accepts every channel
    notifiers: tuple[str, ...]

    @classmethod
    def from_config(cls, config: TriggerConfig) -> "Trigger":
        try:
            pattern = re.compile(config.regex)
        except re.error as e:
            raise ConfigError(f"Invalid trigger regex {config.regex!r}: {e}") from e

        return cls(
            pattern=pattern,
            template=config.format,
            channel=parse_channel_filter(config.channel),
            notifiers=tuple(config.notifier),
        )

    def accepts(self, channel: Channel) -> bool:
        return self.channel is None or self.channel == channel

    def match(self, text: str) -> list[str | None] | None:
        """Search text for the pattern.

        Returns:
            Group 0 followed by each capture group (None where an optional
            group did not participate), or None if the pattern is absent
        """
        m = self.pattern.search(text)
        if m is None:
            return None
        return [m.group(0), *m.groups()]

    def format(self, captures: list[str | None], time_str: str) -> str:
        """Substitute captures and time into the template.

        Placeholders without a value are left as literal text.
        """

        def _replace(m: re.Match) -> str:
            key = m.group(1)
            if key == "time":
                return time_str
            index = int(key)
            if index < len(captures) and captures[index] is not None:
                return captures[index]
            return m.group(0)

        return PLACEHOLDER_PATTERN.sub(_replace, self.template)

    def evaluate(self, record: Record) -> str | None:
        """Return the alert text if this rule fires for the record."""
        if not self.accepts(record.channel):
            return None
        captures = self.match(record.message)
        if captures is None:
            return None
        return self.format(captures, record.fmt_time())


def parse_channel_filter(value: str) -> Channel | None:
    """Map a configured channel name to a Channel; anything else means any."""
    try:
        return Channel(value.strip().lower())
    except ValueError:
        return None


def build_triggers(configs: Iterable[TriggerConfig]) -> list[Trigger]:
    """Compile every configured trigger, failing on the first bad one."""
    return [Trigger.from_config(config) for config in configs]
