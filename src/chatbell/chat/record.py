"""Chat record parsing and per-batch deduplication."""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, time
from enum import Enum

# Separates the time field from the message field
DELIMITER = "丂"

TIME_FORMAT = "%H:%M:%S"


class Channel(Enum):
    """Broadcast scope of a chat record."""

    WORLD = "world"
    REGION = "region"
    GROUP = "group"
    COMMON = "common"

    @classmethod
    def from_tag(cls, tag: str) -> "Channel":
        """Classify the text inside a leading ``[...]`` tag.

        Unknown tags are ordinary chat, never an error.
        """
        return _TAG_CHANNELS.get(tag, cls.COMMON)

    @property
    def label(self) -> str:
        return _CHANNEL_LABELS[self]


_TAG_CHANNELS = {
    "世界": Channel.WORLD,
    "地图": Channel.REGION,
    "GP": Channel.GROUP,
}

_CHANNEL_LABELS = {
    Channel.WORLD: "世界",
    Channel.REGION: "地图",
    Channel.GROUP: "队伍",
    Channel.COMMON: "普通",
}


@dataclass(frozen=True)
class Record:
    """One parsed chat line."""

    time: time
    channel: Channel
    message: str

    @property
    def sort_key(self) -> tuple[time, str, str]:
        # Time first; message and channel only break ties deterministically
        return (self.time, self.message, self.channel.value)

    def fmt_time(self) -> str:
        return self.time.strftime(TIME_FORMAT)

    def __str__(self) -> str:
        return f"{self.fmt_time()} [{self.channel.label}] {self.message}"


def parse_line(line: str) -> Record | None:
    """Parse one decoded log line into a Record.

    Args:
        line: A single line of the chat log, without its terminator

    Returns:
        Record, or None if the line is not a chat line
    """
    if not line.strip():
        return None

    time_field, sep, message = line.partition(DELIMITER)
    if not sep:
        return None

    try:
        parsed_time = datetime.strptime(time_field.strip(), TIME_FORMAT).time()
    except ValueError:
        return None

    message = message.strip()
    channel = Channel.COMMON
    if message.startswith("["):
        end = message.find("]")
        if end > 0:
            channel = Channel.from_tag(message[1:end])

    return Record(time=parsed_time, channel=channel, message=message)


def dedupe(lines: Iterable[str]) -> list[Record]:
    """Parse a batch of lines into unique records ordered by time.

    The client re-emits identical lines across flushes, so fully equal
    records collapse into one. Lines that do not parse are dropped.
    """
    records = {record for record in map(parse_line, lines) if record is not None}
    return sorted(records, key=lambda r: r.sort_key)
