"""Chat log records."""

from .record import DELIMITER, Channel, Record, dedupe, parse_line

__all__ = [
    "DELIMITER",
    "Channel",
    "Record",
    "dedupe",
    "parse_line",
]
