"""Incremental reading of the game client's rotating chat log."""

import os
import queue
import re
from pathlib import Path

import structlog
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver
from watchdog.observers.polling import PollingObserver

from .metrics import LINES_READ, TAIL_ERRORS

log = structlog.get_logger()

DEFAULT_FILE_PATTERN = r"^chat_\d{6}\.txt$"
DEFAULT_ENCODING = "gb18030"


class WatchSetupError(Exception):
    """Raised when the log directory cannot be watched."""

    pass


def resolve_log_dir(game_path: Path, log_subdir: str = "Log") -> Path:
    """Return the chat log directory, creating it under an existing game root.

    Raises:
        WatchSetupError: If the game root does not exist or the directory
            cannot be created
    """
    if not game_path.is_dir():
        raise WatchSetupError(f"Game root not found: {game_path}")

    log_dir = game_path / log_subdir
    if not log_dir.exists():
        log.info("Log dir does not exist, creating", path=str(log_dir))
        try:
            log_dir.mkdir(parents=True)
        except OSError as e:
            raise WatchSetupError(f"Cannot create log dir {log_dir}: {e}") from e
    return log_dir


class ChatLogTailer:
    """Byte-offset cursor into the newest chat log in a directory.

    Chat logs are named with an increasing numeric suffix, so the greatest
    matching filename is the current session's log. Only whole lines are
    consumed; a trailing partial line waits for its terminator. The encoding
    must keep ``\\n`` as a single byte, as GB18030 does.
    """

    def __init__(
        self,
        log_dir: Path,
        file_pattern: str = DEFAULT_FILE_PATTERN,
        encoding: str = DEFAULT_ENCODING,
    ):
        self.log_dir = log_dir
        self.file_pattern = re.compile(file_pattern)
        self.encoding = encoding
        self.active: Path | None = None
        self.offset = 0

    def matches(self, path: Path) -> bool:
        return self.file_pattern.match(path.name) is not None

    def find_latest(self) -> Path | None:
        """Return the newest matching chat log, or None."""
        candidates = [p for p in self.log_dir.iterdir() if p.is_file() and self.matches(p)]
        return max(candidates, key=lambda p: p.name, default=None)

    def start(self) -> Path | None:
        """Select the newest log and skip its existing content."""
        self.active = self.find_latest()
        self.offset = self.active.stat().st_size if self.active else 0
        if self.active:
            log.info("Chat file found", path=str(self.active), offset=self.offset)
        else:
            log.info("No chat file yet", log_dir=str(self.log_dir))
        return self.active

    def _switch(self, path: Path | None) -> None:
        log.info(
            "Chat file changed",
            old=str(self.active) if self.active else None,
            new=str(path) if path else None,
        )
        self.active = path
        self.offset = 0

    def poll(self, event_path: Path | None = None) -> list[str]:
        """Return lines appended since the last read.

        Args:
            event_path: Path reported by a filesystem event, or None when
                polling without an event

        Returns:
            Newly completed lines, possibly empty
        """
        if self.active is None or event_path != self.active:
            try:
                latest = self.find_latest()
            except OSError as e:
                log.error("Failed to scan log dir", log_dir=str(self.log_dir), error=str(e))
                TAIL_ERRORS.inc()
                return []
            if latest != self.active:
                self._switch(latest)

        if self.active is None:
            log.debug("Chat file not found")
            return []

        return self.read_new_lines()

    def read_new_lines(self) -> list[str]:
        """Read whole lines past the offset and advance it.

        The offset is left untouched when the read fails.
        """
        assert self.active is not None
        try:
            size = self.active.stat().st_size
            if size < self.offset:
                log.warning(
                    "Chat file truncated, rereading", path=str(self.active), size=size
                )
                self.offset = 0
            if size == self.offset:
                return []
            with open(self.active, "rb") as f:
                f.seek(self.offset)
                data = f.read()
        except OSError as e:
            log.error("Failed to read chat file", path=str(self.active), error=str(e))
            TAIL_ERRORS.inc()
            return []

        end = data.rfind(b"\n")
        if end < 0:
            return []

        chunk = data[: end + 1]
        log.debug("Read chat file", start=self.offset, end=self.offset + len(chunk))
        self.offset += len(chunk)

        text = chunk.decode(self.encoding, errors="replace")
        lines = [line.rstrip("\r") for line in text.split("\n")[:-1]]
        LINES_READ.inc(len(lines))
        return lines


class _ChatLogEventHandler(FileSystemEventHandler):
    """Forwards file events to a queue consumed by the tail loop."""

    def __init__(self, events: "queue.Queue[Path]"):
        self.events = events

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self.events.put(Path(os.fsdecode(event.src_path)))

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self.events.put(Path(os.fsdecode(event.src_path)))

    def on_moved(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self.events.put(Path(os.fsdecode(event.dest_path)))


class ChatLogWatcher:
    """Non-recursive watch of the log directory."""

    def __init__(self, log_dir: Path, poll_interval: float = 1.0, use_polling: bool = False):
        self.log_dir = log_dir
        self.poll_interval = poll_interval
        self.use_polling = use_polling
        self.events: queue.Queue[Path] = queue.Queue()
        self._observer: BaseObserver | None = None

    def start(self) -> None:
        """Begin watching.

        Raises:
            WatchSetupError: If the directory is missing or cannot be watched
        """
        if not self.log_dir.is_dir():
            raise WatchSetupError(f"Log dir not found: {self.log_dir}")

        observer = (
            PollingObserver(timeout=self.poll_interval) if self.use_polling else Observer()
        )
        observer.schedule(_ChatLogEventHandler(self.events), str(self.log_dir), recursive=False)
        try:
            observer.start()
        except OSError as e:
            raise WatchSetupError(f"Cannot watch {self.log_dir}: {e}") from e

        self._observer = observer
        log.info("Watching log dir", log_dir=str(self.log_dir), polling=self.use_polling)

    def next_event(self, timeout: float | None = None) -> Path | None:
        """Block until a file event arrives; None on timeout."""
        try:
            return self.events.get(timeout=timeout)
        except queue.Empty:
            return None

    def stop(self) -> None:
        if self._observer is not None:
            self._observer.stop()
            self._observer.join()
            self._observer = None
