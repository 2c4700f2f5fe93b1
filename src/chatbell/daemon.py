"""Daemon that tails the game chat log and dispatches trigger alerts."""

import threading
from collections.abc import Iterable, Mapping
from concurrent.futures import Future
from pathlib import Path

import structlog

from . import __version__
from .chat.record import Channel, dedupe
from .config import Config
from .dispatcher import Dispatcher
from .metrics import RECORDS, SERVICE_INFO, TRIGGERS_FIRED
from .notifiers import Notifier, build_notifiers
from .tailer import ChatLogTailer, ChatLogWatcher, WatchSetupError, resolve_log_dir
from .trigger import build_triggers

log = structlog.get_logger()


class ChatbellDaemon:
    """Main loop: wait for log changes, parse new lines, fire triggers.

    Everything except notifier delivery runs on the calling thread, so the
    tail cursor has a single owner.
    """

    def __init__(self, config: Config, notifiers: Mapping[str, Notifier] | None = None):
        """Initialize the daemon.

        Args:
            config: Validated configuration
            notifiers: Backends by name (default: built from config)
        """
        self.config = config
        self.triggers = build_triggers(config.trigger)
        self.notifiers = dict(notifiers) if notifiers is not None else build_notifiers(
            config.notifier
        )
        self.dispatcher = Dispatcher(self.notifiers, max_workers=config.dispatch.max_workers)

        self.tailer: ChatLogTailer | None = None
        self.watcher: ChatLogWatcher | None = None
        self._stop_event = threading.Event()

    def process_lines(self, lines: Iterable[str]) -> list[Future]:
        """Run one batch of raw lines through dedupe, triggers and dispatch.

        Only ordinary chat is evaluated; world, region and group
        broadcasts never alert.

        Returns:
            Futures for every notifier invocation started
        """
        futures: list[Future] = []
        for record in dedupe(lines):
            RECORDS.labels(channel=record.channel.value).inc()
            if record.channel is not Channel.COMMON:
                continue

            for trigger in self.triggers:
                message = trigger.evaluate(record)
                if message is None:
                    continue

                log.info("Matched", message=message, notifiers=list(trigger.notifiers))
                TRIGGERS_FIRED.inc()
                futures.extend(self.dispatcher.dispatch(message, trigger.notifiers))
        return futures

    def setup(self) -> None:
        """Locate the log dir, position the cursor and start watching.

        Raises:
            WatchSetupError: If the log directory cannot be used
        """
        watch = self.config.watch
        log_dir = resolve_log_dir(Path(self.config.game.path), watch.log_subdir)

        self.tailer = ChatLogTailer(
            log_dir, file_pattern=watch.file_pattern, encoding=watch.encoding
        )
        try:
            self.tailer.start()
        except OSError as e:
            raise WatchSetupError(f"Cannot read log dir {log_dir}: {e}") from e

        self.watcher = ChatLogWatcher(
            log_dir, poll_interval=watch.poll_interval, use_polling=watch.use_polling
        )
        self.watcher.start()

    def run_once(self, timeout: float | None = None) -> list[Future]:
        """Wait for one change (or the timeout) and process what it appended."""
        assert self.tailer is not None and self.watcher is not None
        event_path = self.watcher.next_event(timeout=timeout)
        lines = self.tailer.poll(event_path)
        if not lines:
            return []
        return self.process_lines(lines)

    def run(self) -> None:
        """Start the daemon and block until stopped."""
        SERVICE_INFO.info({"version": __version__})
        log.info(
            "Starting chatbell",
            game_root=self.config.game.path,
            triggers=len(self.triggers),
            notifiers=sorted(self.notifiers),
        )
        self.setup()

        try:
            while not self._stop_event.is_set():
                self.run_once(timeout=self.config.watch.poll_interval)
        except KeyboardInterrupt:
            log.info("Received shutdown signal")
        finally:
            self.close()

    def stop(self) -> None:
        """Ask the loop to exit after its current wait."""
        log.info("Stopping chatbell")
        self._stop_event.set()

    def close(self) -> None:
        if self.watcher is not None:
            self.watcher.stop()
        self.dispatcher.shutdown(wait=True)


def run_daemon(config: Config) -> None:
    """Run the daemon until interrupted."""
    daemon = ChatbellDaemon(config)
    daemon.run()
