"""Shared fixtures."""

from concurrent.futures import wait

import pytest

from chatbell.notifiers import Notifier, NotifierError


class RecordingNotifier(Notifier):
    """Notifier that remembers every message it was given."""

    def __init__(self, name: str, result: bool = True):
        self.name = name
        self.result = result
        self.messages: list[str] = []

    def notify(self, message: str) -> bool:
        self.messages.append(message)
        return self.result


class FailingNotifier(Notifier):
    name = "failing"

    def notify(self, message: str) -> bool:
        raise NotifierError("backend down")


def wait_all(futures) -> list[bool]:
    done, not_done = wait(futures, timeout=5)
    assert not not_done
    return [f.result() for f in futures]


@pytest.fixture
def game_root(tmp_path):
    log_dir = tmp_path / "Log"
    log_dir.mkdir()
    return tmp_path


def gb(text: str) -> bytes:
    return text.encode("gb18030")
