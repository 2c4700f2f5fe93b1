"""Tests for notifier backends."""

import subprocess
import sys

import httpx
import pytest

from chatbell.config import ConfigError, NotifierConfig
from chatbell.notifiers import (
    ConsoleNotifier,
    DingtalkNotifier,
    InvokeNotifier,
    NotifierError,
    RingtoneNotifier,
    SimpleNotifier,
    build_notifiers,
)

WEBHOOK = "https://oapi.dingtalk.com/robot/send?access_token=test"


def fake_post(status: int = 200, body: object = None, calls: list | None = None):
    def _post(url, json=None, timeout=None):
        if calls is not None:
            calls.append({"url": url, "json": json, "timeout": timeout})
        return httpx.Response(status, json={"errcode": 0} if body is None else body, request=httpx.Request("POST", url))

    return _post


class TestBuildNotifiers:
    """Tests for build_notifiers."""

    def test_simple_always_present(self) -> None:
        """The simple backend exists with no config."""
        notifiers = build_notifiers(NotifierConfig())
        assert set(notifiers) == {"simple"}
        assert isinstance(notifiers["simple"], SimpleNotifier)

    def test_configured_backends(self) -> None:
        """Every configured section becomes a backend."""
        config = NotifierConfig.model_validate(
            {
                "console": {"color": "red"},
                "ringtone": {"audio": "a.mp3"},
                "dingtalk": {"webhook": WEBHOOK},
                "invoke": {"path": "echo"},
            }
        )
        notifiers = build_notifiers(config)
        assert set(notifiers) == {"simple", "console", "ringtone", "dingtalk", "invoke"}

    def test_keyed_by_name(self) -> None:
        """Each backend is registered under its own name."""
        config = NotifierConfig.model_validate(
            {"console": {}, "dingtalk": {"webhook": WEBHOOK}, "invoke": {"path": "echo"}}
        )
        for key, notifier in build_notifiers(config).items():
            assert notifier.name == key


class TestConsoleNotifier:
    """Tests for ConsoleNotifier."""

    def test_echo(self, capsys: pytest.CaptureFixture) -> None:
        """Messages are printed through the format string."""
        notifier = ConsoleNotifier(format=">> {message}")
        assert notifier.notify("开门了") is True
        assert capsys.readouterr().out == ">> 开门了\n"

    def test_unknown_color(self) -> None:
        """A color click cannot render is a ConfigError."""
        with pytest.raises(ConfigError):
            ConsoleNotifier(color="not-a-color")

    def test_by_log(self) -> None:
        """by_log sends the line to the logger instead of stdout."""
        notifier = ConsoleNotifier(format="{message}", by_log=True)
        assert notifier.notify("hi") is True
        assert notifier.render("hi") == "hi"


class TestDingtalkNotifier:
    """Tests for DingtalkNotifier."""

    def test_payload(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """The webhook receives a text message built from the template."""
        calls: list = []
        monkeypatch.setattr(httpx, "post", fake_post(calls=calls))

        notifier = DingtalkNotifier(WEBHOOK, template="Notice: {message}", timeout=3)
        assert notifier.notify("通道要关了") is True

        assert calls == [
            {
                "url": WEBHOOK,
                "json": {"msgtype": "text", "text": {"content": "Notice: 通道要关了"}},
                "timeout": 3,
            }
        ]

    def test_http_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """A non-2xx status is a failed send."""
        monkeypatch.setattr(httpx, "post", fake_post(status=500))
        assert DingtalkNotifier(WEBHOOK).notify("x") is False

    def test_rejected_in_body(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """A non-zero errcode in the body is a failed send."""
        monkeypatch.setattr(httpx, "post", fake_post(body={"errcode": 310000, "errmsg": "bad"}))
        assert DingtalkNotifier(WEBHOOK).notify("x") is False

    def test_non_object_body(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """A 2xx reply whose JSON is not an object is a successful send."""
        monkeypatch.setattr(httpx, "post", fake_post(body=[1, 2]))
        assert DingtalkNotifier(WEBHOOK).notify("x") is True

    def test_non_json_body(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """A 2xx reply that is not JSON is a successful send."""

        def _post(url, json=None, timeout=None):
            return httpx.Response(200, text="ok", request=httpx.Request("POST", url))

        monkeypatch.setattr(httpx, "post", _post)
        assert DingtalkNotifier(WEBHOOK).notify("x") is True

    def test_network_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Transport errors raise NotifierError."""
        def _post(url, json=None, timeout=None):
            raise httpx.ConnectError("connection refused")

        monkeypatch.setattr(httpx, "post", _post)
        with pytest.raises(NotifierError):
            DingtalkNotifier(WEBHOOK).notify("x")


class TestInvokeNotifier:
    """Tests for InvokeNotifier."""

    def test_message_substituted(self) -> None:
        """{message} in args is replaced and the exit code decides success."""
        notifier = InvokeNotifier(
            sys.executable,
            args=["-c", "import sys; sys.exit(0 if sys.argv[1] == 'go 你好' else 3)", "go {message}"],
        )
        assert notifier.build_argv("你好")[-1] == "go 你好"
        assert notifier.notify("你好") is True
        assert notifier.notify("bye") is False

    def test_workdir(self, tmp_path) -> None:
        """The program runs in the configured working directory."""
        notifier = InvokeNotifier(
            sys.executable,
            args=["-c", "import pathlib; pathlib.Path('touched').write_text('x')"],
            workdir=str(tmp_path),
        )
        assert notifier.notify("m") is True
        assert (tmp_path / "touched").exists()

    def test_missing_program(self) -> None:
        """A program that does not exist raises NotifierError."""
        with pytest.raises(NotifierError, match="not found"):
            InvokeNotifier("chatbell-no-such-program").notify("m")

    def test_timeout(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """A program that overruns its timeout raises NotifierError."""
        def _run(*args, **kwargs):
            raise subprocess.TimeoutExpired(cmd="x", timeout=1)

        monkeypatch.setattr(subprocess, "run", _run)
        with pytest.raises(NotifierError, match="timed out"):
            InvokeNotifier("x", timeout=1).notify("m")


class TestRingtoneNotifier:
    """Tests for RingtoneNotifier."""

    def test_no_audio(self) -> None:
        """Playing with no audio file configured raises NotifierError."""
        with pytest.raises(NotifierError):
            RingtoneNotifier(audio="", player=["ffplay", "{audio}"]).notify("m")

    def test_player_argv(self) -> None:
        """Audio and device are substituted into the player command."""
        notifier = RingtoneNotifier(
            audio="bell.mp3", player=["play", "{audio}", "--dev={device}"], device="Speakers"
        )
        assert notifier.build_argv("m") == ["play", "bell.mp3", "--dev=Speakers"]

    def test_runs_player(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """The player command is run and its exit code decides success."""
        seen = {}

        def _run(argv, **kwargs):
            seen["argv"] = argv
            return subprocess.CompletedProcess(argv, 0, b"", b"")

        monkeypatch.setattr(subprocess, "run", _run)
        assert RingtoneNotifier(audio="bell.mp3", player=["play", "{audio}"]).notify("m") is True
        assert seen["argv"] == ["play", "bell.mp3"]
