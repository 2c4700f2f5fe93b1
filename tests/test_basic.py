"""Basic tests for chatbell."""

import pytest

from chatbell import __version__
from chatbell.config import Config, ConfigError


def base_config(**overrides) -> dict:
    data = {
        "game": {"path": "/games/client"},
        "notifier": {"console": {"by_log": True}},
        "trigger": [
            {"regex": r"离开了队伍", "format": "{time} {0}", "notifier": ["simple", "console"]},
        ],
    }
    data.update(overrides)
    return data


def test_version() -> None:
    """Test that version is defined."""
    assert __version__ == "0.1.0"


class TestConfig:
    """Tests for configuration loading and validation."""

    def test_defaults(self) -> None:
        """Omitted sections fall back to the documented defaults."""
        config = Config.from_dict(base_config())
        assert config.watch.encoding == "gb18030"
        assert config.watch.poll_interval == 1.0
        assert config.dispatch.max_workers == 8
        assert config.trigger[0].channel == "any"
        assert str(config.log_dir).replace("\\", "/") == "/games/client/Log"

    def test_config_is_frozen(self) -> None:
        """Loaded config cannot be mutated."""
        config = Config.from_dict(base_config())
        with pytest.raises(Exception):
            config.game = None  # type: ignore[misc]

    def test_invalid_regex(self) -> None:
        """A trigger regex that does not compile fails the load."""
        data = base_config(trigger=[{"regex": "(unclosed", "format": "x", "notifier": ["simple"]}])
        with pytest.raises(ConfigError):
            Config.from_dict(data)

    def test_unknown_notifier(self) -> None:
        """A trigger naming a backend kind that does not exist fails the load."""
        data = base_config(trigger=[{"regex": "x", "format": "x", "notifier": ["pager"]}])
        with pytest.raises(ConfigError, match="unknown notifier 'pager'"):
            Config.from_dict(data)

    def test_unconfigured_notifier(self) -> None:
        """A known backend without its config block cannot be referenced."""
        data = base_config(trigger=[{"regex": "x", "format": "x", "notifier": ["dingtalk"]}])
        with pytest.raises(ConfigError, match="dingtalk"):
            Config.from_dict(data)

    def test_unknown_encoding(self) -> None:
        """An encoding Python does not know fails the load."""
        with pytest.raises(ConfigError):
            Config.from_dict(base_config(watch={"encoding": "no-such-codec"}))

    def test_unknown_console_color(self) -> None:
        """A console color click cannot render fails the load."""
        with pytest.raises(ConfigError, match="unknown color"):
            Config.from_dict(base_config(notifier={"console": {"color": "not-a-color"}}))

    def test_known_console_color(self) -> None:
        """Standard terminal colors are accepted."""
        config = Config.from_dict(base_config(notifier={"console": {"color": "yellow"}}))
        assert config.notifier.console.color == "yellow"

    def test_unknown_key_rejected(self) -> None:
        """Typos in section names are reported instead of ignored."""
        with pytest.raises(ConfigError):
            Config.from_dict(base_config(unexpected=1))

    def test_env_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Environment variables replace the game path and webhook URL."""
        monkeypatch.setenv("CHATBELL_GAME_PATH", "/other/game")
        monkeypatch.setenv("DINGTALK_WEBHOOK_URL", "https://dingtalk.test/hook")
        data = base_config(
            notifier={"dingtalk": {"webhook": "https://from-file", "template": "N: {message}"}}
        )
        data["trigger"][0]["notifier"] = ["dingtalk"]

        config = Config.from_dict(data)

        assert config.game.path == "/other/game"
        assert config.notifier.dingtalk.webhook == "https://dingtalk.test/hook"
        assert config.notifier.dingtalk.template == "N: {message}"

    def test_from_file(self, tmp_path) -> None:
        """YAML files load with regex escapes intact."""
        path = tmp_path / "config.yaml"
        path.write_text(
            "game:\n"
            "  path: /games/client\n"
            "trigger:\n"
            "  - regex: '您账号剩余时间为(\\w+)'\n"
            "    format: '{1}'\n"
            "    channel: common\n"
            "    notifier: [simple]\n",
            encoding="utf-8",
        )
        config = Config.from_file(path)
        assert config.trigger[0].regex == r"您账号剩余时间为(\w+)"
        assert config.trigger[0].notifier == ["simple"]

    def test_from_file_missing(self, tmp_path) -> None:
        """A missing config file is a ConfigError."""
        with pytest.raises(ConfigError, match="not found"):
            Config.from_file(tmp_path / "missing.yaml")

    def test_from_file_not_mapping(self, tmp_path) -> None:
        """A YAML document that is not a mapping is a ConfigError."""
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            Config.from_file(path)
