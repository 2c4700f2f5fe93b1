"""Configuration loading for chatbell."""

import codecs
import os
import re
from pathlib import Path

import click
import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

DEFAULT_CONFIG_PATH = Path("config.yaml")

# Backend kinds a trigger may name
NOTIFIER_KINDS = ("simple", "console", "ringtone", "dingtalk", "invoke")


class ConfigError(Exception):
    """Raised when the configuration cannot be loaded or is invalid."""

    pass


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class GameConfig(_Frozen):
    """Game client location."""

    path: str


class SimpleConfig(_Frozen):
    pass


class ConsoleConfig(_Frozen):
    color: str = ""
    format: str = "{message}"
    by_log: bool = False

    @field_validator("color")
    @classmethod
    def color_known(cls, v: str) -> str:
        if v:
            try:
                click.style("", fg=v)
            except (TypeError, ValueError) as e:
                raise ValueError(f"unknown color: {v}") from e
        return v


class RingtoneConfig(_Frozen):
    """Audio playback through an external player command."""

    audio: str = ""
    device: str = ""
    player: list[str] = Field(
        default_factory=lambda: ["ffplay", "-nodisp", "-autoexit", "-loglevel", "quiet", "{audio}"]
    )
    timeout: float = Field(60.0, gt=0)

    @field_validator("player")
    @classmethod
    def player_not_empty(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("player command must not be empty")
        return v


class DingtalkConfig(_Frozen):
    """DingTalk custom robot webhook."""

    webhook: str
    template: str = "{message}"
    timeout: float = Field(10.0, gt=0)


class InvokeConfig(_Frozen):
    """External process run per alert."""

    path: str
    workdir: str = ""
    args: list[str] = Field(default_factory=list)
    timeout: float = Field(30.0, gt=0)


class NotifierConfig(_Frozen):
    """One optional block per backend kind."""

    simple: SimpleConfig = Field(default_factory=SimpleConfig)
    console: ConsoleConfig | None = None
    ringtone: RingtoneConfig | None = None
    dingtalk: DingtalkConfig | None = None
    invoke: InvokeConfig | None = None

    def configured(self) -> set[str]:
        """Names of backends that can be built from this config."""
        return {kind for kind in NOTIFIER_KINDS if getattr(self, kind) is not None}


class TriggerConfig(_Frozen):
    """A trigger rule as written in the config file."""

    regex: str
    format: str
    channel: str = "any"
    notifier: list[str] = Field(default_factory=list)

    @field_validator("regex")
    @classmethod
    def regex_compiles(cls, v: str) -> str:
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"invalid regex: {e}") from e
        return v


class WatchConfig(_Frozen):
    """Chat log discovery and tailing."""

    log_subdir: str = "Log"
    file_pattern: str = r"^chat_\d{6}\.txt$"
    encoding: str = "gb18030"
    poll_interval: float = Field(1.0, gt=0)
    use_polling: bool = False

    @field_validator("file_pattern")
    @classmethod
    def pattern_compiles(cls, v: str) -> str:
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"invalid file pattern: {e}") from e
        return v

    @field_validator("encoding")
    @classmethod
    def encoding_known(cls, v: str) -> str:
        try:
            codecs.lookup(v)
        except LookupError as e:
            raise ValueError(f"unknown encoding: {v}") from e
        return v


class DispatchConfig(_Frozen):
    max_workers: int = Field(8, gt=0)


class Config(_Frozen):
    """Application configuration."""

    game: GameConfig
    notifier: NotifierConfig = Field(default_factory=NotifierConfig)
    trigger: list[TriggerConfig] = Field(default_factory=list)
    watch: WatchConfig = Field(default_factory=WatchConfig)
    dispatch: DispatchConfig = Field(default_factory=DispatchConfig)

    @property
    def log_dir(self) -> Path:
        return Path(self.game.path) / self.watch.log_subdir

    def validate_notifiers(self) -> None:
        """Ensure every trigger names a configured backend."""
        available = self.notifier.configured()
        for index, trigger in enumerate(self.trigger):
            for name in trigger.notifier:
                if name not in NOTIFIER_KINDS:
                    raise ConfigError(f"trigger[{index}]: unknown notifier '{name}'")
                if name not in available:
                    raise ConfigError(
                        f"trigger[{index}]: notifier '{name}' has no [notifier.{name}] block"
                    )

    @classmethod
    def from_dict(cls, data: dict) -> "Config":
        """Validate raw config data, then apply environment overrides."""
        try:
            config = cls.model_validate(data)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

        config = config.with_env_overrides()
        config.validate_notifiers()
        return config

    @classmethod
    def from_file(cls, path: Path) -> "Config":
        """Load configuration from YAML file, with env var overrides."""
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")

        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")

        return cls.from_dict(data)

    def with_env_overrides(self) -> "Config":
        """Return a copy with CHATBELL_GAME_PATH / DINGTALK_WEBHOOK_URL applied."""
        config = self

        game_path = os.environ.get("CHATBELL_GAME_PATH")
        if game_path:
            config = config.model_copy(update={"game": GameConfig(path=game_path)})

        webhook = os.environ.get("DINGTALK_WEBHOOK_URL")
        if webhook and config.notifier.dingtalk is not None:
            dingtalk = config.notifier.dingtalk.model_copy(update={"webhook": webhook})
            notifier = config.notifier.model_copy(update={"dingtalk": dingtalk})
            config = config.model_copy(update={"notifier": notifier})

        return config
