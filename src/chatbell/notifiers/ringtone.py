"""Notifier that plays an audio file through an external player."""

import structlog

from ..config import RingtoneConfig
from .base import Notifier, NotifierError
from .invoke import run_command

log = structlog.get_logger()


class RingtoneNotifier(Notifier):
    """Plays ``audio`` by running the player command until playback ends.

    The player argv may reference ``{audio}``, ``{device}`` and ``{message}``.
    """

    name = "ringtone"

    def __init__(
        self,
        audio: str,
        player: list[str],
        device: str = "",
        timeout: float = 60.0,
    ):
        self.audio = audio
        self.player = player
        self.device = device
        self.timeout = timeout

    @classmethod
    def from_config(cls, config: RingtoneConfig) -> "RingtoneNotifier":
        return cls(
            audio=config.audio,
            player=list(config.player),
            device=config.device,
            timeout=config.timeout,
        )

    def build_argv(self, message: str) -> list[str]:
        return [
            arg.replace("{audio}", self.audio)
            .replace("{device}", self.device)
            .replace("{message}", message)
            for arg in self.player
        ]

    def notify(self, message: str) -> bool:
        if not self.audio:
            raise NotifierError("No audio file configured for ringtone")

        log.info("Ringtone notify", message=message, audio=self.audio)
        result = run_command(self.build_argv(message), timeout=self.timeout)
        if result.returncode != 0:
            log.warning(
                "Player exited with error",
                returncode=result.returncode,
                stderr=result.stderr.decode(errors="replace").strip()[:300],
            )
        return result.returncode == 0
