"""Notifier that runs an external program per alert."""

import os
import subprocess
from pathlib import Path

import structlog

from ..config import InvokeConfig
from .base import Notifier, NotifierError

log = structlog.get_logger()


def run_command(
    argv: list[str], cwd: Path | None = None, timeout: float = 30.0
) -> subprocess.CompletedProcess:
    """Run a command to completion, bounded by timeout.

    Raises:
        NotifierError: If the program cannot be started or times out
    """
    try:
        return subprocess.run(
            argv,
            cwd=cwd,
            capture_output=True,
            timeout=timeout,
            check=False,
        )
    except FileNotFoundError as e:
        raise NotifierError(f"Program not found: {argv[0]}") from e
    except subprocess.TimeoutExpired as e:
        raise NotifierError(f"{argv[0]} timed out after {timeout}s") from e
    except OSError as e:
        raise NotifierError(f"Failed to run {argv[0]}: {e}") from e


class InvokeNotifier(Notifier):
    """Runs ``path`` with ``args``, substituting ``{message}`` in each argument."""

    name = "invoke"

    def __init__(
        self,
        path: str,
        args: list[str] | None = None,
        workdir: str = "",
        timeout: float = 30.0,
    ):
        self.path = path
        self.args = args or []
        self.workdir = workdir
        self.timeout = timeout

    @classmethod
    def from_config(cls, config: InvokeConfig) -> "InvokeNotifier":
        return cls(
            path=config.path,
            args=list(config.args),
            workdir=config.workdir,
            timeout=config.timeout,
        )

    def build_argv(self, message: str) -> list[str]:
        return [self.path, *(arg.replace("{message}", message) for arg in self.args)]

    def notify(self, message: str) -> bool:
        cwd = Path(self.workdir) if self.workdir else Path(os.getcwd())
        result = run_command(self.build_argv(message), cwd=cwd, timeout=self.timeout)
        log.info(
            "Invoke result",
            program=self.path,
            returncode=result.returncode,
            stdout=result.stdout.decode(errors="replace").strip()[:500],
            stderr=result.stderr.decode(errors="replace").strip()[:500],
        )
        return result.returncode == 0
