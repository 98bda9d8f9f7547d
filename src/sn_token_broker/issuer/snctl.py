"""Client for the ``snctl`` command line token issuer."""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from pathlib import Path

from sn_token_broker.config import IssuerSettings
from sn_token_broker.issuer.errors import (
    IssuerEnvironmentError,
    IssuerError,
    ServiceAccountActivationError,
    TokenIssuanceError,
)
from sn_token_broker.issuer.runner import CommandResult, CommandRunner, SubprocessRunner

logger = logging.getLogger(__name__)

DEFAULT_EXECUTABLE = "snctl"
CONFIG_DIR_NAME = ".snctl"

# Shared by every issuer in the process; snctl keeps one config dir per user.
_config_init_lock = threading.Lock()


class SnctlIssuer:
    """Runs the snctl steps needed to turn a service-account key into a token.

    Every step is a single blocking subprocess call with no timeout and no
    retry. Failures raise the ``IssuerError`` subclass for that step.
    """

    def __init__(
        self,
        executable: str = DEFAULT_EXECUTABLE,
        config_dir: str | Path | None = None,
        runner: CommandRunner | None = None,
    ) -> None:
        self._executable = executable
        self._config_dir = Path(config_dir).expanduser() if config_dir else None
        self._runner = runner or SubprocessRunner()

    @classmethod
    def from_settings(
        cls, settings: IssuerSettings, runner: CommandRunner | None = None
    ) -> "SnctlIssuer":
        return cls(
            executable=settings.executable,
            config_dir=settings.config_dir,
            runner=runner,
        )

    @property
    def executable(self) -> str:
        return self._executable

    def config_dir(self) -> Path:
        if self._config_dir is not None:
            return self._config_dir
        try:
            home = Path.home()
        except RuntimeError as exc:
            raise IssuerEnvironmentError(f"No user HOME directory: {exc}") from exc
        return home / CONFIG_DIR_NAME

    def ensure_config(self) -> None:
        """Run ``snctl config init`` unless the config directory exists.

        Serialised within this process only; two processes initialising for
        the first time at once can still race.
        """
        path = self.config_dir()
        with _config_init_lock:
            if path.is_dir():
                return
            logger.info("Initializing snctl config at %s", path)
            self._run_step(["config", "init"], IssuerEnvironmentError, "config init")

    def activate_service_account(self, key_file: Path) -> None:
        self._run_step(
            ["auth", "activate-service-account", "--key-file", str(key_file)],
            ServiceAccountActivationError,
            "auth activate-service-account",
        )

    def get_token(self, organization: str, cluster: str, key_file: Path) -> str:
        result = self._run_step(
            ["-n", organization, "auth", "get-token", cluster, "-f", str(key_file)],
            TokenIssuanceError,
            "auth get-token",
        )
        token = result.stdout.decode("utf-8", errors="replace").rstrip("\r\n")
        if not token:
            raise TokenIssuanceError(
                "`snctl auth get-token` returned an empty token", result.combined_output
            )
        return token

    def _run_step(
        self,
        args: Sequence[str],
        error_cls: type[IssuerError],
        label: str,
    ) -> CommandResult:
        argv = [self._executable, *args]
        try:
            result = self._runner.run(argv)
        except OSError as exc:
            logger.error("Failed to start `snctl %s`: %s", label, exc)
            raise error_cls(f"Failed to run `snctl {label}`: {exc}") from exc
        if not result.ok:
            logger.error(
                "Failed to run `snctl %s` (exit %d): %s",
                label,
                result.returncode,
                result.stderr.decode("utf-8", errors="replace").strip(),
            )
            raise error_cls(
                f"`snctl {label}` failed (exit {result.returncode})",
                result.combined_output,
            )
        return result
