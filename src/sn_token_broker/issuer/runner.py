"""Command runner used to invoke the external issuer."""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    args: tuple[str, ...]
    returncode: int
    stdout: bytes
    stderr: bytes

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def combined_output(self) -> str:
        """stdout and stderr decoded for diagnostics."""
        parts = [
            chunk.decode("utf-8", errors="replace")
            for chunk in (self.stdout, self.stderr)
            if chunk
        ]
        return "\n".join(parts)


class CommandRunner(Protocol):
    def run(self, args: Sequence[str]) -> CommandResult:
        """Run *args* to completion.

        Raises:
            OSError: The executable could not be started.
        """
        ...


class SubprocessRunner:
    """Runs commands with ``subprocess.run``; blocks until the child exits."""

    def run(self, args: Sequence[str]) -> CommandResult:
        argv = tuple(args)
        # Only the subcommand is logged; arguments may hold organization names
        # and temp file paths.
        logger.debug("Running %s %s", argv[0], argv[1] if len(argv) > 1 else "")
        completed = subprocess.run(argv, check=False, capture_output=True)
        return CommandResult(
            args=argv,
            returncode=completed.returncode,
            stdout=completed.stdout or b"",
            stderr=completed.stderr or b"",
        )
