from __future__ import annotations

import os
from collections.abc import Sequence
from pathlib import Path

import pytest

from sn_token_broker.backend.handler import SecretPathHandler
from sn_token_broker.issuer.orchestrator import TokenOrchestrator
from sn_token_broker.issuer.runner import CommandResult
from sn_token_broker.issuer.snctl import SnctlIssuer
from sn_token_broker.storage.memory import InMemoryStorage


def pytest_sessionstart(session: pytest.Session) -> None:
    # Keep unit tests away from a real snctl binary and the user's home dir.
    os.environ.setdefault("SNCTL_PATH", "snctl-not-installed")
    os.environ.setdefault("STORAGE_BACKEND", "memory")


class FakeRunner:
    """Records snctl invocations and answers them without a subprocess."""

    def __init__(self, tokens: Sequence[str] = ("token-1", "token-2", "token-3")) -> None:
        self.calls: list[tuple[str, ...]] = []
        self.key_files_seen: list[Path] = []
        self._tokens = list(tokens)
        self.fail_on: dict[str, int] = {}
        self.raise_on: dict[str, OSError] = {}

    def run(self, args: Sequence[str]) -> CommandResult:
        argv = tuple(args)
        self.calls.append(argv)
        step = _step_name(argv)
        if "--key-file" in argv:
            self.key_files_seen.append(Path(argv[argv.index("--key-file") + 1]))
        if step in self.raise_on:
            raise self.raise_on[step]
        if step in self.fail_on:
            return CommandResult(argv, self.fail_on[step], b"", b"error: " + step.encode())
        if step == "get-token":
            return CommandResult(argv, 0, self._tokens.pop(0).encode() + b"\n", b"")
        return CommandResult(argv, 0, b"", b"")

    def steps(self) -> list[str]:
        return [_step_name(argv) for argv in self.calls]

    def count(self, step: str) -> int:
        return self.steps().count(step)


def _step_name(argv: tuple[str, ...]) -> str:
    if "get-token" in argv:
        return "get-token"
    if "activate-service-account" in argv:
        return "activate"
    if argv[1:3] == ("config", "init"):
        return "config-init"
    return "unknown"


class FakeClock:
    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, millis: int) -> None:
        self.now += millis


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def snctl_config_dir(tmp_path: Path) -> Path:
    path = tmp_path / "snctl-config"
    path.mkdir()
    return path


@pytest.fixture
def key_dir(tmp_path: Path) -> Path:
    path = tmp_path / "keys"
    path.mkdir()
    return path


@pytest.fixture
def issuer(runner: FakeRunner, snctl_config_dir: Path) -> SnctlIssuer:
    return SnctlIssuer(executable="snctl", config_dir=snctl_config_dir, runner=runner)


@pytest.fixture
def orchestrator(issuer: SnctlIssuer, key_dir: Path) -> TokenOrchestrator:
    return TokenOrchestrator(issuer, key_dir=str(key_dir))


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def handler(
    storage: InMemoryStorage, orchestrator: TokenOrchestrator, clock: FakeClock
) -> SecretPathHandler:
    return SecretPathHandler(storage, orchestrator, clock=clock, mount_point="streamnative/")
