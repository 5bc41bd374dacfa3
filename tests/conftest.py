from __future__ import annotations

import os
from collections.abc import Callable
from pathlib import Path

import pytest

from k0s_setup import controller, marker
from k0s_setup.config import K0sSettings
from k0s_setup.errors import CommandError
from k0s_setup.runner import CommandResult

_PATCHED_MODULES = (
    "k0s_setup.installer",
    "k0s_setup.controller",
    "k0s_setup.readiness",
    "k0s_setup.diagnostics",
    "k0s_setup.teardown",
)

Responder = Callable[[tuple[str, ...], dict], CommandResult]


class FakeCommands:
    """Scripted stand-in for run_command, matched on argv prefixes.

    Later registrations win. Unmatched commands succeed with empty output.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[tuple[str, ...], dict]] = []
        self._handlers: list[tuple[tuple[str, ...], Responder]] = []

    def on(
        self,
        *prefix: str,
        exit_code: int = 0,
        stdout: str = "",
        stderr: str = "",
        handler: Responder | None = None,
    ) -> None:
        def _respond(argv: tuple[str, ...], kwargs: dict) -> CommandResult:
            return _result(argv, kwargs, exit_code, stdout, stderr)

        self._handlers.append((prefix, handler or _respond))

    def sequence(self, *prefix: str, exit_codes: list[int], stdout: str = "") -> None:
        """Answer successive calls with *exit_codes*, repeating the last one."""
        remaining = list(exit_codes)

        def _respond(argv: tuple[str, ...], kwargs: dict) -> CommandResult:
            code = remaining.pop(0) if len(remaining) > 1 else remaining[0]
            return _result(argv, kwargs, code, stdout, "")

        self._handlers.append((prefix, _respond))

    def __call__(self, program: str, *args: str, **kwargs) -> CommandResult:
        argv = (program, *args)
        self.calls.append((argv, kwargs))
        for prefix, respond in reversed(self._handlers):
            if argv[: len(prefix)] == prefix:
                return respond(argv, kwargs)
        return CommandResult(0, "")

    def argvs(self) -> list[tuple[str, ...]]:
        return [argv for argv, _ in self.calls]

    def called(self, *prefix: str) -> list[tuple[tuple[str, ...], dict]]:
        return [(argv, kw) for argv, kw in self.calls if argv[: len(prefix)] == prefix]


def _result(argv: tuple[str, ...], kwargs: dict, exit_code: int, stdout: str, stderr: str) -> CommandResult:
    if exit_code != 0 and not kwargs.get("ignore_return_code"):
        raise CommandError(" ".join(argv), exit_code, stderr)
    return CommandResult(exit_code, stdout if kwargs.get("capture") else "")


class FakeClock:
    """Monotonic clock that only moves when sleep() is called."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture(autouse=True)
def runner_env(monkeypatch, tmp_path: Path) -> dict[str, Path]:
    """Simulate a GitHub Actions job with file commands under tmp_path."""
    for var in list(os.environ):
        if var.startswith(("INPUT_", "K0S_SETUP_", "STATE_")):
            monkeypatch.delenv(var)
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    # Register KUBECONFIG for restore; export_variable writes os.environ directly.
    monkeypatch.setenv("KUBECONFIG", "unset")
    monkeypatch.delenv("KUBECONFIG")

    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("GITHUB_ACTIONS", "true")

    files: dict[str, Path] = {}
    for name in ("GITHUB_OUTPUT", "GITHUB_ENV", "GITHUB_STATE"):
        path = tmp_path / f"{name.lower()}.txt"
        path.touch()
        monkeypatch.setenv(name, str(path))
        files[name] = path

    controller._written_credentials.clear()
    marker._saved_markers.clear()
    return files


@pytest.fixture
def read_file_command() -> Callable[[Path], dict[str, str]]:
    """Parse ``key<<delim`` blocks written by the runner file commands."""

    def _read(path: Path) -> dict[str, str]:
        values: dict[str, str] = {}
        lines = path.read_text(encoding="utf-8").splitlines()
        i = 0
        while i < len(lines):
            key, delimiter = lines[i].split("<<", 1)
            end = lines.index(delimiter, i + 1)
            values[key] = "\n".join(lines[i + 1 : end])
            i = end + 1
        return values

    return _read


@pytest.fixture
def fake_commands(monkeypatch) -> FakeCommands:
    fake = FakeCommands()
    for module in _PATCHED_MODULES:
        monkeypatch.setattr(f"{module}.run_command", fake)
    monkeypatch.setattr("k0s_setup.orchestrator.require_command", lambda cmd: None)
    return fake


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings(tmp_path: Path) -> K0sSettings:
    return K0sSettings(
        kubeconfig_path=tmp_path / "home" / ".kube" / "config",
        poll_interval_seconds=5,
        kubeconfig_wait_timeout_seconds=10,
        kubeconfig_poll_interval_seconds=1,
    )
