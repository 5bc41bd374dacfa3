# /*
# Copyright 2026 The setup-k0s Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */

"""External command execution."""

from __future__ import annotations

import os
import shlex
from collections.abc import Mapping
from dataclasses import dataclass

import sh
from rich.markup import escape

from k0s_setup import console, logger
from k0s_setup.errors import CommandError

# Exit status the shell uses for a program missing from PATH.
EXIT_COMMAND_NOT_FOUND = 127
_ANY_EXIT_CODE = list(range(256))


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a finished command.

    Attributes:
        exit_code: Process exit status.
        stdout: Captured stdout, or ``""`` when capture was not requested.
    """

    exit_code: int
    stdout: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


def _decode(data: bytes | str | None) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data


def _echo_line(line: str) -> None:
    console.out(line.rstrip("\n"), highlight=False)


def run_command(
    program: str,
    *args: str,
    env: Mapping[str, str] | None = None,
    capture: bool = False,
    silent: bool = False,
    ignore_return_code: bool = False,
    input: str | None = None,
) -> CommandResult:
    """Run *program* with *args* and wait for it to finish.

    Args:
        program: Executable name (resolved on PATH) or path.
        *args: Command arguments.
        env: Extra environment variables merged over the current environment.
        capture: Collect stdout into the result.
        silent: Do not echo the command line or its output.
        ignore_return_code: Return non-zero exit codes instead of raising.
        input: Text fed to the command's stdin.

    Returns:
        The exit code and, when *capture* is set, stdout.

    Raises:
        CommandError: If the program is missing, or exits non-zero and
            *ignore_return_code* is not set.
    """
    rendered = shlex.join([program, *args])
    kwargs: dict = {"_return_cmd": True}
    if env:
        kwargs["_env"] = {**os.environ, **env}
    if ignore_return_code:
        kwargs["_ok_code"] = _ANY_EXIT_CODE
    if input is not None:
        kwargs["_in"] = input
    if silent:
        logger.debug("Running (silent): %s", rendered)
    else:
        console.print(f"[dim]\\[command]{escape(rendered)}[/dim]")
        kwargs["_out"] = _echo_line
        kwargs["_err"] = _echo_line
        if capture:
            kwargs["_tee"] = "out"

    try:
        proc = sh.Command(program)(*args, **kwargs)
    except sh.CommandNotFound as err:
        raise CommandError(rendered, EXIT_COMMAND_NOT_FOUND, f"command not found: {program}") from err
    except sh.ErrorReturnCode as err:
        raise CommandError(rendered, err.exit_code, _decode(err.stderr)) from err

    stdout = _decode(proc.stdout) if capture else ""
    return CommandResult(proc.exit_code, stdout)


def require_command(cmd: str) -> None:
    """Check if a command exists on the system PATH.

    Args:
        cmd: Name of the CLI command to check.

    Raises:
        RuntimeError: If the command is not found.
    """
    try:
        found = sh.which(cmd)
    except sh.ErrorReturnCode as err:
        raise RuntimeError(f"Required command '{cmd}' not found. Please install it first.") from err
    if not found:
        raise RuntimeError(f"Required command '{cmd}' not found. Please install it first.")
