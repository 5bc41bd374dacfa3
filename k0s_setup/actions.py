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

"""GitHub Actions runner protocol for log groups, annotations and file commands.

The runner reads workflow commands from the step's stdout and file commands
from the files named by ``GITHUB_OUTPUT``, ``GITHUB_ENV`` and ``GITHUB_STATE``.
Saved state is handed back to the post step as ``STATE_<name>`` env vars.
Outside a runner, sections render as panels and annotations as colored lines.
Without the file-command variables, outputs and state fall back to the legacy
stdout commands.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Iterator
from contextlib import contextmanager

from rich.markup import escape
from rich.panel import Panel

from k0s_setup import console, logger


def on_runner() -> bool:
    """Return True when running inside a GitHub Actions job."""
    return os.environ.get("GITHUB_ACTIONS") == "true"


# ============================================================================
# Workflow commands
# ============================================================================

def _escape_data(value: str) -> str:
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def _escape_property(value: str) -> str:
    return _escape_data(value).replace(":", "%3A").replace(",", "%2C")


def issue_command(command: str, message: str = "", **properties: str) -> None:
    """Write a ``::command key=value::message`` line to stdout.

    Args:
        command: Workflow command name (e.g. ``group``, ``error``).
        message: Command payload.
        **properties: Optional command properties.
    """
    props = ",".join(f"{key}={_escape_property(str(val))}" for key, val in properties.items())
    head = f"{command} {props}" if props else command
    console.out(f"::{head}::{_escape_data(message)}", highlight=False)


def start_group(title: str) -> None:
    if on_runner():
        issue_command("group", title)
    else:
        console.print(Panel.fit(title, style="bold blue"))


def end_group() -> None:
    if on_runner():
        issue_command("endgroup")


@contextmanager
def group(title: str) -> Iterator[None]:
    """Fold everything logged inside the block under *title*."""
    start_group(title)
    try:
        yield
    finally:
        end_group()


def error(message: str) -> None:
    if on_runner():
        issue_command("error", message)
    else:
        console.print(f"[red]\u274c {escape(message)}[/red]")


def warning(message: str) -> None:
    if on_runner():
        issue_command("warning", message)
    else:
        console.print(f"[yellow]\u26a0\ufe0f  {escape(message)}[/yellow]")


def set_failed(message: str) -> None:
    """Report the step failure. The caller is responsible for the exit status."""
    error(message)


# ============================================================================
# File commands
# ============================================================================

def _append_file_command(env_name: str, key: str, value: str) -> bool:
    """Append ``key<<delim / value / delim`` to the runner file named by *env_name*.

    Returns:
        False when the runner did not provide the file.

    Raises:
        ValueError: If the key or value contains the generated delimiter.
    """
    path = os.environ.get(env_name)
    if not path:
        return False
    delimiter = f"ghadelimiter_{uuid.uuid4()}"
    if delimiter in key or delimiter in value:
        raise ValueError(f"Unexpected input: {key!r} contains delimiter {delimiter}")
    with open(path, "a", encoding="utf-8") as f:
        f.write(f"{key}<<{delimiter}\n{value}\n{delimiter}\n")
    logger.debug("Wrote %s to %s", key, env_name)
    return True


def set_output(name: str, value: str) -> None:
    """Publish a step output."""
    if not _append_file_command("GITHUB_OUTPUT", name, value):
        issue_command("set-output", value, name=name)


def export_variable(name: str, value: str) -> None:
    """Export an env var to this process and to every later step of the job."""
    os.environ[name] = value
    if not _append_file_command("GITHUB_ENV", name, value) and on_runner():
        # The runner rejects ::set-env unless ACTIONS_ALLOW_UNSECURE_COMMANDS is set.
        warning(f"GITHUB_ENV is not set; {name} is exported to this step only")


def save_state(name: str, value: str) -> None:
    """Persist a value for the post step of this action."""
    if not _append_file_command("GITHUB_STATE", name, value):
        issue_command("save-state", value, name=name)


def get_state(name: str) -> str:
    """Read a value saved by :func:`save_state` in the main step, or ``""``."""
    return os.environ.get(f"STATE_{name}", "")
