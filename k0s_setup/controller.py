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

"""Controller startup and admin credential extraction."""

from __future__ import annotations

import os
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from k0s_setup import actions, console, logger
from k0s_setup.config import K0sSettings
from k0s_setup.constants import ENV_KUBECONFIG, KUBECONFIG_FILE_MODE, OUTPUT_KUBECONFIG
from k0s_setup.errors import K0sSetupError, StartError
from k0s_setup.polling import PollTimeout, poll_until
from k0s_setup.runner import run_command


@dataclass(frozen=True)
class ClusterCredential:
    """The admin kubeconfig written for later steps.

    Attributes:
        path: Location of the kubeconfig file.
        contents: Kubeconfig text. Never printed.
        mode: File permission bits.
    """

    path: Path
    contents: str = field(repr=False)
    mode: int = KUBECONFIG_FILE_MODE


# Credential files written by this process; each path is written at most once.
_written_credentials: set[Path] = set()


def persist_credential(path: Path, contents: str) -> ClusterCredential:
    """Write *contents* to *path* readable and writable by the owner only.

    Args:
        path: Destination kubeconfig path; parent directories are created.
        contents: Kubeconfig text.

    Returns:
        The written credential.

    Raises:
        StartError: If this process already wrote a credential to *path*.
    """
    key = path.expanduser().absolute()
    if key in _written_credentials:
        raise StartError(f"Credential file {path} was already written in this run")

    path.parent.mkdir(parents=True, exist_ok=True)
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, KUBECONFIG_FILE_MODE)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        f.write(contents)
    # os.open only applies the mode on creation; tighten a pre-existing file too.
    path.chmod(KUBECONFIG_FILE_MODE)
    _written_credentials.add(key)
    return ClusterCredential(path=path, contents=contents)


def publish_credential(credential: ClusterCredential) -> None:
    """Expose the kubeconfig path as a step output and an exported env var."""
    actions.set_output(OUTPUT_KUBECONFIG, str(credential.path))
    actions.export_variable(ENV_KUBECONFIG, str(credential.path))
    console.print(f"  KUBECONFIG exported: {credential.path}")


def wait_for_admin_kubeconfig(
    settings: K0sSettings,
    *,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> None:
    """Poll until k0s has written a non-empty admin kubeconfig.

    Raises:
        StartError: If the file does not appear before the deadline.
    """
    source = str(settings.admin_kubeconfig_source)

    def _present() -> bool:
        return run_command("sudo", "test", "-s", source, silent=True, ignore_return_code=True).ok

    try:
        poll_until(
            _present,
            done=bool,
            timeout_seconds=settings.kubeconfig_wait_timeout_seconds,
            interval_seconds=settings.kubeconfig_poll_interval_seconds,
            sleep=sleep,
            clock=clock,
        )
    except PollTimeout as err:
        raise StartError(
            f"Admin kubeconfig {source} did not appear within "
            f"{settings.kubeconfig_wait_timeout_seconds:g}s"
        ) from err


def start_k0s(
    settings: K0sSettings,
    *,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> ClusterCredential:
    """Start k0s as a single-node controller and export its admin kubeconfig.

    Args:
        settings: Tool settings with binary and kubeconfig paths.
        sleep: Sleep function for the kubeconfig wait, injectable for tests.
        clock: Monotonic clock for the kubeconfig wait, injectable for tests.

    Returns:
        The credential written to ``settings.kubeconfig_path``.

    Raises:
        StartError: If any step fails.
    """
    with actions.group("Starting k0s cluster"):
        console.print("Starting k0s as controller...")
        binary = str(settings.binary_path)
        try:
            run_command("sudo", binary, "install", "controller", "--single")
            run_command("sudo", binary, "start")

            console.print("  Waiting for kubeconfig generation...")
            wait_for_admin_kubeconfig(settings, sleep=sleep, clock=clock)

            console.print("  Extracting kubeconfig...")
            contents = run_command("sudo", binary, "kubeconfig", "admin", capture=True, silent=True).stdout
            if not contents.strip():
                raise StartError("k0s returned an empty admin kubeconfig")
            credential = persist_credential(settings.kubeconfig_path, contents)
        except (K0sSetupError, OSError) as err:
            raise StartError(f"Failed to start k0s: {err}") from err

        logger.debug("Wrote admin kubeconfig to %s", credential.path)
        publish_credential(credential)
        console.print("[green]✅ k0s cluster started successfully[/green]")
        return credential
