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

"""Post-run teardown of the k0s controller installed by the main phase."""

from __future__ import annotations

from k0s_setup import actions, console
from k0s_setup.config import K0sSettings
from k0s_setup.constants import ENV_KUBECONFIG
from k0s_setup.errors import CommandError
from k0s_setup.runner import run_command


def _best_effort(description: str, *argv: str) -> bool:
    """Run a teardown command, downgrading any failure to a warning."""
    console.print(f"[yellow]ℹ️  {description}...[/yellow]")
    try:
        result = run_command(*argv, ignore_return_code=True)
    except CommandError as err:
        actions.warning(f"{description} failed: {err}")
        return False
    if not result.ok:
        actions.warning(f"{description} exited with code {result.exit_code}")
        return False
    return True


def teardown_k0s(settings: K0sSettings) -> bool:
    """Stop and reset the controller, then remove the binary and kubeconfig.

    Every step is attempted even when an earlier one fails.

    Args:
        settings: Tool settings with binary and kubeconfig paths.

    Returns:
        True if every step succeeded.
    """
    binary = str(settings.binary_path)
    with actions.group("Cleaning up k0s"):
        results = [
            _best_effort("Stopping k0s", "sudo", binary, "stop"),
            _best_effort("Resetting k0s node state", "sudo", binary, "reset"),
            _best_effort("Removing k0s binary", "sudo", "rm", "-f", binary),
        ]

        kubeconfig = settings.kubeconfig_path
        try:
            kubeconfig.unlink(missing_ok=True)
        except OSError as err:
            actions.warning(f"Removing {kubeconfig} failed: {err}")
            results.append(False)

        if all(results):
            console.print("[green]✅ k0s cleaned up[/green]")
        else:
            console.print(f"[yellow]⚠️  k0s cleanup finished with warnings ({ENV_KUBECONFIG} may be stale)[/yellow]")
    return all(results)
