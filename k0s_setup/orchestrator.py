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

"""Orchestration of the main (setup) and post (cleanup) phases."""

from __future__ import annotations

from dataclasses import dataclass

from k0s_setup import actions, console
from k0s_setup.config import ActionInputs, K0sSettings, display_config
from k0s_setup.constants import BASE_PREREQUISITES, READINESS_PREREQUISITES
from k0s_setup.controller import ClusterCredential, start_k0s
from k0s_setup.installer import InstallRequest, install_k0s
from k0s_setup.marker import RunMarker, RunPhase
from k0s_setup.readiness import CycleResult, wait_for_cluster_ready
from k0s_setup.runner import require_command
from k0s_setup.teardown import teardown_k0s


@dataclass(frozen=True)
class SetupResult:
    """What the main phase produced.

    Attributes:
        request: The resolved install request.
        credential: The exported admin kubeconfig.
        readiness: Final readiness cycle, or None when readiness was not awaited.
    """

    request: InstallRequest
    credential: ClusterCredential
    readiness: CycleResult | None = None


# ============================================================================
# Internal helpers
# ============================================================================

def _check_prerequisites(wait_for_ready: bool) -> None:
    """Check the CLI tools the requested steps invoke.

    Args:
        wait_for_ready: Whether readiness probes (kubectl) will run.

    Raises:
        RuntimeError: If a required tool is missing.
    """
    prereqs = list(BASE_PREREQUISITES)
    if wait_for_ready:
        prereqs.extend(READINESS_PREREQUISITES)
    with actions.group("Checking prerequisites"):
        for cmd in prereqs:
            require_command(cmd)
        console.print("[green]✅ All required tools are available[/green]")


# ============================================================================
# Public API
# ============================================================================

def run_main(
    inputs: ActionInputs | None = None,
    settings: K0sSettings | None = None,
    *,
    marker: RunMarker | None = None,
) -> SetupResult:
    """Run the main phase: install and start k0s, then optionally wait for readiness.

    The run marker is written before anything else, including input parsing,
    so the post phase tears down even when this phase fails.

    Args:
        inputs: Action inputs; loaded from INPUT_* env vars when None.
        settings: Tool settings; loaded from K0S_SETUP_* env vars when None.
        marker: Run marker; the default ``isPost`` state when None.

    Returns:
        The setup result.

    Raises:
        K0sSetupError: If any step fails.
    """
    (marker or RunMarker()).mark_main_started()

    console.print("Starting k0s setup...")
    if inputs is None:
        inputs = ActionInputs()
    if settings is None:
        settings = K0sSettings()
    display_config(inputs, settings)

    _check_prerequisites(inputs.wait_for_ready)
    request = install_k0s(inputs.version, settings)
    credential = start_k0s(settings)
    readiness = None
    if inputs.wait_for_ready:
        readiness = wait_for_cluster_ready(inputs.timeout, settings)

    console.print("[green]✅ k0s setup completed successfully![/green]")
    return SetupResult(request=request, credential=credential, readiness=readiness)


def run_cleanup(
    settings: K0sSettings | None = None,
    *,
    phase: RunPhase | None = None,
    force: bool = False,
) -> bool:
    """Run the post phase: tear down what the main phase installed.

    Args:
        settings: Tool settings; loaded from K0S_SETUP_* env vars when None.
        phase: Already-read run phase; read from the run marker when None.
        force: Tear down even when the main phase never ran.

    Returns:
        True if teardown was skipped or every step succeeded.
    """
    if phase is None:
        phase = RunMarker().read()
    if phase is RunPhase.NOT_STARTED and not force:
        console.print("[yellow]ℹ️  No k0s setup recorded for this job, nothing to clean up[/yellow]")
        return True
    return teardown_k0s(settings or K0sSettings())


def run(*, marker: RunMarker | None = None) -> SetupResult | bool:
    """Dispatch to the post phase if the marker is set, else to the main phase."""
    marker = marker or RunMarker()
    phase = marker.read()
    if phase is RunPhase.MAIN_COMPLETED_OR_FAILED:
        return run_cleanup(phase=phase)
    return run_main(marker=marker)
