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

"""Layered cluster readiness checks driven by a deadline-bounded poll.

A cycle walks the layers in order and stops at the first one that fails:

    service up -> API reachable -> nodes ready -> system pods running

The cluster is ready only when a single cycle passes all four. Nothing is
carried over between cycles, so a layer that regresses is caught on the next
evaluation even if it passed before.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum

from k0s_setup import actions, console
from k0s_setup.config import K0sSettings
from k0s_setup.constants import NODE_READY_STATUS, POD_HEALTHY_STATUSES
from k0s_setup.diagnostics import show_diagnostics
from k0s_setup.errors import CommandError, K0sSetupError, ReadinessTimeoutError
from k0s_setup.polling import PollState, PollTimeout, poll_until
from k0s_setup.runner import run_command
from k0s_setup.utils import table_column

Probe = Callable[[], bool]


class ReadinessLayer(str, Enum):
    SERVICE_UP = "service up"
    API_REACHABLE = "API reachable"
    NODES_READY = "nodes ready"
    SYSTEM_PODS_RUNNING = "system pods running"


_LAYER_MESSAGES: dict[ReadinessLayer, tuple[str, str]] = {
    ReadinessLayer.SERVICE_UP: ("k0s is running", "k0s not running yet"),
    ReadinessLayer.API_REACHABLE: ("kubectl can connect to API server", "kubectl cannot connect yet"),
    ReadinessLayer.NODES_READY: ("All nodes are Ready", "Some nodes not Ready yet"),
    ReadinessLayer.SYSTEM_PODS_RUNNING: ("All system pods are running", "Some system pods not running yet"),
}


@dataclass(frozen=True)
class CycleResult:
    """Outcome of one evaluation of the readiness chain.

    Attributes:
        passed: Layers that passed, in order.
        failed: First failing layer, or None when every layer passed.
    """

    passed: tuple[ReadinessLayer, ...]
    failed: ReadinessLayer | None

    @property
    def ready(self) -> bool:
        return self.failed is None


class ReadinessChain:
    """The four readiness layers, re-evaluated from the first on every call."""

    def __init__(self, probes: Mapping[ReadinessLayer, Probe]) -> None:
        missing = [layer.value for layer in ReadinessLayer if layer not in probes]
        if missing:
            raise ValueError(f"Missing readiness probes: {', '.join(missing)}")
        self._probes = dict(probes)

    def evaluate(self) -> CycleResult:
        passed: list[ReadinessLayer] = []
        for layer in ReadinessLayer:
            ok_msg, fail_msg = _LAYER_MESSAGES[layer]
            if not self._probes[layer]():
                console.print(f"  {fail_msg}")
                return CycleResult(tuple(passed), layer)
            console.print(f"  {ok_msg}")
            passed.append(layer)
        return CycleResult(tuple(passed), None)


# ============================================================================
# kubectl output checks
# ============================================================================

def all_nodes_ready(output: str) -> bool:
    """True when ``kubectl get nodes --no-headers`` lists nodes and all are Ready.

    An empty listing is not ready.
    """
    statuses = table_column(output, 1)
    return bool(statuses) and all(status == NODE_READY_STATUS for status in statuses)


def all_pods_healthy(output: str) -> bool:
    """True when ``kubectl get pods --no-headers`` lists pods and all are Running or Completed.

    An empty listing is not ready.
    """
    statuses = table_column(output, 2)
    return bool(statuses) and all(status in POD_HEALTHY_STATUSES for status in statuses)


def default_probes(settings: K0sSettings) -> dict[ReadinessLayer, Probe]:
    """Build probes that query the running controller and API server.

    A listing command that exits non-zero counts as not ready rather than as
    "no unhealthy lines found".
    """
    binary = str(settings.binary_path)

    def _succeeds(*argv: str) -> bool:
        return run_command(*argv, silent=True, ignore_return_code=True).ok

    def _listing(*args: str) -> str | None:
        result = run_command("kubectl", *args, capture=True, silent=True, ignore_return_code=True)
        return result.stdout if result.ok else None

    def _nodes_ready() -> bool:
        output = _listing("get", "nodes", "--no-headers")
        return output is not None and all_nodes_ready(output)

    def _pods_running() -> bool:
        output = _listing("get", "pods", "-n", settings.system_namespace, "--no-headers")
        return output is not None and all_pods_healthy(output)

    return {
        ReadinessLayer.SERVICE_UP: lambda: _succeeds("sudo", binary, "status"),
        ReadinessLayer.API_REACHABLE: lambda: _succeeds("kubectl", "cluster-info"),
        ReadinessLayer.NODES_READY: _nodes_ready,
        ReadinessLayer.SYSTEM_PODS_RUNNING: _pods_running,
    }


# ============================================================================
# Poller
# ============================================================================

def wait_for_cluster_ready(
    timeout_seconds: float,
    settings: K0sSettings,
    *,
    chain: ReadinessChain | None = None,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
    diagnostics: Callable[[K0sSettings], object] = show_diagnostics,
) -> CycleResult:
    """Poll the readiness chain until every layer passes or the deadline passes.

    Args:
        timeout_seconds: Deadline in seconds.
        settings: Tool settings with the poll interval.
        chain: Readiness chain; built from :func:`default_probes` when None.
        sleep: Sleep function, injectable for tests.
        clock: Monotonic clock, injectable for tests.
        diagnostics: Called once with *settings* when the deadline passes.

    Returns:
        The cycle in which every layer passed.

    Raises:
        ReadinessTimeoutError: If the deadline passed first. Diagnostics have
            been dumped by then.
        K0sSetupError: If a probe could not be run at all.
    """
    if chain is None:
        chain = ReadinessChain(default_probes(settings))

    def _on_wait(state: PollState, result: CycleResult) -> None:
        console.print(
            f"  Cluster not ready yet, waiting... ({int(state.elapsed_seconds)}/{timeout_seconds:g}s)"
        )

    try:
        with actions.group("Waiting for cluster ready"):
            console.print(f"Waiting for k0s cluster to be ready (timeout: {timeout_seconds:g}s)...")
            result = poll_until(
                chain.evaluate,
                done=lambda cycle: cycle.ready,
                timeout_seconds=timeout_seconds,
                interval_seconds=settings.poll_interval_seconds,
                sleep=sleep,
                clock=clock,
                on_wait=_on_wait,
            )
    except PollTimeout as err:
        actions.error("Timeout waiting for cluster to be ready")
        diagnostics(settings)
        last_failed = err.last_result.failed
        raise ReadinessTimeoutError(
            timeout_seconds, last_failed.value if last_failed else None
        ) from err
    except CommandError as err:
        raise K0sSetupError(f"Failed waiting for cluster: {err}") from err

    console.print("[green]✅ k0s cluster is fully ready![/green]")
    return result
