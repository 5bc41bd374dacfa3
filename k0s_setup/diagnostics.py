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

"""Best-effort cluster diagnostics dumped when the readiness wait times out."""

from __future__ import annotations

from dataclasses import dataclass

from k0s_setup import actions, console
from k0s_setup.config import K0sSettings
from k0s_setup.errors import DiagnosticsError
from k0s_setup.runner import run_command


@dataclass(frozen=True)
class DiagnosticProbe:
    title: str
    argv: tuple[str, ...]


def diagnostic_probes(settings: K0sSettings) -> list[DiagnosticProbe]:
    """Return the diagnostics commands in the order they are dumped."""
    binary = str(settings.binary_path)
    return [
        DiagnosticProbe("k0s Status", ("sudo", binary, "status")),
        DiagnosticProbe(
            "k0s Controller Logs",
            ("sudo", "journalctl", "-u", settings.controller_unit,
             "-n", str(settings.diagnostics_log_lines), "--no-pager"),
        ),
        DiagnosticProbe("Kubectl Cluster Info", ("kubectl", "cluster-info")),
        DiagnosticProbe("Nodes", ("kubectl", "get", "nodes", "-o", "wide")),
        DiagnosticProbe(
            f"Pods in {settings.system_namespace}",
            ("kubectl", "get", "pods", "-n", settings.system_namespace),
        ),
    ]


def _run_probe(probe: DiagnosticProbe) -> None:
    console.print(f"=== {probe.title} ===")
    try:
        run_command(*probe.argv, ignore_return_code=True)
    except Exception as e:
        raise DiagnosticsError(probe.title, e) from e


def show_diagnostics(settings: K0sSettings) -> list[DiagnosticsError]:
    """Dump every diagnostic, continuing past probes that cannot run.

    Args:
        settings: Tool settings naming the binary, unit and namespace to inspect.

    Returns:
        Failures of probes that could not run; each is also logged as a warning.
    """
    failures: list[DiagnosticsError] = []
    with actions.group("Diagnostic Information"):
        for probe in diagnostic_probes(settings):
            try:
                _run_probe(probe)
            except DiagnosticsError as err:
                actions.warning(f"Failed to gather diagnostics: {err}")
                failures.append(err)
    return failures
