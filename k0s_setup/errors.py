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

"""Error types raised while provisioning and verifying the cluster."""

from __future__ import annotations


class K0sSetupError(RuntimeError):
    """Base class for every failure surfaced by k0s_setup."""


class CommandError(K0sSetupError):
    """An external command exited with a status that was not tolerated."""

    def __init__(self, command: str, exit_code: int, stderr: str = "") -> None:
        self.command = command
        self.exit_code = exit_code
        self.stderr = stderr
        message = f"Command '{command}' failed with exit code {exit_code}"
        if stderr.strip():
            message += f": {stderr.strip()[:500]}"
        super().__init__(message)


class InstallError(K0sSetupError):
    """Installing the k0s binary failed."""


class UnsupportedArchitectureError(InstallError):
    """The runner reports a machine architecture with no k0s release asset."""

    def __init__(self, machine: str) -> None:
        self.machine = machine
        super().__init__(f"Unsupported architecture: {machine}")


class StartError(K0sSetupError):
    """Starting the controller or extracting its credentials failed."""


class ReadinessTimeoutError(K0sSetupError):
    """The cluster did not pass every readiness layer before the deadline."""

    def __init__(self, timeout_seconds: float, last_failed_layer: str | None = None) -> None:
        self.timeout_seconds = timeout_seconds
        self.last_failed_layer = last_failed_layer
        message = f"Timeout waiting for cluster to be ready after {timeout_seconds:g}s"
        if last_failed_layer:
            message += f" (last failing check: {last_failed_layer})"
        super().__init__(message)


class DiagnosticsError(K0sSetupError):
    """A diagnostics probe could not be run. Reported as a warning only."""

    def __init__(self, title: str, cause: Exception) -> None:
        self.title = title
        super().__init__(f"{title}: {cause}")
