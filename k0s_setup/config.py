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

"""Configuration classes for action inputs and tool settings."""

from __future__ import annotations

from pathlib import Path

from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from k0s_setup import console
from k0s_setup.constants import (
    DEFAULT_ADMIN_KUBECONFIG,
    DEFAULT_BINARY_PATH,
    DEFAULT_CONTROLLER_UNIT,
    DEFAULT_DIAGNOSTICS_LOG_LINES,
    DEFAULT_GITHUB_API_URL,
    DEFAULT_GITHUB_URL,
    DEFAULT_KUBECONFIG_POLL_INTERVAL_SECONDS,
    DEFAULT_KUBECONFIG_WAIT_TIMEOUT_SECONDS,
    DEFAULT_POLL_INTERVAL_SECONDS,
    DEFAULT_RELEASE_REPO,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_VERSION,
    DEFAULT_WAIT_FOR_READY,
    KUBE_DIR_NAME,
    KUBECONFIG_FILE_NAME,
    NS_KUBE_SYSTEM,
)


def default_kubeconfig_path() -> Path:
    """Return ``<home>/.kube/config`` for the current user."""
    return Path.home() / KUBE_DIR_NAME / KUBECONFIG_FILE_NAME


# ============================================================================
# Configuration classes
# ============================================================================

class ActionInputs(BaseSettings):
    """Action inputs, auto-loaded from the runner's INPUT_* env vars.

    The runner upper-cases input names but keeps hyphens, so ``wait-for-ready``
    arrives as ``INPUT_WAIT-FOR-READY``. Empty values fall back to defaults.

    Attributes:
        version: k0s release tag, or ``latest`` to resolve the newest release.
        wait_for_ready: Whether to block until the cluster passes readiness checks.
        timeout: Readiness deadline in seconds.
    """

    model_config = SettingsConfigDict(
        env_prefix="INPUT_",
        extra="ignore",
        env_ignore_empty=True,
        populate_by_name=True,
    )

    version: str = DEFAULT_VERSION
    wait_for_ready: bool = Field(
        default=DEFAULT_WAIT_FOR_READY,
        validation_alias=AliasChoices("INPUT_WAIT-FOR-READY", "INPUT_WAIT_FOR_READY"),
    )
    timeout: int = Field(default=DEFAULT_TIMEOUT_SECONDS, ge=0)

    @field_validator("version")
    @classmethod
    def _strip_version(cls, value: str) -> str:
        return value.strip() or DEFAULT_VERSION


class K0sSettings(BaseSettings):
    """Tool settings, auto-loaded from K0S_SETUP_* env vars.

    Attributes:
        binary_path: Where the k0s binary is installed.
        release_repo: GitHub ``owner/name`` publishing k0s releases.
        github_url: Base URL for release downloads.
        github_api_url: Base URL for the releases API.
        github_token: Optional token sent when resolving ``latest``.
        admin_kubeconfig_source: Admin kubeconfig k0s writes once the control plane is up.
        kubeconfig_path: Where the extracted admin kubeconfig is written.
        poll_interval_seconds: Sleep between readiness cycles.
        kubeconfig_wait_timeout_seconds: Deadline for the admin kubeconfig to appear.
        kubeconfig_poll_interval_seconds: Sleep between admin kubeconfig checks.
        controller_unit: systemd unit registered by ``k0s install controller``.
        diagnostics_log_lines: Number of journal lines dumped on timeout.
        system_namespace: Namespace whose pods gate readiness.
    """

    model_config = SettingsConfigDict(
        env_prefix="K0S_SETUP_",
        extra="ignore",
        env_ignore_empty=True,
        populate_by_name=True,
    )

    binary_path: Path = Path(DEFAULT_BINARY_PATH)
    release_repo: str = Field(default=DEFAULT_RELEASE_REPO, pattern=r"^[\w.-]+/[\w.-]+$")
    github_url: str = DEFAULT_GITHUB_URL
    github_api_url: str = DEFAULT_GITHUB_API_URL
    github_token: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("K0S_SETUP_GITHUB_TOKEN", "GITHUB_TOKEN"),
    )
    admin_kubeconfig_source: Path = Path(DEFAULT_ADMIN_KUBECONFIG)
    kubeconfig_path: Path = Field(default_factory=default_kubeconfig_path)
    poll_interval_seconds: float = Field(default=DEFAULT_POLL_INTERVAL_SECONDS, gt=0)
    kubeconfig_wait_timeout_seconds: float = Field(default=DEFAULT_KUBECONFIG_WAIT_TIMEOUT_SECONDS, ge=0)
    kubeconfig_poll_interval_seconds: float = Field(default=DEFAULT_KUBECONFIG_POLL_INTERVAL_SECONDS, gt=0)
    controller_unit: str = DEFAULT_CONTROLLER_UNIT
    diagnostics_log_lines: int = Field(default=DEFAULT_DIAGNOSTICS_LOG_LINES, ge=1)
    system_namespace: str = NS_KUBE_SYSTEM


# ============================================================================
# Display
# ============================================================================

def display_config(inputs: ActionInputs, settings: K0sSettings) -> None:
    """Print the resolved configuration for the main phase.

    Args:
        inputs: Resolved action inputs.
        settings: Resolved tool settings.
    """
    console.print(
        f"Configuration: version={inputs.version}, "
        f"wait-for-ready={str(inputs.wait_for_ready).lower()}, timeout={inputs.timeout}s"
    )
    console.print(f"  binary_path     : {settings.binary_path}")
    console.print(f"  release_repo    : {settings.release_repo}")
    console.print(f"  kubeconfig_path : {settings.kubeconfig_path}")
