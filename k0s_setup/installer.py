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

"""Resolution and installation of the k0s binary."""

from __future__ import annotations

import json
import tempfile
from dataclasses import dataclass
from pathlib import Path

from k0s_setup import actions, console, logger
from k0s_setup.config import K0sSettings
from k0s_setup.constants import ARCH_MAP, LATEST_VERSION, TMP_BINARY_NAME
from k0s_setup.errors import InstallError, K0sSetupError, UnsupportedArchitectureError
from k0s_setup.runner import run_command
from k0s_setup.utils import k0s_download_url, latest_release_api_url


@dataclass(frozen=True)
class InstallRequest:
    """Everything needed to fetch one k0s binary, resolved once per run.

    Attributes:
        version_spec: Requested version, ``latest`` or an explicit tag.
        detected_arch: Machine name reported by ``uname -m``.
        binary_arch: Release asset architecture mapped from *detected_arch*.
        resolved_version: Concrete release tag used for the download.
        download_url: Release asset URL built from *resolved_version*.
    """

    version_spec: str
    detected_arch: str
    binary_arch: str
    resolved_version: str
    download_url: str


# ============================================================================
# Resolution
# ============================================================================

def map_architecture(machine: str) -> str:
    """Map a ``uname -m`` machine name to a k0s release architecture.

    Raises:
        UnsupportedArchitectureError: If no k0s release exists for *machine*.
    """
    try:
        return ARCH_MAP[machine]
    except KeyError:
        raise UnsupportedArchitectureError(machine) from None


def detect_architecture() -> str:
    """Return the machine name reported by ``uname -m``."""
    return run_command("uname", "-m", capture=True, silent=True).stdout.strip()


def resolve_version(version_spec: str, settings: K0sSettings) -> str:
    """Turn ``latest`` into the newest published release tag.

    Explicit tags are returned unchanged without any network call.

    Raises:
        InstallError: If the release metadata has no usable ``tag_name``.
        CommandError: If the metadata request fails.
    """
    if version_spec != LATEST_VERSION:
        return version_spec

    console.print("[yellow]ℹ️  Resolving latest version...[/yellow]")
    url = latest_release_api_url(settings.github_api_url, settings.release_repo)
    args = ["-sfL", "-H", "Accept: application/vnd.github+json"]
    headers = None
    if settings.github_token is not None:
        # Read the auth header from stdin so the token never shows up in argv.
        args += ["-H", "@-"]
        headers = f"Authorization: Bearer {settings.github_token.get_secret_value()}\n"
    result = run_command("curl", *args, url, capture=True, silent=True, input=headers)

    try:
        tag = json.loads(result.stdout).get("tag_name") or ""
    except (ValueError, AttributeError) as err:
        raise InstallError(f"Could not parse release metadata from {url}") from err
    if not isinstance(tag, str) or not tag.strip():
        raise InstallError(f"No release tag found at {url}")
    return tag.strip()


def build_install_request(
    version_spec: str,
    settings: K0sSettings,
    machine: str | None = None,
) -> InstallRequest:
    """Resolve architecture first, then the version, into an immutable request.

    The architecture is checked before any network call, and the version is
    resolved exactly once so the download URL cannot drift within a run.

    Args:
        version_spec: ``latest`` or an explicit release tag.
        settings: Tool settings with the release source.
        machine: Machine name override; detected with ``uname -m`` when None.

    Returns:
        The resolved install request.
    """
    detected = machine if machine is not None else detect_architecture()
    binary_arch = map_architecture(detected)
    resolved = resolve_version(version_spec, settings)
    return InstallRequest(
        version_spec=version_spec,
        detected_arch=detected,
        binary_arch=binary_arch,
        resolved_version=resolved,
        download_url=k0s_download_url(settings.github_url, settings.release_repo, resolved, binary_arch),
    )


# ============================================================================
# Installation
# ============================================================================

def _download_and_install(request: InstallRequest, settings: K0sSettings) -> None:
    """Download into a private temporary directory and install with sudo.

    The temporary directory is removed whether or not the install succeeds.
    """
    with tempfile.TemporaryDirectory(prefix="k0s-setup-") as tmp_dir:
        tmp_binary = Path(tmp_dir) / TMP_BINARY_NAME
        run_command("curl", "-sfL", request.download_url, "-o", str(tmp_binary))
        console.print(f"  Installing binary to {settings.binary_path}...")
        run_command("sudo", "install", str(tmp_binary), str(settings.binary_path))
    logger.debug("Removed temporary download directory %s", tmp_dir)


def install_k0s(version_spec: str, settings: K0sSettings) -> InstallRequest:
    """Install the k0s binary and verify it runs.

    Args:
        version_spec: ``latest`` or an explicit release tag.
        settings: Tool settings with the release source and binary path.

    Returns:
        The install request that was carried out.

    Raises:
        UnsupportedArchitectureError: If the runner architecture has no release.
        InstallError: If any other step fails.
    """
    with actions.group("Installing k0s"):
        console.print(f"Installing k0s {version_spec}...")
        try:
            request = build_install_request(version_spec, settings)
            console.print(f"  Architecture: {request.detected_arch} -> {request.binary_arch}")
            if request.version_spec == LATEST_VERSION:
                console.print(f"  Latest version: {request.resolved_version}")
            console.print(f"  Downloading from: {request.download_url}")
            _download_and_install(request, settings)

            console.print("  Verifying installation...")
            run_command(str(settings.binary_path), "version")
        except UnsupportedArchitectureError:
            raise
        except (K0sSetupError, OSError) as err:
            raise InstallError(f"Failed to install k0s: {err}") from err

        console.print("[green]✅ k0s installed successfully[/green]")
        return request
