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

"""Release URL builders and kubectl table parsing helpers."""

from __future__ import annotations


def k0s_download_url(github_url: str, repo: str, version: str, binary_arch: str) -> str:
    """Build the download URL of a k0s release binary.

    Args:
        github_url: GitHub base URL (e.g. ``https://github.com``).
        repo: Repository publishing the release (``owner/name``).
        version: Release tag (e.g. ``v1.30.0+k0s.0``), used verbatim.
        binary_arch: Release asset architecture (``amd64``, ``arm64``, ``arm``).

    Returns:
        Full release asset URL.
    """
    return f"{github_url.rstrip('/')}/{repo}/releases/download/{version}/k0s-{version}-{binary_arch}"


def latest_release_api_url(api_url: str, repo: str) -> str:
    """Build the releases API URL describing the newest published release."""
    return f"{api_url.rstrip('/')}/repos/{repo}/releases/latest"


def table_column(output: str, index: int) -> list[str]:
    """Extract one whitespace-separated column from ``--no-headers`` kubectl output.

    Args:
        output: Raw kubectl stdout, one resource per line.
        index: Zero-based column index.

    Returns:
        Column value per non-blank line; ``""`` for lines too short to have it.
    """
    values: list[str] = []
    for line in output.splitlines():
        fields = line.split()
        if not fields:
            continue
        values.append(fields[index] if index < len(fields) else "")
    return values
