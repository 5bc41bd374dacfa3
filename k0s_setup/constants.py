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

"""Constants and dependency loading."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml


def load_dependencies() -> dict:
    """Load release source and controller defaults from dependencies.yaml.

    Returns:
        Parsed YAML content as a nested dictionary.
    """
    deps_file = Path(__file__).resolve().parent / "dependencies.yaml"
    with open(deps_file) as f:
        return yaml.safe_load(f)


DEPENDENCIES = load_dependencies()


def dep_value(*keys: str, default: Any = None) -> Any:
    """Safely traverse the DEPENDENCIES dict by key path.

    Args:
        *keys: Sequence of dictionary keys to traverse.
        default: Value to return if any key is missing.

    Returns:
        The value at the nested key path, or *default* if not found.
    """
    node = DEPENDENCIES
    for key in keys:
        if not isinstance(node, dict):
            return default
        node = node.get(key)
        if node is None:
            return default
    return node


# -- Action input defaults --
DEFAULT_VERSION = "latest"
DEFAULT_WAIT_FOR_READY = False
DEFAULT_TIMEOUT_SECONDS = 300

# -- Release source --
DEFAULT_RELEASE_REPO = dep_value("k0s", "github_repo", default="k0sproject/k0s")
DEFAULT_GITHUB_URL = dep_value("github", "url", default="https://github.com")
DEFAULT_GITHUB_API_URL = dep_value("github", "api_url", default="https://api.github.com")
LATEST_VERSION = "latest"

# -- Host layout --
DEFAULT_BINARY_PATH = dep_value("k0s", "binary_path", default="/usr/local/bin/k0s")
DEFAULT_ADMIN_KUBECONFIG = dep_value("k0s", "admin_kubeconfig", default="/var/lib/k0s/pki/admin.conf")
DEFAULT_CONTROLLER_UNIT = dep_value("k0s", "controller_unit", default="k0scontroller")
KUBE_DIR_NAME = ".kube"
KUBECONFIG_FILE_NAME = "config"
KUBECONFIG_FILE_MODE = 0o600
TMP_BINARY_NAME = "k0s"

# -- Polling --
DEFAULT_POLL_INTERVAL_SECONDS = 5
DEFAULT_KUBECONFIG_WAIT_TIMEOUT_SECONDS = 60
DEFAULT_KUBECONFIG_POLL_INTERVAL_SECONDS = 2

# -- Kubernetes --
NS_KUBE_SYSTEM = dep_value("kubernetes", "system_namespace", default="kube-system")
NODE_READY_STATUS = "Ready"
POD_HEALTHY_STATUSES = frozenset({"Running", "Completed"})

# -- Diagnostics --
DEFAULT_DIAGNOSTICS_LOG_LINES = 100

# -- Supported architectures (uname -m -> release asset suffix) --
ARCH_MAP = {
    "x86_64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv7l": "arm",
}

# -- Runner protocol --
RUN_MARKER_STATE = "isPost"
RUN_MARKER_TRUE = "true"
OUTPUT_KUBECONFIG = "kubeconfig"
ENV_KUBECONFIG = "KUBECONFIG"

# -- Required tools --
BASE_PREREQUISITES = ("uname", "curl", "sudo")
READINESS_PREREQUISITES = ("kubectl",)
