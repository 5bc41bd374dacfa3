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

"""k0s_setup - single-node k0s cluster provisioning for CI runners."""

from __future__ import annotations

import logging

from rich.console import Console

__version__ = "0.1.0"

# Runner logs are not terminals; soft wrapping keeps long URLs and paths on one line.
console = Console(soft_wrap=True)
logger = logging.getLogger("k0s_setup")
