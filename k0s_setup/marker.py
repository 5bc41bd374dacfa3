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

"""Durable record telling the post step that the main step ran."""

from __future__ import annotations

from enum import Enum

from k0s_setup import actions, logger
from k0s_setup.constants import RUN_MARKER_STATE, RUN_MARKER_TRUE

# Marker names saved by this process; each is saved at most once.
_saved_markers: set[str] = set()


class RunPhase(str, Enum):
    NOT_STARTED = "not-started"
    MAIN_COMPLETED_OR_FAILED = "main-completed-or-failed"


class RunMarker:
    """Cross-phase flag stored in the runner's action state.

    The main phase writes it once, before any install work, so teardown is
    attempted even when installation fails part way. The post phase sees it
    as ``STATE_<name>``.
    """

    def __init__(self, name: str = RUN_MARKER_STATE) -> None:
        self.name = name

    def read(self) -> RunPhase:
        if actions.get_state(self.name) == RUN_MARKER_TRUE:
            return RunPhase.MAIN_COMPLETED_OR_FAILED
        return RunPhase.NOT_STARTED

    def mark_main_started(self) -> None:
        """Persist the marker.

        Raises:
            RuntimeError: If a marker with this name was already written.
        """
        if self.name in _saved_markers:
            raise RuntimeError(f"Run marker '{self.name}' was already written")
        actions.save_state(self.name, RUN_MARKER_TRUE)
        _saved_markers.add(self.name)
        logger.debug("Saved run marker %s=%s", self.name, RUN_MARKER_TRUE)
