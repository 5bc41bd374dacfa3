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

"""Deadline-bounded polling shared by the credential wait and the readiness poller."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

from tenacity import RetryCallState, RetryError, Retrying, retry_if_result, wait_fixed

T = TypeVar("T")


@dataclass
class PollState:
    """Progress of a running poll.

    Attributes:
        start_time: Clock reading when polling started.
        timeout_seconds: Deadline relative to *start_time*.
        elapsed_seconds: Seconds since *start_time* at the last deadline check.
        attempts: Number of checks run so far.
    """

    start_time: float
    timeout_seconds: float
    elapsed_seconds: float = 0.0
    attempts: int = 0

    @property
    def timed_out(self) -> bool:
        if self.timeout_seconds <= 0:
            return True
        return self.elapsed_seconds > self.timeout_seconds


class PollTimeout(Exception):
    """The deadline passed before the check reported done."""

    def __init__(self, state: PollState, last_result: object) -> None:
        self.state = state
        self.last_result = last_result
        super().__init__(
            f"Deadline of {state.timeout_seconds:g}s passed after {state.attempts} attempts"
        )


def poll_until(
    check: Callable[[], T],
    *,
    done: Callable[[T], bool],
    timeout_seconds: float,
    interval_seconds: float,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
    on_wait: Callable[[PollState, T], None] | None = None,
) -> T:
    """Run *check* every *interval_seconds* until ``done(result)`` or the deadline passes.

    The deadline is checked before every cycle except the first, so the check
    always runs at least once and never starts once the deadline has passed.
    Exceptions raised by *check* are not retried.

    Args:
        check: Callable evaluated once per cycle.
        done: Predicate deciding whether a result ends the poll.
        timeout_seconds: Polling stops once more than this many seconds elapsed.
        interval_seconds: Fixed sleep between cycles.
        sleep: Sleep function, injectable for tests.
        clock: Monotonic clock, injectable for tests.
        on_wait: Called with the poll state and last result before each sleep.

    Returns:
        The first result accepted by *done*.

    Raises:
        PollTimeout: If the deadline passed first.
    """
    state = PollState(start_time=clock(), timeout_seconds=timeout_seconds)
    last_result: list[T] = []

    def _update_elapsed() -> bool:
        state.elapsed_seconds = clock() - state.start_time
        return state.timed_out

    def _attempt() -> T:
        if state.attempts and _update_elapsed():
            raise PollTimeout(state, last_result[-1])
        result = check()
        state.attempts += 1
        last_result[:] = [result]
        return result

    def _before_sleep(retry_state: RetryCallState) -> None:
        if on_wait is not None:
            on_wait(state, retry_state.outcome.result())

    retrying = Retrying(
        stop=lambda retry_state: _update_elapsed(),
        wait=wait_fixed(interval_seconds),
        retry=retry_if_result(lambda result: not done(result)),
        sleep=sleep,
        before_sleep=_before_sleep,
    )
    try:
        return retrying(_attempt)
    except RetryError as err:
        raise PollTimeout(state, err.last_attempt.result()) from err
