# /*
# Copyright 2026 The Grove Authors.
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


"""Bounded polling with deadlines, crash-loop detection and concurrent fan-out.

Every wait in pod_harness is an instance of the same loop: evaluate a check,
sleep a fixed interval, repeat until the check has been met often enough, a
fatal error is raised, or the deadline passes. The loop is driven by
tenacity's ``Retrying`` so that stop, wait and sleep policies compose the same
way as the rest of the retries in this package.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Mapping
from concurrent.futures import ThreadPoolExecutor, as_completed
from concurrent.futures import TimeoutError as FuturesTimeoutError
from dataclasses import dataclass

from tenacity import Retrying, RetryCallState, retry_if_result, stop_after_delay, stop_when_event_set

from pod_harness import console, logger
from pod_harness.errors import CrashLoopError, PodHarnessError, PodTimeoutError, PollCancelledError

Check = Callable[[], bool]
CancellableTask = Callable[[threading.Event], bool]


def format_duration(seconds: float) -> str:
    """Render seconds as ``1m30s`` / ``45s`` / ``0.5s`` for error messages."""
    if seconds >= 60:
        minutes, rest = divmod(seconds, 60)
        return f"{int(minutes)}m{rest:g}s"
    return f"{seconds:g}s"


@dataclass
class PollTally:
    """Observation counters for one poll.

    Attributes:
        successes_needed: Consecutive successes required to finish.
        streak: Current run of consecutive successes.
        successes: Total successes observed.
        failures: Not-met observations made after the first success.
        attempts: Total predicate evaluations.
    """

    successes_needed: int = 1
    streak: int = 0
    successes: int = 0
    failures: int = 0
    attempts: int = 0

    def record(self, met: bool) -> bool:
        """Record one observation and report whether the poll is satisfied."""
        self.attempts += 1
        if met:
            self.streak += 1
            self.successes += 1
            return self.streak >= self.successes_needed
        self.streak = 0
        if self.successes >= 1:
            self.failures += 1
        return False

    @property
    def crash_looping(self) -> bool:
        return self.successes >= 1 and self.failures >= self.successes_needed


def _wait_within(interval: float, timeout: float) -> Callable[[RetryCallState], float]:
    """Fixed wait clamped so the last sleep ends on the deadline."""

    def _wait(retry_state: RetryCallState) -> float:
        elapsed = retry_state.seconds_since_start or 0.0
        return max(0.0, min(interval, timeout - elapsed))

    return _wait


def _progress_dot(retry_state: RetryCallState) -> None:
    console.print(".", end="")


def poll_until(
    check: Check,
    *,
    interval: float,
    timeout: float,
    target: str,
    waiting_for: str,
    successes_needed: int = 1,
    cancel: threading.Event | None = None,
) -> bool:
    """Evaluate *check* until it has been met *successes_needed* times in a row.

    Args:
        check: Returns True when the condition holds, False when it does not
            hold yet; raises to abort the poll.
        interval: Seconds to sleep between attempts.
        timeout: Seconds after which no new attempt is started.
        target: Identity of what is polled, e.g. ``Pod (web) in namespace (default)``.
        waiting_for: Condition description, e.g. ``to become ready``.
        successes_needed: Consecutive successes required. After the first
            success, this many not-met observations is treated as a crash loop.
        cancel: Event that stops the poll after its current attempt.

    Returns:
        True once the condition has been met.

    Raises:
        PodTimeoutError: If the deadline passes first.
        CrashLoopError: If the condition flaps after first being met.
        PollCancelledError: If *cancel* is set.
        PodHarnessError: Whatever *check* raises.
    """
    if successes_needed < 1:
        raise ValueError("successes_needed must be at least 1")
    cancel = cancel or threading.Event()
    tally = PollTally(successes_needed=successes_needed)
    started = time.monotonic()

    def _attempt() -> bool:
        if cancel.is_set() or (tally.attempts and time.monotonic() - started >= timeout):
            return _give_up()
        done = tally.record(check())
        if tally.crash_looping:
            raise CrashLoopError(
                f"{target} has been observed {tally.successes} times as met, but {tally.failures} "
                f"times as not met while waiting {waiting_for}. This behavior may mean it is in a crashloop"
            )
        return done

    def _give_up(retry_state: RetryCallState | None = None) -> bool:
        if cancel.is_set():
            raise PollCancelledError(f"Cancelled while waiting for {target} {waiting_for}")
        message = f"Timeout exceeded ({format_duration(timeout)}) while waiting for {target} {waiting_for}"
        if successes_needed > 1:
            message += f", got {tally.streak} of {successes_needed} required successful results"
        raise PodTimeoutError(message)

    retryer = Retrying(
        stop=stop_after_delay(timeout) | stop_when_event_set(cancel),
        wait=_wait_within(interval, timeout),
        retry=retry_if_result(lambda done: not done),
        sleep=cancel.wait,
        before_sleep=_progress_dot,
        retry_error_callback=_give_up,
    )
    try:
        return retryer(_attempt)
    finally:
        console.print()
        logger.debug("Poll for %s %s finished after %d attempts", target, waiting_for, tally.attempts)


def fan_out(tasks: Mapping[str, CancellableTask], *, timeout: float, what: str) -> bool:
    """Run one cancellable poll per item concurrently; first failure wins.

    Each task receives a shared cancellation event. When any task raises, the
    event is set, the remaining tasks are abandoned (they stop after their
    current attempt) and the error is re-raised without waiting for them.

    Args:
        tasks: Mapping of item name to task.
        timeout: Overall seconds to wait for every task.
        what: Description used in the timeout message.

    Returns:
        True once every task reported success.

    Raises:
        PodTimeoutError: If the overall deadline passes first.
        PodHarnessError: The first error raised by any task, or a task that
            finished without reporting success.
    """
    if not tasks:
        logger.warning("No items to check while waiting for %s", what)
        return True

    cancel = threading.Event()

    def _run_task(name: str, fn: CancellableTask) -> bool:
        with console.captured(name):
            return fn(cancel)

    executor = ThreadPoolExecutor(max_workers=len(tasks))
    try:
        futures = {executor.submit(_run_task, name, fn): name for name, fn in tasks.items()}
        try:
            for future in as_completed(futures, timeout=timeout):
                name = futures[future]
                if not future.result():
                    raise PodHarnessError(f"{name} did not report success while waiting for {what}")
                logger.info("%s: check passed", name)
        except FuturesTimeoutError as err:
            raise PodTimeoutError(
                f"Timeout exceeded ({format_duration(timeout)}) while waiting for {what}"
            ) from err
    except BaseException:
        cancel.set()
        raise
    finally:
        executor.shutdown(wait=False, cancel_futures=True)
    return True
