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


"""Exception hierarchy for pod operations and polls."""

from __future__ import annotations

from collections.abc import Sequence


class PodHarnessError(RuntimeError):
    """Base class for every error raised by pod_harness."""


class KubectlError(PodHarnessError):
    """A kubectl (or ssh) invocation failed, exited non-zero or timed out.

    Attributes:
        argv: Full command line that was run.
        output: Combined stdout/stderr captured from the command.
        exit_code: Process exit code, or None when the command timed out.
    """

    def __init__(self, argv: Sequence[str], output: str, exit_code: int | None = None) -> None:
        self.argv = list(argv)
        self.output = output
        self.exit_code = exit_code
        if exit_code is None:
            reason = "timed out"
        else:
            reason = f"exited with code {exit_code}"
        super().__init__(f"'{' '.join(self.argv)}' {reason}: {output.strip()[:500]}")


class PodDecodeError(PodHarnessError):
    """kubectl output could not be decoded into the pod model."""

    def __init__(self, message: str, raw: str) -> None:
        self.raw = raw
        super().__init__(message)


class PodTimeoutError(PodHarnessError):
    """A poll ran out of time before its condition was met."""


class PodFailedError(PodHarnessError):
    """A pod was observed in a terminal state that can never satisfy the poll."""


class CrashLoopError(PodFailedError):
    """A pod flapped between ready and not-ready after first becoming ready."""


class PollCancelledError(PodHarnessError):
    """A poll was stopped because its cancellation token was set."""


class ResourceMismatchError(PodHarnessError):
    """A container resource did not match the expected quantity.

    Attributes:
        field: Human readable name of the compared resource.
        expected: Expected quantity.
        actual: Observed quantity.
    """

    def __init__(self, field: str, expected: str, actual: str) -> None:
        self.field = field
        self.expected = expected
        self.actual = actual
        super().__init__(f"expected {field} {expected} does not match {actual}")


class NotFoundError(PodHarnessError, LookupError):
    """A lookup key (environment variable, container argument) is absent."""
