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


"""Injectable kubectl client built on sh."""

from __future__ import annotations

import json
from collections.abc import Sequence

import sh

from pod_harness import logger
from pod_harness.config import HarnessConfig
from pod_harness.errors import KubectlError, PodDecodeError, PodHarnessError
from pod_harness.models import ModelT, decode


def require_command(cmd: str) -> None:
    """Check if a command exists on the system PATH.

    Args:
        cmd: Name of the CLI command to check.

    Raises:
        PodHarnessError: If the command is not found.
    """
    try:
        sh.which(cmd)
    except (sh.ErrorReturnCode, sh.CommandNotFound) as err:
        raise PodHarnessError(f"Required command '{cmd}' not found. Please install it first.") from err


def run_command(argv: Sequence[str], timeout: float | None = None, log_output: bool = False) -> str:
    """Run a command and return its combined stdout/stderr.

    Args:
        argv: Program name followed by its arguments.
        timeout: Seconds before the command is killed, or None for no limit.
        log_output: Whether to log the captured output once the command ends.

    Returns:
        Combined output decoded as text.

    Raises:
        KubectlError: If the program is missing, exits non-zero, or times out.
    """
    argv = [str(arg) for arg in argv]
    logger.info("$ %s", " ".join(argv))
    try:
        program = sh.Command(argv[0])
    except sh.CommandNotFound as err:
        raise KubectlError(argv, f"command not found: {err}", exit_code=127) from err

    try:
        output = str(program(*argv[1:], _err_to_out=True, _tty_out=False, _timeout=timeout))
    except sh.TimeoutException as err:
        raise KubectlError(argv, f"no result after {timeout}s") from err
    except sh.ErrorReturnCode as err:
        output = err.stdout.decode(errors="replace")
        if log_output:
            logger.info("\n%s", output)
        raise KubectlError(argv, output, exit_code=err.exit_code) from err

    if log_output:
        logger.info("\n%s", output)
    return output


class Kubectl:
    """Thin kubectl capability shared by pod operations and pollers.

    Tests substitute a subclass that overrides :meth:`run`.
    """

    def __init__(self, binary: str = "kubectl", default_timeout: float | None = None) -> None:
        self.binary = binary
        self.default_timeout = default_timeout

    @classmethod
    def from_config(cls, cfg: HarnessConfig) -> Kubectl:
        """Build a client from the harness configuration."""
        return cls(binary=cfg.kubectl, default_timeout=cfg.command_timeout)

    def run(self, *args: str, timeout: float | None = None, log_output: bool = False) -> str:
        """Run ``kubectl <args>`` and return combined output.

        Raises:
            KubectlError: On non-zero exit or timeout.
        """
        if timeout is None:
            timeout = self.default_timeout
        return run_command([self.binary, *args], timeout=timeout, log_output=log_output)

    def get_model(self, model: type[ModelT], *args: str, timeout: float | None = None) -> ModelT:
        """Run ``kubectl get <args> -o json`` and decode the output into *model*.

        Raises:
            KubectlError: On non-zero exit or timeout.
            PodDecodeError: If the output is not a JSON object of the model's
                shape; the error carries the raw output.
        """
        out = self.run("get", *args, "-o", "json", timeout=timeout)
        try:
            data = json.loads(out)
        except json.JSONDecodeError as err:
            logger.error("Error unmarshalling pods json: %s", err)
            raise PodDecodeError(f"invalid JSON from 'get {' '.join(args)}': {err}", out) from err
        if not isinstance(data, dict):
            raise PodDecodeError(f"expected a JSON object from 'get {' '.join(args)}'", out)
        return decode(model, data, raw=out)
