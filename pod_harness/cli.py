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


"""
cli.py - Pod lifecycle helpers for end-to-end testing.

Subcommands:
    pod     Create, inspect and delete pods (run, apply, get, list, delete, logs, describe, exec)
    wait    Wait for pods to reach a phase (ready, succeeded)
    check   Validate conditions inside pods (outbound, curl, volume, logs)
    config  Show the resolved configuration

Examples:
    # Run a busybox pod on a Linux node and wait until it is ready
    pod-harness pod run probe --image busybox --command "sleep 3600"
    pod-harness wait ready probe

    # Apply a manifest with a different image
    pod-harness pod apply nginx.yaml --image myregistry/nginx:2.0

    # Check every pod of a deployment can reach the internet
    pod-harness check outbound web --namespace frontend

Environment Variables:
    Defaults can be overridden via E2E_* environment variables, e.g.
    E2E_KUBECTL, E2E_NAMESPACE, E2E_POLL_INTERVAL, E2E_POLL_TIMEOUT.
"""

from __future__ import annotations

import logging
import sys

import typer

from pod_harness import console
from pod_harness.commands import check_cmd, pod_cmd, wait_cmd
from pod_harness.config import HarnessConfig, display_config
from pod_harness.errors import PodHarnessError

app = typer.Typer(
    help="Pod lifecycle helpers for end-to-end testing.",
    no_args_is_help=True,
)


@app.callback()
def _main_callback() -> None:
    """Initialize logging for all subcommands."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )


@app.command("config")
def config_cmd() -> None:
    """Show the configuration resolved from E2E_* environment variables."""
    display_config(HarnessConfig())


app.add_typer(pod_cmd.app, name="pod")
app.add_typer(wait_cmd.app, name="wait")
app.add_typer(check_cmd.app, name="check")


def main() -> None:
    try:
        app()
    except PodHarnessError as e:
        console.print(f"[red]\u274c {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
