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


"""Wait subcommands (ready, succeeded)."""

from __future__ import annotations

import typer

from pod_harness import console
from pod_harness.commands import common
from pod_harness.config import HarnessConfig
from pod_harness.waits import wait_on_ready, wait_on_succeeded

app = typer.Typer(help="Wait for pods to reach a phase.")


@app.command()
def ready(
    prefix: str = typer.Argument(..., help="Pod name or name prefix"),
    namespace: str | None = typer.Option(None, "--namespace", "-n", help="Namespace"),
    successes: int | None = typer.Option(
        None, "--successes", min=1, help="Consecutive Running observations required (overrides E2E_READY_SUCCESSES)"),
    interval: float | None = typer.Option(None, "--interval", help="Seconds between checks"),
    timeout: float | None = typer.Option(None, "--timeout", help="Seconds before giving up"),
) -> None:
    """Wait until every matching pod is Running."""
    cfg = HarnessConfig()
    client = common.make_client(cfg)
    namespace = namespace or cfg.namespace
    console.print(f"[yellow]\u2139\ufe0f  Waiting for pods '{prefix}' in '{namespace}' to become ready...[/yellow]")
    wait_on_ready(
        client, prefix, namespace,
        successes or cfg.ready_successes,
        interval or cfg.poll_interval,
        timeout or cfg.poll_timeout,
    )
    console.print(f"[green]\u2705 Pods '{prefix}' are ready[/green]")


@app.command()
def succeeded(
    prefix: str = typer.Argument(..., help="Pod name or name prefix"),
    namespace: str | None = typer.Option(None, "--namespace", "-n", help="Namespace"),
    interval: float | None = typer.Option(None, "--interval", help="Seconds between checks"),
    timeout: float | None = typer.Option(None, "--timeout", help="Seconds before giving up"),
) -> None:
    """Wait until every matching pod has Succeeded."""
    cfg = HarnessConfig()
    client = common.make_client(cfg)
    namespace = namespace or cfg.namespace
    console.print(f"[yellow]\u2139\ufe0f  Waiting for pods '{prefix}' in '{namespace}' to succeed...[/yellow]")
    wait_on_succeeded(client, prefix, namespace, interval or cfg.poll_interval, timeout or cfg.poll_timeout)
    console.print(f"[green]\u2705 Pods '{prefix}' succeeded[/green]")
