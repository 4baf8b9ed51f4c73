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


"""Check subcommands (outbound, curl, volume, logs)."""

from __future__ import annotations

import typer
from rich.panel import Panel

from pod_harness import console
from pod_harness.checks import (
    check_outbound_connection_all,
    validate_curl_connection_all,
    validate_log_contents,
    validate_mounted_volume,
)
from pod_harness.commands import common
from pod_harness.config import HarnessConfig
from pod_harness.constants import OMS_AGENT_LOG_PATH
from pod_harness.errors import PodHarnessError
from pod_harness.kubectl import Kubectl
from pod_harness.models import Pod
from pod_harness.platforms import OSType
from pod_harness.pods import get, get_all_by_prefix

app = typer.Typer(help="Validate conditions inside running pods.")


def _matching_pods(client: Kubectl, prefix: str, namespace: str) -> list[Pod]:
    pods = get_all_by_prefix(client, prefix, namespace)
    if not pods:
        raise PodHarnessError(f"No pods match '{prefix}' in namespace '{namespace}'")
    return pods


@app.command()
def outbound(
    prefix: str = typer.Argument(..., help="Pod name or name prefix"),
    os_type: OSType = typer.Option(OSType.LINUX, "--os", help="Pod OS"),
    namespace: str | None = typer.Option(None, "--namespace", "-n", help="Namespace"),
    timeout: float | None = typer.Option(None, "--timeout", help="Seconds per pod before giving up"),
) -> None:
    """Check every matching pod can reach the internet."""
    cfg = HarnessConfig()
    client = common.make_client(cfg)
    pods = _matching_pods(client, prefix, namespace or cfg.namespace)
    console.print(Panel.fit(f"Checking outbound connectivity for {len(pods)} pods", style="bold blue"))
    check_outbound_connection_all(
        client, pods, os_type, cfg.poll_interval, timeout or cfg.poll_timeout, cfg.external_urls,
    )
    console.print(f"[green]\u2705 All {len(pods)} pods have outbound connectivity[/green]")


@app.command()
def curl(
    prefix: str = typer.Argument(..., help="Pod name or name prefix"),
    uri: str = typer.Argument(..., help="URI to curl from each pod"),
    namespace: str | None = typer.Option(None, "--namespace", "-n", help="Namespace"),
    timeout: float | None = typer.Option(None, "--timeout", help="Seconds per pod before giving up"),
) -> None:
    """Check every matching Linux pod can curl URI."""
    cfg = HarnessConfig()
    client = common.make_client(cfg)
    pods = _matching_pods(client, prefix, namespace or cfg.namespace)
    console.print(Panel.fit(f"Curling {uri} from {len(pods)} pods", style="bold blue"))
    validate_curl_connection_all(client, pods, uri, cfg.poll_interval, timeout or cfg.poll_timeout)
    console.print(f"[green]\u2705 All {len(pods)} pods reached {uri}[/green]")


@app.command()
def volume(
    name: str = typer.Argument(..., help="Pod name"),
    mount_path: str = typer.Argument(..., help="Mount path inside the pod"),
    os_type: OSType = typer.Option(OSType.LINUX, "--os", help="Pod OS"),
    namespace: str | None = typer.Option(None, "--namespace", "-n", help="Namespace"),
) -> None:
    """Check a volume is mounted and writable in a pod."""
    cfg = HarnessConfig()
    client = common.make_client(cfg)
    pod = get(client, name, namespace or cfg.namespace, cfg.pod_lookup_retries)
    validate_mounted_volume(client, pod, mount_path, os_type, cfg.poll_interval, cfg.poll_timeout)
    console.print(f"[green]\u2705 {mount_path} is mounted in {pod}[/green]")


@app.command()
def logs(
    name: str = typer.Argument(..., help="Pod name"),
    pattern: str = typer.Argument(..., help="Text to find (case-insensitive)"),
    path: str = typer.Option(OMS_AGENT_LOG_PATH, "--path", help="Log file inside the pod"),
    namespace: str | None = typer.Option(None, "--namespace", "-n", help="Namespace"),
) -> None:
    """Wait until a log file inside a pod mentions PATTERN."""
    cfg = HarnessConfig()
    client = common.make_client(cfg)
    pod = get(client, name, namespace or cfg.namespace, cfg.pod_lookup_retries)
    validate_log_contents(client, pod, pattern, path, cfg.poll_interval, cfg.poll_timeout)
    console.print(f"[green]\u2705 {path} in {pod} mentions '{pattern}'[/green]")
