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


"""Pod subcommands (run, apply, get, list, delete, logs, describe, exec)."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.panel import Panel

from pod_harness import console
from pod_harness.commands import common
from pod_harness.config import HarnessConfig
from pod_harness.manifest import replace_container_image_from_file
from pod_harness.platforms import OSType
from pod_harness.pods import (
    create_pod_from_file,
    create_pod_from_file_if_not_exist,
    delete_pod,
    describe_pod,
    exec_in_pod,
    get,
    get_all_by_prefix,
    pod_logs,
    run_pod,
)

app = typer.Typer(help="Create, inspect and delete pods.")


@app.command()
def run(
    name: str = typer.Argument(..., help="Pod name"),
    image: str = typer.Option(..., "--image", help="Container image"),
    command: str = typer.Option(..., "--command", help="Shell command to run in the pod"),
    os_type: OSType = typer.Option(OSType.LINUX, "--os", help="Node OS to schedule on"),
    namespace: str | None = typer.Option(None, "--namespace", "-n", help="Namespace"),
    print_output: bool = typer.Option(False, "--print-output", help="Log kubectl run output"),
) -> None:
    """Run a bare pod executing a shell command."""
    cfg = HarnessConfig()
    client = common.make_client(cfg)
    console.print(Panel.fit(f"Running pod {name} ({os_type.value})", style="bold blue"))
    pod = run_pod(
        client, image, name, namespace or cfg.namespace, command, os_type,
        print_output=print_output,
        interval=cfg.poll_interval,
        timeout=cfg.poll_timeout,
        command_timeout=cfg.command_timeout,
        retries=cfg.pod_lookup_retries,
    )
    common.display_pod(pod)


@app.command()
def apply(
    manifest: Path = typer.Argument(..., exists=True, dir_okay=False, help="Pod manifest"),
    name: str | None = typer.Option(None, "--name", help="Pod name (default: from manifest)"),
    image: str | None = typer.Option(None, "--image", help="Rewrite every image: line to this image"),
    namespace: str | None = typer.Option(None, "--namespace", "-n", help="Namespace"),
    if_not_exist: bool = typer.Option(False, "--if-not-exist", help="Skip apply when the pod exists"),
) -> None:
    """Create a pod from a manifest and wait until it can be fetched."""
    cfg = HarnessConfig()
    client = common.make_client(cfg)
    filename: str | Path = manifest
    if image is not None:
        filename = replace_container_image_from_file(manifest, image)
        console.print(f"[yellow]\u2139\ufe0f  Rewrote images to {image} in {filename}[/yellow]")

    create = create_pod_from_file_if_not_exist if if_not_exist else create_pod_from_file
    pod = create(
        client, filename, name, namespace or cfg.namespace,
        cfg.poll_interval, cfg.poll_timeout, cfg.pod_lookup_retries,
    )
    common.display_pod(pod)


@app.command("get")
def get_cmd(
    name: str = typer.Argument(..., help="Pod name"),
    namespace: str | None = typer.Option(None, "--namespace", "-n", help="Namespace"),
) -> None:
    """Show a pod."""
    cfg = HarnessConfig()
    client = common.make_client(cfg)
    common.display_pod(get(client, name, namespace or cfg.namespace, cfg.pod_lookup_retries))


@app.command("list")
def list_cmd(
    prefix: str = typer.Argument(..., help="Pod name prefix"),
    namespace: str | None = typer.Option(None, "--namespace", "-n", help="Namespace"),
) -> None:
    """Show every pod whose name starts with PREFIX."""
    cfg = HarnessConfig()
    client = common.make_client(cfg)
    pods = get_all_by_prefix(client, prefix, namespace or cfg.namespace)
    if not pods:
        console.print(f"[yellow]\u26a0\ufe0f  No pods match '{prefix}'[/yellow]")
    for pod in pods:
        common.display_pod(pod)


@app.command()
def delete(
    name: str = typer.Argument(..., help="Pod name"),
    namespace: str | None = typer.Option(None, "--namespace", "-n", help="Namespace"),
) -> None:
    """Delete a pod."""
    cfg = HarnessConfig()
    client = common.make_client(cfg)
    pod = get(client, name, namespace or cfg.namespace, cfg.pod_lookup_retries)
    delete_pod(client, pod, cfg.delete_retries, cfg.delete_timeout)
    console.print(f"[green]\u2705 Pod '{pod}' deleted[/green]")


@app.command()
def logs(
    name: str = typer.Argument(..., help="Pod name"),
    namespace: str | None = typer.Option(None, "--namespace", "-n", help="Namespace"),
) -> None:
    """Print the logs of every container in a pod."""
    cfg = HarnessConfig()
    client = common.make_client(cfg)
    pod = get(client, name, namespace or cfg.namespace, cfg.pod_lookup_retries)
    typer.echo(pod_logs(client, pod, cfg.command_timeout), nl=False)


@app.command()
def describe(
    name: str = typer.Argument(..., help="Pod name"),
    namespace: str | None = typer.Option(None, "--namespace", "-n", help="Namespace"),
) -> None:
    """Print ``kubectl describe`` output for a pod."""
    cfg = HarnessConfig()
    client = common.make_client(cfg)
    pod = get(client, name, namespace or cfg.namespace, cfg.pod_lookup_retries)
    typer.echo(describe_pod(client, pod, cfg.command_timeout), nl=False)


@app.command("exec")
def exec_cmd(
    name: str = typer.Argument(..., help="Pod name"),
    command: list[str] = typer.Argument(..., help="Command and arguments to run"),
    namespace: str | None = typer.Option(None, "--namespace", "-n", help="Namespace"),
) -> None:
    """Run a command inside a pod."""
    cfg = HarnessConfig()
    client = common.make_client(cfg)
    pod = get(client, name, namespace or cfg.namespace, cfg.pod_lookup_retries)
    typer.echo(exec_in_pod(client, pod, *command, timeout=cfg.command_timeout), nl=False)
