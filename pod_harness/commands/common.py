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


"""Helpers shared by the CLI subcommands."""

from __future__ import annotations

from pod_harness import console
from pod_harness.config import HarnessConfig
from pod_harness.kubectl import Kubectl, require_command
from pod_harness.models import Pod


def make_client(cfg: HarnessConfig) -> Kubectl:
    """Build a kubectl client after checking the binary is installed."""
    require_command(cfg.kubectl)
    return Kubectl.from_config(cfg)


def display_pod(pod: Pod) -> None:
    """Print the identifying fields and status of a pod."""
    console.print(f"[yellow]{pod}:[/yellow]")
    console.print(f"  phase     : {pod.phase or '(unknown)'}")
    console.print(f"  node      : {pod.spec.node_name or '(unscheduled)'}")
    console.print(f"  pod_ip    : {pod.status.pod_ip or '-'}")
    console.print(f"  host_ip   : {pod.status.host_ip or '-'}")
    created = pod.metadata.created_at.isoformat() if pod.metadata.created_at else "-"
    console.print(f"  created   : {created}")
    for container in pod.spec.containers:
        console.print(f"  container : {container.name} ({container.image})")
    for status in pod.status.container_statuses:
        console.print(f"  status    : {status.name} ready={status.ready} restarts={status.restart_count}")
