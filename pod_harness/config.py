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


"""Configuration classes and config models."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from pod_harness import console
from pod_harness.constants import (
    DEFAULT_COMMAND_TIMEOUT,
    DEFAULT_DELETE_RETRIES,
    DEFAULT_DELETE_TIMEOUT,
    DEFAULT_EXTERNAL_URLS,
    DEFAULT_KUBECTL,
    DEFAULT_NAMESPACE,
    DEFAULT_POD_LOOKUP_RETRIES,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_POLL_TIMEOUT,
    DEFAULT_READY_SUCCESSES,
)


# ============================================================================
# Configuration classes
# ============================================================================

class HarnessConfig(BaseSettings):
    """Pod harness configuration, auto-loaded from E2E_* env vars.

    Attributes:
        kubectl: Name or path of the kubectl binary to invoke.
        namespace: Namespace used when a caller does not name one.
        poll_interval: Seconds to sleep between poll attempts.
        poll_timeout: Seconds before a poll gives up.
        pod_lookup_retries: Attempts made by a single pod lookup.
        delete_retries: Attempts made when deleting a pod.
        command_timeout: Seconds allowed for logs/describe/exec style calls.
        delete_timeout: Seconds allowed for a single delete call.
        ready_successes: Consecutive Running observations required for readiness.
        external_urls: URLs curled to prove outbound connectivity from Linux pods.
    """

    model_config = SettingsConfigDict(env_prefix="E2E_", extra="ignore")

    kubectl: str = DEFAULT_KUBECTL
    namespace: str = DEFAULT_NAMESPACE
    poll_interval: float = Field(default=DEFAULT_POLL_INTERVAL, gt=0)
    poll_timeout: float = Field(default=DEFAULT_POLL_TIMEOUT, gt=0)
    pod_lookup_retries: int = Field(default=DEFAULT_POD_LOOKUP_RETRIES, ge=1, le=50)
    delete_retries: int = Field(default=DEFAULT_DELETE_RETRIES, ge=1, le=20)
    command_timeout: int = Field(default=DEFAULT_COMMAND_TIMEOUT, ge=1)
    delete_timeout: int = Field(default=DEFAULT_DELETE_TIMEOUT, ge=1)
    ready_successes: int = Field(default=DEFAULT_READY_SUCCESSES, ge=1, le=100)
    external_urls: list[str] = Field(default_factory=lambda: list(DEFAULT_EXTERNAL_URLS), min_length=1)


# ============================================================================
# Validation expectations
# ============================================================================

@dataclass(frozen=True)
class ExpectedResources:
    """Expected resource quantities for a container.

    An empty string means the field is not checked.

    Attributes:
        cpu_requests: Expected CPU request (e.g. ``100m``).
        cpu_limits: Expected CPU limit.
        memory_requests: Expected memory request (e.g. ``128Mi``).
        memory_limits: Expected memory limit.
    """

    cpu_requests: str = ""
    cpu_limits: str = ""
    memory_requests: str = ""
    memory_limits: str = ""


def display_config(cfg: HarnessConfig) -> None:
    """Print the resolved harness configuration.

    Args:
        cfg: Harness configuration to display.
    """
    console.print("[yellow]pod_harness:[/yellow]")
    console.print(f"  kubectl            : {cfg.kubectl}")
    console.print(f"  namespace          : {cfg.namespace}")
    console.print(f"  poll_interval      : {cfg.poll_interval:g}s")
    console.print(f"  poll_timeout       : {cfg.poll_timeout:g}s")
    console.print(f"  pod_lookup_retries : {cfg.pod_lookup_retries}")
    console.print(f"  delete_retries     : {cfg.delete_retries}")
    console.print(f"  command_timeout    : {cfg.command_timeout}s")
    console.print(f"  delete_timeout     : {cfg.delete_timeout}s")
    console.print(f"  ready_successes    : {cfg.ready_successes}")
    console.print(f"  external_urls      : {', '.join(cfg.external_urls)}")
