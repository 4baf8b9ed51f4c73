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
Shared pytest fixtures for pod_harness tests.

FakeKubectl stands in for the kubectl binary: tests register regex patterns
against the space-joined kubectl arguments and the canned responses to
return, then inspect the recorded calls.
"""

from __future__ import annotations

import json
import re
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import pytest

from pod_harness.errors import KubectlError
from pod_harness.kubectl import Kubectl


@dataclass
class FakeResponse:
    """Canned kubectl result; a non-zero exit code raises KubectlError."""

    output: str = ""
    exit_code: int = 0


Responder = FakeResponse | Callable[[tuple[str, ...]], FakeResponse]


class FakeKubectl(Kubectl):
    """Kubectl double answering from pattern-registered responses.

    Each pattern owns a queue of responses consumed in order; the last one
    repeats. The first registered pattern that matches wins.

    Usage:
        def test_lookup(fake_kubectl):
            fake_kubectl.register(r"^get pods web ", ok(pod_json("web")))
            pod = get(fake_kubectl, "web", "default")
            assert fake_kubectl.count(r"^get pods web ") == 1
    """

    def __init__(self) -> None:
        super().__init__(binary="kubectl")
        self._routes: list[tuple[re.Pattern[str], list[Responder]]] = []
        self.calls: list[tuple[str, ...]] = []
        self._lock = threading.Lock()

    def register(self, pattern: str, *responses: Responder) -> FakeKubectl:
        self._routes.append((re.compile(pattern), list(responses)))
        return self

    def run(self, *args: str, timeout: float | None = None, log_output: bool = False) -> str:
        command = " ".join(args)
        with self._lock:
            self.calls.append(args)
            for pattern, queue in self._routes:
                if pattern.search(command):
                    responder = queue.pop(0) if len(queue) > 1 else queue[0]
                    break
            else:
                responder = FakeResponse(f"error: no fake registered for '{command}'", 1)
        response = responder(args) if callable(responder) else responder
        if response.exit_code:
            raise KubectlError([self.binary, *args], response.output, response.exit_code)
        return response.output

    def matching(self, pattern: str) -> list[tuple[str, ...]]:
        regex = re.compile(pattern)
        with self._lock:
            return [call for call in self.calls if regex.search(" ".join(call))]

    def count(self, pattern: str) -> int:
        return len(self.matching(pattern))


def ok(payload: Any = "") -> FakeResponse:
    """Successful response; dicts are serialized as kubectl JSON."""
    if isinstance(payload, dict):
        payload = json.dumps(payload)
    return FakeResponse(payload)


def fail(output: str = "Error from server", exit_code: int = 1) -> FakeResponse:
    return FakeResponse(output, exit_code)


def pod_json(
    name: str,
    namespace: str = "default",
    phase: str = "Running",
    containers: list[dict[str, Any]] | None = None,
    **status: Any,
) -> dict[str, Any]:
    """Minimal ``kubectl get pod -o json`` document."""
    if containers is None:
        containers = [{"name": "main", "image": "busybox"}]
    return {
        "apiVersion": "v1",
        "kind": "Pod",
        "metadata": {"name": name, "namespace": namespace},
        "spec": {"containers": containers},
        "status": {"phase": phase, **status},
    }


def pod_list_json(*pods: dict[str, Any]) -> dict[str, Any]:
    return {"apiVersion": "v1", "kind": "List", "items": list(pods)}


@pytest.fixture
def fake_kubectl() -> FakeKubectl:
    return FakeKubectl()
