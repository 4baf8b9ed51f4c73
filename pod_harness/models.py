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


"""Pydantic models of the pod JSON emitted by ``kubectl get pods -o json``."""

from __future__ import annotations

from datetime import datetime
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from pod_harness.config import ExpectedResources
from pod_harness.errors import NotFoundError, PodDecodeError, ResourceMismatchError

ModelT = TypeVar("ModelT", bound=BaseModel)


class _KubeModel(BaseModel):
    """Immutable snapshot; unknown fields ignored, missing or null fields defaulted."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        # kubectl prints null for unset fields (e.g. startedAt of a container that never ran)
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


# ============================================================================
# Container spec
# ============================================================================

class Port(_KubeModel):
    container_port: int = 0
    host_port: int = 0


class EnvVar(_KubeModel):
    name: str = ""
    value: str = ""


class ResourceQuantities(_KubeModel):
    cpu: str = ""
    memory: str = ""


class Resources(_KubeModel):
    requests: ResourceQuantities = Field(default_factory=ResourceQuantities)
    limits: ResourceQuantities = Field(default_factory=ResourceQuantities)


class Container(_KubeModel):
    """A container from a pod spec."""

    name: str = ""
    image: str = ""
    ports: list[Port] = Field(default_factory=list)
    env: list[EnvVar] = Field(default_factory=list)
    resources: Resources = Field(default_factory=Resources)
    args: list[str] = Field(default_factory=list)

    def validate_resources(self, expected: ExpectedResources) -> None:
        """Check CPU/memory requests and limits against *expected*.

        Fields are compared in order (CPU requests, CPU limits, memory
        requests, memory limits); empty expectations are skipped.

        Raises:
            ResourceMismatchError: On the first mismatching field.
        """
        comparisons = [
            ("CPU requests", expected.cpu_requests, self.resources.requests.cpu),
            ("CPU limits", expected.cpu_limits, self.resources.limits.cpu),
            ("Memory requests", expected.memory_requests, self.resources.requests.memory),
            ("Memory limits", expected.memory_limits, self.resources.limits.memory),
        ]
        for field, want, got in comparisons:
            if want and want != got:
                raise ResourceMismatchError(field, want, got)

    def get_environment_variable(self, var_name: str) -> str:
        """Return the value of environment variable *var_name*.

        Raises:
            NotFoundError: If the container does not declare it.
        """
        for env_var in self.env:
            if env_var.name == var_name:
                return env_var.value
        raise NotFoundError(f"environment variable {var_name} not found in container {self.name}")

    def get_arg(self, arg_key: str) -> str:
        """Return the value of the first ``key=value`` argument containing *arg_key*.

        Raises:
            NotFoundError: If no argument contains the key.
        """
        for arg in self.args:
            if arg_key in arg:
                _, sep, value = arg.partition("=")
                if not sep:
                    raise NotFoundError(f"container argument {arg!r} has no value")
                return value
        raise NotFoundError(f"container argument {arg_key} not found in container {self.name}")


# ============================================================================
# Container status
# ============================================================================

class TerminatedContainerState(_KubeModel):
    container_id: str = Field(default="", alias="containerID")
    exit_code: int = 0
    finished_at: datetime | None = None
    reason: str = ""
    started_at: datetime | None = None


class ContainerState(_KubeModel):
    terminated: TerminatedContainerState = Field(default_factory=TerminatedContainerState)


class ContainerStatus(_KubeModel):
    container_id: str = Field(default="", alias="containerID")
    image: str = ""
    image_id: str = Field(default="", alias="imageID")
    name: str = ""
    ready: bool = False
    restart_count: int = 0
    state: ContainerState = Field(default_factory=ContainerState)
    last_state: ContainerState = Field(default_factory=ContainerState)


# ============================================================================
# Pod
# ============================================================================

class Metadata(_KubeModel):
    name: str = ""
    namespace: str = ""
    created_at: datetime | None = Field(default=None, alias="creationTimestamp")
    labels: dict[str, str] = Field(default_factory=dict)


class Spec(_KubeModel):
    containers: list[Container] = Field(default_factory=list)
    node_name: str = ""


class Status(_KubeModel):
    host_ip: str = Field(default="", alias="hostIP")
    pod_ip: str = Field(default="", alias="podIP")
    phase: str = ""
    start_time: datetime | None = None
    container_statuses: list[ContainerStatus] = Field(default_factory=list)


class Pod(_KubeModel):
    """A pod snapshot as returned by kubectl."""

    metadata: Metadata = Field(default_factory=Metadata)
    spec: Spec = Field(default_factory=Spec)
    status: Status = Field(default_factory=Status)

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str:
        return self.metadata.namespace

    @property
    def phase(self) -> str:
        return self.status.phase

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


class PodList(_KubeModel):
    """Pods returned by a bulk ``get pods`` query."""

    pods: list[Pod] = Field(default_factory=list, alias="items")


def decode(model: type[ModelT], data: dict[str, Any], raw: str = "") -> ModelT:
    """Validate decoded kubectl JSON into *model*.

    Raises:
        PodDecodeError: If the JSON does not fit the model.
    """
    try:
        return model.model_validate(data)
    except ValidationError as err:
        raise PodDecodeError(f"unexpected {model.__name__} JSON shape: {err}", raw) from err
