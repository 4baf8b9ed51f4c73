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


"""Per-OS command shapes for launching pods and probing them."""

from __future__ import annotations

import json
import re
from abc import ABC, abstractmethod
from collections.abc import Sequence
from enum import Enum

from pod_harness.constants import (
    APT_BINARY,
    MOUNT_TEST_DIR,
    NODE_SELECTOR_OS_KEY,
    WINDOWS_CONNECTED_PATTERN,
    WINDOWS_PROBE_HOST,
    WINDOWS_PROBE_PORT,
)


class OSType(str, Enum):
    LINUX = "linux"
    WINDOWS = "windows"


class Platform(ABC):
    """How pods of one OS are launched and inspected.

    Subclasses only build argv lists and interpret output; running them
    inside a pod is left to the caller.
    """

    os_type: OSType

    def overrides(self) -> str:
        """JSON for ``kubectl run --overrides`` pinning the pod to this OS."""
        return json.dumps({"spec": {"nodeSelector": {NODE_SELECTOR_OS_KEY: self.os_type.value}}})

    @abstractmethod
    def shell_command(self, command: str) -> list[str]:
        """Wrap a command string for the OS shell."""

    def setup_commands(self) -> list[list[str]]:
        """Commands to run once before outbound probes."""
        return []

    @abstractmethod
    def outbound_probes(self, urls: Sequence[str]) -> list[list[str]]:
        """Commands proving outbound connectivity; any success is enough."""

    def outbound_succeeded(self, output: str) -> bool:
        return True

    @abstractmethod
    def mount_test_path(self, mount_path: str) -> str:
        """Path of the scratch directory created under a mount."""

    @abstractmethod
    def mkdir_command(self, path: str) -> list[str]: ...

    @abstractmethod
    def list_command(self, path: str) -> list[str]: ...

    def mkdir_succeeded(self, output: str) -> bool:
        return True


class LinuxPlatform(Platform):
    os_type = OSType.LINUX

    def shell_command(self, command: str) -> list[str]:
        return ["/bin/sh", "-c", command]

    def setup_commands(self) -> list[list[str]]:
        return [[APT_BINARY, "update"], [APT_BINARY, "install", "-y", "curl"]]

    def outbound_probes(self, urls: Sequence[str]) -> list[list[str]]:
        return [["curl", url] for url in urls]

    def mount_test_path(self, mount_path: str) -> str:
        return f"{mount_path}/{MOUNT_TEST_DIR}"

    def mkdir_command(self, path: str) -> list[str]:
        return ["mkdir", "-p", path]

    def list_command(self, path: str) -> list[str]:
        return ["ls", path]


class WindowsPlatform(Platform):
    os_type = OSType.WINDOWS

    _connected = re.compile(WINDOWS_CONNECTED_PATTERN)

    def shell_command(self, command: str) -> list[str]:
        return ["powershell", command]

    def outbound_probes(self, urls: Sequence[str]) -> list[list[str]]:
        # TcpClient to a fixed address sidesteps DNS, which Windows pods get late.
        return [[
            "powershell", "New-Object",
            f"System.Net.Sockets.TcpClient('{WINDOWS_PROBE_HOST}', {WINDOWS_PROBE_PORT})",
        ]]

    def outbound_succeeded(self, output: str) -> bool:
        return bool(self._connected.search(output))

    def mount_test_path(self, mount_path: str) -> str:
        return f"{mount_path}\\{MOUNT_TEST_DIR}"

    def mkdir_command(self, path: str) -> list[str]:
        return ["powershell", "mkdir", "-force", path]

    def list_command(self, path: str) -> list[str]:
        return ["powershell", "ls", path]

    def mkdir_succeeded(self, output: str) -> bool:
        return MOUNT_TEST_DIR in output


PLATFORMS: dict[OSType, Platform] = {
    OSType.LINUX: LinuxPlatform(),
    OSType.WINDOWS: WindowsPlatform(),
}


def get_platform(os_type: OSType | str) -> Platform:
    """Look up the platform for an OS name.

    Raises:
        ValueError: If the OS is not supported.
    """
    try:
        return PLATFORMS[OSType(os_type)]
    except ValueError as err:
        raise ValueError(f"Invalid osType {os_type!r}; expected one of {[o.value for o in OSType]}") from err
