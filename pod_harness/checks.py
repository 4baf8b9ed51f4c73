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


"""In-pod validation polls: outbound connectivity, curl, logs, mounted volumes."""

from __future__ import annotations

import threading
from collections import Counter
from collections.abc import Iterable, Sequence

from pod_harness import logger
from pod_harness.constants import (
    DEFAULT_EXTERNAL_URLS,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_POLL_TIMEOUT,
    FAN_OUT_TIMEOUT_FACTOR,
    MOUNT_TEST_DIR,
    OMS_AGENT_LOG_PATH,
)
from pod_harness.errors import KubectlError
from pod_harness.kubectl import Kubectl
from pod_harness.models import Pod, PodList
from pod_harness.platforms import OSType, Platform, get_platform
from pod_harness.poller import Check, fan_out, poll_until
from pod_harness.pods import exec_in_pod


def _prepared_probe(client: Kubectl, pod: Pod, platform: Platform, probes: list[list[str]]) -> Check:
    """Build a check that runs the platform's setup once, then tries each probe.

    An attempt is met as soon as one probe exits cleanly and its output is
    accepted by the platform; later probes are not run.
    """
    prepared = False

    def _check() -> bool:
        nonlocal prepared
        if not prepared:
            try:
                for cmd in platform.setup_commands():
                    exec_in_pod(client, pod, *cmd)
            except KubectlError:
                return False
            prepared = True

        for i, cmd in enumerate(probes):
            try:
                out = exec_in_pod(client, pod, *cmd)
            except KubectlError as err:
                if i == len(probes) - 1:
                    logger.warning("Error: %s", err)
                continue
            if platform.outbound_succeeded(out):
                return True
        return False

    return _check


def check_outbound_connection(
    client: Kubectl,
    pod: Pod,
    os_type: OSType | str = OSType.LINUX,
    interval: float = DEFAULT_POLL_INTERVAL,
    timeout: float = DEFAULT_POLL_TIMEOUT,
    urls: Sequence[str] = DEFAULT_EXTERNAL_URLS,
    cancel: threading.Event | None = None,
) -> bool:
    """Poll until *pod* can reach the internet.

    Probe failures are retried until the deadline; pods often come up before
    DNS is usable.

    Raises:
        PodTimeoutError: If no probe succeeds before the deadline.
        ValueError: If *os_type* is not supported.
    """
    platform = get_platform(os_type)
    return poll_until(
        _prepared_probe(client, pod, platform, platform.outbound_probes(urls)),
        interval=interval,
        timeout=timeout,
        target=f"Pod ({pod.name})",
        waiting_for="to check outbound internet connection",
        cancel=cancel,
    )


def validate_curl_connection(
    client: Kubectl,
    pod: Pod,
    uri: str,
    interval: float = DEFAULT_POLL_INTERVAL,
    timeout: float = DEFAULT_POLL_TIMEOUT,
    cancel: threading.Event | None = None,
) -> bool:
    """Poll until a Linux *pod* can curl *uri*."""
    platform = get_platform(OSType.LINUX)
    return poll_until(
        _prepared_probe(client, pod, platform, [["curl", uri]]),
        interval=interval,
        timeout=timeout,
        target=f"Pod ({pod.name})",
        waiting_for=f"to curl uri {uri}",
        cancel=cancel,
    )


def validate_log_contents(
    client: Kubectl,
    pod: Pod,
    pattern: str,
    log_path: str = OMS_AGENT_LOG_PATH,
    interval: float = DEFAULT_POLL_INTERVAL,
    timeout: float = DEFAULT_POLL_TIMEOUT,
) -> bool:
    """Poll until a case-insensitive grep for *pattern* in *log_path* matches."""

    def _grep() -> bool:
        try:
            exec_in_pod(client, pod, "grep", "-i", pattern, log_path)
        except KubectlError:
            return False
        return True

    return poll_until(
        _grep,
        interval=interval,
        timeout=timeout,
        target=f"Pod ({pod.name})",
        waiting_for=f"to write {pattern!r} to {log_path}",
    )


def validate_oms_agent_logs(
    client: Kubectl,
    pod: Pod,
    exec_cmd_string: str,
    interval: float = DEFAULT_POLL_INTERVAL,
    timeout: float = DEFAULT_POLL_TIMEOUT,
) -> bool:
    """Poll until the OMS agent log mentions *exec_cmd_string*."""
    return validate_log_contents(client, pod, exec_cmd_string, OMS_AGENT_LOG_PATH, interval, timeout)


def validate_mounted_volume(
    client: Kubectl,
    pod: Pod,
    mount_path: str,
    os_type: OSType | str = OSType.LINUX,
    interval: float = DEFAULT_POLL_INTERVAL,
    timeout: float = DEFAULT_POLL_TIMEOUT,
) -> bool:
    """Poll until a directory can be created under *mount_path* and listed back."""
    platform = get_platform(os_type)
    test_path = platform.mount_test_path(mount_path)

    def _writable() -> bool:
        try:
            out = exec_in_pod(client, pod, *platform.mkdir_command(test_path))
            if platform.mkdir_succeeded(out):
                out = exec_in_pod(client, pod, *platform.list_command(mount_path))
                if MOUNT_TEST_DIR in out:
                    return True
        except KubectlError as err:
            logger.warning("Error: %s", err)
            return False
        logger.warning("Out: %s", out)
        return False

    return poll_until(
        _writable,
        interval=interval,
        timeout=timeout,
        target=f"Pod ({pod.name})",
        waiting_for=f"to check volume mounted at {mount_path}",
    )


def validate_pvc(client: Kubectl, pod: Pod, mount_path: str, **kwargs) -> bool:
    """Check a persistent volume claim is mounted in a Linux pod."""
    return validate_mounted_volume(client, pod, mount_path, OSType.LINUX, **kwargs)


def validate_azure_file(client: Kubectl, pod: Pod, mount_path: str, **kwargs) -> bool:
    """Check a file share is mounted in a Windows pod."""
    return validate_mounted_volume(client, pod, mount_path, OSType.WINDOWS, **kwargs)


# ============================================================================
# Bulk checks
# ============================================================================

def _keyed_pods(pods: PodList | Iterable[Pod]) -> list[tuple[str, Pod]]:
    """Pair each pod with a unique task name; repeats get a ``#n`` suffix."""
    items = pods.pods if isinstance(pods, PodList) else pods
    seen: Counter[str] = Counter()
    keyed = []
    for pod in items:
        name = str(pod)
        seen[name] += 1
        keyed.append((name if seen[name] == 1 else f"{name} #{seen[name]}", pod))
    return keyed


def check_outbound_connection_all(
    client: Kubectl,
    pods: PodList | Iterable[Pod],
    os_type: OSType | str = OSType.LINUX,
    interval: float = DEFAULT_POLL_INTERVAL,
    timeout: float = DEFAULT_POLL_TIMEOUT,
    urls: Sequence[str] = DEFAULT_EXTERNAL_URLS,
) -> bool:
    """Check outbound connectivity for every pod concurrently; first failure wins."""
    get_platform(os_type)  # reject an unsupported OS before starting threads
    tasks = {
        key: (lambda cancel, pod=pod: check_outbound_connection(
            client, pod, os_type, interval, timeout, urls, cancel=cancel))
        for key, pod in _keyed_pods(pods)
    }
    return fan_out(
        tasks,
        timeout=FAN_OUT_TIMEOUT_FACTOR * timeout,
        what="PodList to check outbound internet connection",
    )


def validate_curl_connection_all(
    client: Kubectl,
    pods: PodList | Iterable[Pod],
    uri: str,
    interval: float = DEFAULT_POLL_INTERVAL,
    timeout: float = DEFAULT_POLL_TIMEOUT,
) -> bool:
    """Check every Linux pod can curl *uri*, concurrently; first failure wins."""
    tasks = {
        key: (lambda cancel, pod=pod: validate_curl_connection(
            client, pod, uri, interval, timeout, cancel=cancel))
        for key, pod in _keyed_pods(pods)
    }
    return fan_out(
        tasks,
        timeout=FAN_OUT_TIMEOUT_FACTOR * timeout,
        what=f"PodList to curl uri {uri}",
    )
