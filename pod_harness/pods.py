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


"""One-shot kubectl wrappers: create, get, run, exec, delete, logs, describe."""

from __future__ import annotations

import re
import threading
from collections.abc import Callable, Sequence
from pathlib import Path

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    wait_fixed,
)

from pod_harness import logger
from pod_harness.constants import (
    CREATE_IF_NOT_EXIST_LOOKUP_RETRIES,
    DEFAULT_COMMAND_TIMEOUT,
    DEFAULT_DELETE_RETRIES,
    DEFAULT_DELETE_TIMEOUT,
    DEFAULT_POD_LOOKUP_RETRIES,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_POLL_TIMEOUT,
    HOST_PORT_CURL_MAX_TIME,
    IMAGE_PULL_POLICY,
    PHASE_FAILED,
    PHASE_RUNNING,
    PHASE_SUCCEEDED,
    RESTART_POLICY,
    SSH_CONNECT_TIMEOUT,
)
from pod_harness.errors import KubectlError, PodDecodeError
from pod_harness.kubectl import Kubectl, run_command
from pod_harness.manifest import pod_name_from_manifest
from pod_harness.models import Pod, PodList
from pod_harness.platforms import OSType, get_platform
from pod_harness.poller import poll_until

CommandRunner = Callable[..., str]


# ============================================================================
# Lookups
# ============================================================================

def pod_name_matches(name: str, prefix: str) -> bool:
    """True if *name* is *prefix* itself or *prefix* followed by ``-``."""
    return re.match(rf"{re.escape(prefix)}(-|$)", name) is not None


def get_all(client: Kubectl, namespace: str) -> PodList:
    """Return all pods in a namespace.

    Raises:
        KubectlError: If the query fails.
        PodDecodeError: If the output does not decode.
    """
    try:
        return client.get_model(PodList, "pods", "-n", namespace)
    except KubectlError:
        logger.error("Error getting pods in namespace %s", namespace)
        raise


def _log_lookup_retry(retry_state: RetryCallState) -> None:
    err = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning("Error getting pod (attempt %d): %s", retry_state.attempt_number, err)


def get(client: Kubectl, pod_name: str, namespace: str, retries: int = DEFAULT_POD_LOOKUP_RETRIES) -> Pod:
    """Return a pod by name, retrying kubectl failures up to *retries* times.

    Decode errors are not retried.

    Raises:
        KubectlError: If every attempt fails.
        PodDecodeError: If the output does not decode.
    """
    retryer = Retrying(
        stop=stop_after_attempt(retries),
        retry=retry_if_exception_type(KubectlError),
        before_sleep=_log_lookup_retry,
        reraise=True,
    )
    return retryer(client.get_model, Pod, "pods", pod_name, "-n", namespace)


def get_terminated(client: Kubectl, pod_name: str, namespace: str) -> Pod:
    """Return a pod by name with a single attempt, including terminated pods."""
    return client.get_model(Pod, "pods", pod_name, "-n", namespace)


def get_with_retry(
    client: Kubectl,
    pod_prefix: str,
    namespace: str,
    interval: float = DEFAULT_POLL_INTERVAL,
    timeout: float = DEFAULT_POLL_TIMEOUT,
    retries: int = DEFAULT_POD_LOOKUP_RETRIES,
    cancel: threading.Event | None = None,
) -> Pod:
    """Poll until a pod lookup succeeds.

    Raises:
        PodTimeoutError: If the pod cannot be fetched before the deadline.
    """
    found: list[Pod] = []

    def _lookup() -> bool:
        try:
            found[:] = [get(client, pod_prefix, namespace, retries)]
        except (KubectlError, PodDecodeError) as err:
            logger.warning("Error getting pod %s in namespace %s: %s", pod_prefix, namespace, err)
            return False
        return True

    poll_until(
        _lookup,
        interval=interval,
        timeout=timeout,
        target=f"Pod ({pod_prefix}) in namespace ({namespace})",
        waiting_for="to be retrievable",
        cancel=cancel,
    )
    return found[0]


def get_all_by_prefix(client: Kubectl, prefix: str, namespace: str) -> list[Pod]:
    """Return pods in a namespace whose names match an anchored prefix."""
    return [p for p in get_all(client, namespace).pods if pod_name_matches(p.name, prefix)]


def are_all_pods_running(client: Kubectl, pod_prefix: str, namespace: str) -> bool:
    """True if at least one pod matches *pod_prefix* and every match is Running."""
    pods = get_all_by_prefix(client, pod_prefix, namespace)
    return bool(pods) and all(p.phase == PHASE_RUNNING for p in pods)


def are_all_pods_succeeded(client: Kubectl, pod_prefix: str, namespace: str) -> tuple[bool, bool]:
    """Report ``(all_succeeded, any_failed)`` for pods matching *pod_prefix*.

    No matching pods reports ``(False, False)``.
    """
    pods = get_all_by_prefix(client, pod_prefix, namespace)
    if any(p.phase == PHASE_FAILED for p in pods):
        return False, True
    return bool(pods) and all(p.phase == PHASE_SUCCEEDED for p in pods), False


# ============================================================================
# Creation
# ============================================================================

def create_pod_from_file(
    client: Kubectl,
    filename: str | Path,
    name: str | None = None,
    namespace: str = "default",
    interval: float = DEFAULT_POLL_INTERVAL,
    timeout: float = DEFAULT_POLL_TIMEOUT,
    retries: int = DEFAULT_POD_LOOKUP_RETRIES,
) -> Pod:
    """Apply a manifest and wait until the pod can be fetched.

    Args:
        client: kubectl client.
        filename: Manifest path.
        name: Pod name; read from the manifest when omitted.
        namespace: Namespace the pod lands in.
        interval: Seconds between lookups.
        timeout: Seconds before giving up on the lookup.
        retries: kubectl attempts per lookup.
    """
    name = name or pod_name_from_manifest(filename)
    try:
        client.run("apply", "-f", str(filename))
    except KubectlError as err:
        logger.error("Error trying to create Pod %s: %s", name, err.output)
        raise
    return get_with_retry(client, name, namespace, interval, timeout, retries)


def create_pod_from_file_if_not_exist(
    client: Kubectl,
    filename: str | Path,
    name: str | None = None,
    namespace: str = "default",
    interval: float = DEFAULT_POLL_INTERVAL,
    timeout: float = DEFAULT_POLL_TIMEOUT,
    retries: int = DEFAULT_POD_LOOKUP_RETRIES,
) -> Pod:
    """Return the named pod if it exists, otherwise create it from the manifest."""
    name = name or pod_name_from_manifest(filename)
    try:
        return get(client, name, namespace, CREATE_IF_NOT_EXIST_LOOKUP_RETRIES)
    except KubectlError:
        return create_pod_from_file(client, filename, name, namespace, interval, timeout, retries)


def run_pod(
    client: Kubectl,
    image: str,
    name: str,
    namespace: str,
    command: str,
    os_type: OSType | str = OSType.LINUX,
    print_output: bool = False,
    interval: float = DEFAULT_POLL_INTERVAL,
    timeout: float = DEFAULT_POLL_TIMEOUT,
    command_timeout: float = DEFAULT_COMMAND_TIMEOUT,
    retries: int = DEFAULT_POD_LOOKUP_RETRIES,
) -> Pod:
    """Launch a bare pod running *command* in the OS shell, pinned to that OS.

    Raises:
        KubectlError: If ``kubectl run`` fails.
        PodTimeoutError: If the pod cannot be fetched afterwards.
    """
    platform = get_platform(os_type)
    try:
        client.run(
            "run", name, "-n", namespace,
            "--image", image,
            f"--image-pull-policy={IMAGE_PULL_POLICY}",
            f"--restart={RESTART_POLICY}",
            "--overrides", platform.overrides(),
            "--command", "--", *platform.shell_command(command),
            timeout=command_timeout,
            log_output=print_output,
        )
    except KubectlError as err:
        logger.error("Error trying to deploy %s [%s] in namespace %s: %s", name, image, namespace, err.output)
        raise
    return get_with_retry(client, name, namespace, interval, timeout, retries)


def run_linux_pod(client: Kubectl, image: str, name: str, namespace: str, command: str, **kwargs) -> Pod:
    """Run a pod that executes a ``/bin/sh -c`` command on a Linux node."""
    return run_pod(client, image, name, namespace, command, OSType.LINUX, **kwargs)


def run_windows_pod(client: Kubectl, image: str, name: str, namespace: str, command: str, **kwargs) -> Pod:
    """Run a pod that executes a powershell command on a Windows node."""
    return run_pod(client, image, name, namespace, command, OSType.WINDOWS, **kwargs)


# ============================================================================
# Operations on a pod
# ============================================================================

def exec_in_pod(client: Kubectl, pod: Pod, *command: str, timeout: float | None = None) -> str:
    """Run a command inside *pod* and return its combined output.

    Raises:
        KubectlError: If the command exits non-zero.
    """
    try:
        return client.run("exec", pod.name, "-n", pod.namespace, "--", *command, timeout=timeout)
    except KubectlError as err:
        logger.warning("Error trying to run 'kubectl exec': %s", err.output)
        logger.warning("Command: kubectl exec %s -n %s -- %s", pod.name, pod.namespace, " ".join(command))
        raise


def delete_pod(
    client: Kubectl,
    pod: Pod,
    retries: int = DEFAULT_DELETE_RETRIES,
    timeout: float = DEFAULT_DELETE_TIMEOUT,
) -> None:
    """Delete *pod*, retrying failed deletes up to *retries* times.

    Raises:
        KubectlError: If every attempt fails.
    """

    def _log_delete_retry(retry_state: RetryCallState) -> None:
        logger.warning("Error while trying to delete Pod %s in namespace %s", pod.name, pod.namespace)

    retryer = Retrying(
        stop=stop_after_attempt(retries),
        retry=retry_if_exception_type(KubectlError),
        before_sleep=_log_delete_retry,
        reraise=True,
    )
    retryer(client.run, "delete", "po", "-n", pod.namespace, pod.name, timeout=timeout, log_output=True)


def pod_logs(client: Kubectl, pod: Pod, timeout: float = DEFAULT_COMMAND_TIMEOUT) -> str:
    """Fetch and log the logs of every container in *pod*.

    Raises:
        KubectlError: On the first container whose logs cannot be fetched.
    """
    chunks = []
    for container in pod.spec.containers:
        chunks.append(client.run(
            "logs", pod.name, "-c", container.name, "-n", pod.namespace,
            timeout=timeout, log_output=True,
        ))
    return "".join(chunks)


def describe_pod(client: Kubectl, pod: Pod, timeout: float = DEFAULT_COMMAND_TIMEOUT) -> str:
    """Return and log ``kubectl describe pod`` output."""
    return client.run("describe", "pod", pod.name, "-n", pod.namespace, timeout=timeout, log_output=True)


def validate_host_port(
    pod: Pod,
    check: str,
    attempts: int,
    interval: float,
    master: str,
    ssh_key_path: str,
    runner: CommandRunner = run_command,
) -> bool:
    """Curl the pod's hostIP:hostPort from *master* over ssh until *check* matches.

    Args:
        pod: Pod whose first container declares a host port.
        check: Regex expected in the curl output.
        attempts: Maximum curl attempts.
        interval: Seconds between attempts.
        master: ssh destination (``user@host``).
        ssh_key_path: Private key for ssh.
        runner: Command runner, replaceable in tests.

    Returns:
        True once the output matches, False if no attempt matched.
    """
    containers = pod.spec.containers
    if not containers or not containers[0].ports:
        logger.error("Unexpected POD container spec: %s. Should have hostPort.", pod.spec)
        return False
    url = f"http://{pod.status.host_ip}:{containers[0].ports[0].host_port}"
    argv: Sequence[str] = [
        "ssh", "-i", ssh_key_path,
        "-o", f"ConnectTimeout={SSH_CONNECT_TIMEOUT}",
        "-o", "StrictHostKeyChecking=no",
        "-o", "UserKnownHostsFile=/dev/null",
        master, f"curl --max-time {HOST_PORT_CURL_MAX_TIME} {url}",
    ]

    def _attempt() -> bool:
        try:
            out = runner(argv, timeout=DEFAULT_COMMAND_TIMEOUT, log_output=True)
        except KubectlError:
            return False
        return re.search(check, out) is not None

    retryer = Retrying(
        stop=stop_after_attempt(attempts),
        wait=wait_fixed(interval),
        retry=retry_if_result(lambda ok: not ok),
        retry_error_callback=lambda retry_state: False,
    )
    return retryer(_attempt)
