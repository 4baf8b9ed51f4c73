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


"""Phase waits built on the bounded poller."""

from __future__ import annotations

import random
import threading

from pod_harness import console, logger
from pod_harness.constants import (
    DEFAULT_COMMAND_TIMEOUT,
    DEFAULT_DELETE_RETRIES,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_POLL_TIMEOUT,
    DEFAULT_READY_SUCCESSES,
    POD_NAME_SUFFIX_MAX,
)
from pod_harness.errors import KubectlError, PodFailedError, PodHarnessError
from pod_harness.kubectl import Kubectl
from pod_harness.models import Pod
from pod_harness.platforms import OSType
from pod_harness.poller import poll_until
from pod_harness.pods import (
    are_all_pods_running,
    are_all_pods_succeeded,
    delete_pod,
    describe_pod,
    get_all_by_prefix,
    pod_logs,
    run_pod,
)


def dump_diagnostics(client: Kubectl, pod_prefix: str, namespace: str) -> None:
    """Log container logs and ``describe`` output for every matching pod.

    Best effort: failures are logged and never raised, so the caller's
    original error is what surfaces.
    """
    try:
        pods = get_all_by_prefix(client, pod_prefix, namespace)
    except PodHarnessError as err:
        logger.warning("Unable to list pods %s in namespace %s: %s", pod_prefix, namespace, err)
        return
    for pod in pods:
        try:
            pod_logs(client, pod)
        except KubectlError as err:
            logger.warning("Unable to print pod logs for pod %s: %s", pod.name, err)
        try:
            describe_pod(client, pod)
        except KubectlError as err:
            logger.warning("Unable to describe pod %s: %s", pod.name, err)


def wait_on_ready(
    client: Kubectl,
    pod_prefix: str,
    namespace: str,
    successes_needed: int = DEFAULT_READY_SUCCESSES,
    interval: float = DEFAULT_POLL_INTERVAL,
    timeout: float = DEFAULT_POLL_TIMEOUT,
    cancel: threading.Event | None = None,
) -> bool:
    """Wait until every pod matching *pod_prefix* is Running.

    The pods must be observed Running *successes_needed* times in a row; once
    they have been seen Running, the same number of not-Running observations
    is reported as a crash loop. kubectl failures abort the wait. On any
    failure the logs and descriptions of the matching pods are dumped before
    the error is raised.

    Raises:
        PodTimeoutError: If the pods are not ready before the deadline.
        CrashLoopError: If the pods flap between Running and not Running.
        KubectlError: If listing pods fails.
    """
    try:
        return poll_until(
            lambda: are_all_pods_running(client, pod_prefix, namespace),
            interval=interval,
            timeout=timeout,
            target=f"Pods ({pod_prefix}) in namespace ({namespace})",
            waiting_for="to become ready",
            successes_needed=successes_needed,
            cancel=cancel,
        )
    except PodHarnessError:
        dump_diagnostics(client, pod_prefix, namespace)
        raise


def wait_on_succeeded(
    client: Kubectl,
    pod_prefix: str,
    namespace: str,
    interval: float = DEFAULT_POLL_INTERVAL,
    timeout: float = DEFAULT_POLL_TIMEOUT,
    cancel: threading.Event | None = None,
) -> bool:
    """Wait until every pod matching *pod_prefix* has Succeeded.

    Raises:
        PodFailedError: As soon as any matching pod is Failed.
        PodTimeoutError: If the pods do not succeed before the deadline.
        KubectlError: If listing pods fails.
    """

    def _succeeded() -> bool:
        succeeded, failed = are_all_pods_succeeded(client, pod_prefix, namespace)
        if failed:
            raise PodFailedError(f"At least one pod ({pod_prefix}) in namespace ({namespace}) in a Failed state")
        return succeeded

    return poll_until(
        _succeeded,
        interval=interval,
        timeout=timeout,
        target=f"Pods ({pod_prefix}) in namespace ({namespace})",
        waiting_for="to succeed",
        cancel=cancel,
    )


def wait_pod_ready(
    client: Kubectl,
    pod: Pod,
    interval: float = DEFAULT_POLL_INTERVAL,
    timeout: float = DEFAULT_POLL_TIMEOUT,
) -> bool:
    """:func:`wait_on_ready` for a pod handle, requiring the default success count."""
    return wait_on_ready(client, pod.name, pod.namespace, DEFAULT_READY_SUCCESSES, interval, timeout)


def wait_pod_succeeded(
    client: Kubectl,
    pod: Pod,
    interval: float = DEFAULT_POLL_INTERVAL,
    timeout: float = DEFAULT_POLL_TIMEOUT,
) -> bool:
    """:func:`wait_on_succeeded` for a pod handle."""
    return wait_on_succeeded(client, pod.name, pod.namespace, interval, timeout)


def run_command_multiple_times(
    client: Kubectl,
    image: str,
    name: str,
    command: str,
    desired_attempts: int,
    os_type: OSType | str = OSType.LINUX,
    namespace: str = "default",
    interval: float = DEFAULT_POLL_INTERVAL,
    timeout: float = DEFAULT_POLL_TIMEOUT,
    command_timeout: float = DEFAULT_COMMAND_TIMEOUT,
    delete_retries: int = DEFAULT_DELETE_RETRIES,
) -> int:
    """Run *command* in a fresh pod *desired_attempts* times.

    Each attempt launches a pod with a random name suffix, waits for it to
    succeed, logs its output and deletes it.

    Returns:
        Number of attempts whose pod reached Succeeded.

    Raises:
        KubectlError: If a pod cannot be launched or deleted.
        PodTimeoutError: If a launched pod cannot be fetched.
    """
    successful = 0
    actual = 0
    try:
        for _ in range(desired_attempts):
            actual += 1
            pod_name = f"{name}-{random.randrange(POD_NAME_SUFFIX_MAX)}"
            pod = run_pod(
                client, image, pod_name, namespace, command, os_type,
                print_output=True, interval=interval, timeout=timeout, command_timeout=command_timeout,
            )
            try:
                succeeded = wait_pod_succeeded(client, pod, interval, timeout)
            except PodHarnessError as err:
                logger.warning("Pod %s did not succeed: %s", pod_name, err)
                succeeded = False

            try:
                client.run("logs", pod_name, "-n", namespace, timeout=command_timeout, log_output=True)
            except KubectlError:
                logger.warning("Unable to get logs from pod %s", pod_name)

            delete_pod(client, pod, delete_retries)
            if succeeded:
                successful += 1
    finally:
        console.print(
            f"[yellow]Ran command on {actual} of {desired_attempts} desired attempts "
            f"with {successful} successes[/yellow]"
        )
    return successful
