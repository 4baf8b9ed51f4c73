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

"""Tests for pod_harness.pods using the FakeKubectl fixture."""

from __future__ import annotations

import json

import pytest

from pod_harness.errors import KubectlError, PodDecodeError, PodTimeoutError
from pod_harness.models import Pod, decode
from pod_harness.platforms import OSType
from pod_harness.pods import (
    are_all_pods_running,
    are_all_pods_succeeded,
    create_pod_from_file,
    create_pod_from_file_if_not_exist,
    delete_pod,
    describe_pod,
    exec_in_pod,
    get,
    get_all,
    get_all_by_prefix,
    get_terminated,
    get_with_retry,
    pod_logs,
    pod_name_matches,
    run_linux_pod,
    run_pod,
    run_windows_pod,
    validate_host_port,
)

from conftest import fail, ok, pod_json, pod_list_json

LIST = r"^get pods -n default -o json$"
FAST = {"interval": 0.01, "timeout": 1.0}


def _pod(name: str = "web-1", **kwargs) -> Pod:
    return decode(Pod, pod_json(name, **kwargs))


# ============================================================================
# Lookups
# ============================================================================

class TestPrefixMatching:
    @pytest.mark.parametrize("name", ["foo", "foo-1", "foo-abc-2"])
    def test_matches(self, name):
        assert pod_name_matches(name, "foo")

    @pytest.mark.parametrize("name", ["foobar-1", "bar-foo-1", "fo"])
    def test_does_not_match(self, name):
        assert not pod_name_matches(name, "foo")

    def test_prefix_is_literal(self):
        assert not pod_name_matches("axb-1", "a.b")
        assert pod_name_matches("a.b-1", "a.b")

    def test_get_all_by_prefix(self, fake_kubectl):
        fake_kubectl.register(LIST, ok(pod_list_json(
            pod_json("foo-1"), pod_json("foo-2"), pod_json("bar-1"), pod_json("foobar-1"),
        )))
        assert [p.name for p in get_all_by_prefix(fake_kubectl, "foo", "default")] == ["foo-1", "foo-2"]


class TestGet:
    def test_get_all(self, fake_kubectl):
        fake_kubectl.register(LIST, ok(pod_list_json(pod_json("a-1"), pod_json("b-1"))))
        assert len(get_all(fake_kubectl, "default").pods) == 2

    def test_get_all_tolerates_pod_that_never_started(self, fake_kubectl):
        crashed = pod_json("batch-1", phase="Failed", containerStatuses=[{
            "name": "main",
            "state": {"terminated": {"reason": "ContainerCannotRun", "startedAt": None, "finishedAt": None}},
        }])
        fake_kubectl.register(LIST, ok(pod_list_json(crashed, pod_json("web-1"))))
        assert are_all_pods_running(fake_kubectl, "web", "default")

    def test_get_all_decode_error_keeps_output(self, fake_kubectl):
        fake_kubectl.register(LIST, ok({"items": "not-a-list"}))
        with pytest.raises(PodDecodeError) as exc:
            get_all(fake_kubectl, "default")
        assert "not-a-list" in exc.value.raw

    def test_get_all_failure_propagates(self, fake_kubectl):
        fake_kubectl.register(LIST, fail("connection refused"))
        with pytest.raises(KubectlError, match="connection refused"):
            get_all(fake_kubectl, "default")

    def test_get_returns_pod(self, fake_kubectl):
        fake_kubectl.register(r"^get pods web-1 ", ok(pod_json("web-1", phase="Pending")))
        pod = get(fake_kubectl, "web-1", "default")
        assert pod.phase == "Pending"

    def test_get_retries_then_succeeds(self, fake_kubectl):
        fake_kubectl.register(r"^get pods web-1 ", fail(), fail(), ok(pod_json("web-1")))
        assert get(fake_kubectl, "web-1", "default", retries=5).name == "web-1"
        assert fake_kubectl.count(r"^get pods web-1 ") == 3

    def test_get_gives_up_after_retries(self, fake_kubectl):
        fake_kubectl.register(r"^get pods web-1 ", fail("NotFound"))
        with pytest.raises(KubectlError, match="NotFound"):
            get(fake_kubectl, "web-1", "default", retries=4)
        assert fake_kubectl.count(r"^get pods web-1 ") == 4

    def test_decode_error_is_not_retried(self, fake_kubectl):
        fake_kubectl.register(r"^get pods web-1 ", ok("this is not json"))
        with pytest.raises(PodDecodeError) as exc:
            get(fake_kubectl, "web-1", "default")
        assert exc.value.raw == "this is not json"
        assert fake_kubectl.count(r"^get pods web-1 ") == 1

    def test_get_terminated_single_attempt(self, fake_kubectl):
        fake_kubectl.register(r"^get pods job-1 ", fail())
        with pytest.raises(KubectlError):
            get_terminated(fake_kubectl, "job-1", "default")
        assert fake_kubectl.count(r"^get pods job-1 ") == 1

    def test_get_with_retry_polls_until_found(self, fake_kubectl):
        fake_kubectl.register(r"^get pods web-1 ", fail(), fail(), ok(pod_json("web-1")))
        pod = get_with_retry(fake_kubectl, "web-1", "default", retries=1, **FAST)
        assert pod.name == "web-1"

    def test_get_with_retry_times_out(self, fake_kubectl):
        fake_kubectl.register(r"^get pods web-1 ", fail())
        with pytest.raises(PodTimeoutError, match="to be retrievable"):
            get_with_retry(fake_kubectl, "web-1", "default", interval=0.01, timeout=0.05, retries=1)


class TestPhasePredicates:
    def test_all_running(self, fake_kubectl):
        fake_kubectl.register(LIST, ok(pod_list_json(pod_json("web-1"), pod_json("web-2"))))
        assert are_all_pods_running(fake_kubectl, "web", "default")

    def test_one_pending(self, fake_kubectl):
        fake_kubectl.register(LIST, ok(pod_list_json(pod_json("web-1"), pod_json("web-2", phase="Pending"))))
        assert not are_all_pods_running(fake_kubectl, "web", "default")

    def test_no_match_is_not_running(self, fake_kubectl):
        fake_kubectl.register(LIST, ok(pod_list_json(pod_json("other-1"))))
        assert not are_all_pods_running(fake_kubectl, "web", "default")

    def test_non_matching_pods_are_ignored(self, fake_kubectl):
        fake_kubectl.register(LIST, ok(pod_list_json(pod_json("web-1"), pod_json("webhook-1", phase="Pending"))))
        assert are_all_pods_running(fake_kubectl, "web", "default")

    @pytest.mark.parametrize("phases, expected", [
        (["Succeeded", "Succeeded"], (True, False)),
        (["Succeeded", "Running"], (False, False)),
        (["Succeeded", "Failed"], (False, True)),
        ([], (False, False)),
    ])
    def test_succeeded(self, fake_kubectl, phases, expected):
        pods = [pod_json(f"job-{i}", phase=phase) for i, phase in enumerate(phases)]
        fake_kubectl.register(LIST, ok(pod_list_json(*pods)))
        assert are_all_pods_succeeded(fake_kubectl, "job", "default") == expected


# ============================================================================
# Creation
# ============================================================================

class TestCreate:
    @pytest.fixture
    def manifest(self, tmp_path):
        path = tmp_path / "dns-liveness.yaml"
        path.write_text("kind: Pod\nmetadata:\n  name: dns-liveness\n")
        return path

    def test_create_from_file(self, fake_kubectl, manifest):
        fake_kubectl.register(r"^apply -f ", ok("pod/dns-liveness created"))
        fake_kubectl.register(r"^get pods dns-liveness ", ok(pod_json("dns-liveness")))
        pod = create_pod_from_file(fake_kubectl, manifest, **FAST)
        assert pod.name == "dns-liveness"
        assert fake_kubectl.matching(r"^apply -f ") == [("apply", "-f", str(manifest))]

    def test_create_failure_propagates(self, fake_kubectl, manifest):
        fake_kubectl.register(r"^apply -f ", fail("admission webhook denied"))
        with pytest.raises(KubectlError, match="admission webhook denied"):
            create_pod_from_file(fake_kubectl, manifest, "dns-liveness", **FAST)

    def test_lookup_retries_are_passed_through(self, fake_kubectl, manifest):
        fake_kubectl.register(r"^apply -f ", ok())
        fake_kubectl.register(r"^get pods dns-liveness ", fail("NotFound"))
        with pytest.raises(PodTimeoutError):
            create_pod_from_file(fake_kubectl, manifest, interval=0.01, timeout=0.001, retries=2)
        assert fake_kubectl.count(r"^get pods dns-liveness ") == 2

    def test_if_not_exist_skips_apply(self, fake_kubectl, manifest):
        fake_kubectl.register(r"^get pods dns-liveness ", ok(pod_json("dns-liveness")))
        pod = create_pod_from_file_if_not_exist(fake_kubectl, manifest, **FAST)
        assert pod.name == "dns-liveness"
        assert fake_kubectl.count(r"^apply ") == 0

    def test_if_not_exist_uses_given_name(self, fake_kubectl, manifest):
        fake_kubectl.register(r"^get pods custom ", fail(), fail(), fail(), ok(pod_json("custom")))
        fake_kubectl.register(r"^apply -f ", ok())
        pod = create_pod_from_file_if_not_exist(fake_kubectl, manifest, "custom", **FAST)
        assert pod.name == "custom"
        assert fake_kubectl.count(r"^get pods dns-liveness ") == 0
        assert fake_kubectl.count(r"^apply ") == 1


class TestRunPod:
    def _run_args(self, fake_kubectl):
        (call,) = fake_kubectl.matching(r"^run ")
        return list(call)

    def test_linux(self, fake_kubectl):
        fake_kubectl.register(r"^run ", ok("pod/probe created"))
        fake_kubectl.register(r"^get pods probe ", ok(pod_json("probe")))
        pod = run_linux_pod(fake_kubectl, "busybox", "probe", "default", "echo hi", **FAST)
        assert pod.name == "probe"
        args = self._run_args(fake_kubectl)
        assert args[:4] == ["run", "probe", "-n", "default"]
        assert "--image-pull-policy=IfNotPresent" in args
        assert "--restart=Never" in args
        overrides = json.loads(args[args.index("--overrides") + 1])
        assert overrides == {"spec": {"nodeSelector": {"beta.kubernetes.io/os": "linux"}}}
        assert args[-5:] == ["--command", "--", "/bin/sh", "-c", "echo hi"]

    def test_windows(self, fake_kubectl):
        fake_kubectl.register(r"^run ", ok())
        fake_kubectl.register(r"^get pods iis ", ok(pod_json("iis")))
        run_windows_pod(fake_kubectl, "mcr.microsoft.com/iis", "iis", "default", "Get-Date", **FAST)
        args = self._run_args(fake_kubectl)
        assert args[-3:] == ["--", "powershell", "Get-Date"]
        overrides = json.loads(args[args.index("--overrides") + 1])
        assert overrides["spec"]["nodeSelector"]["beta.kubernetes.io/os"] == "windows"

    def test_lookup_retries_are_passed_through(self, fake_kubectl):
        fake_kubectl.register(r"^run ", ok())
        fake_kubectl.register(r"^get pods probe ", fail("NotFound"))
        with pytest.raises(PodTimeoutError):
            run_linux_pod(fake_kubectl, "busybox", "probe", "default", "true", interval=0.01, timeout=0.001, retries=4)
        assert fake_kubectl.count(r"^get pods probe ") == 4

    def test_run_failure_propagates(self, fake_kubectl):
        fake_kubectl.register(r"^run ", fail("AlreadyExists"))
        with pytest.raises(KubectlError, match="AlreadyExists"):
            run_pod(fake_kubectl, "busybox", "probe", "default", "true", OSType.LINUX, **FAST)

    def test_invalid_os(self, fake_kubectl):
        with pytest.raises(ValueError, match="Invalid osType"):
            run_pod(fake_kubectl, "busybox", "probe", "default", "true", "plan9", **FAST)
        assert fake_kubectl.calls == []


# ============================================================================
# Operations on a pod
# ============================================================================

class TestPodOperations:
    def test_exec_separates_command(self, fake_kubectl):
        fake_kubectl.register(r"^exec ", ok("bin\netc\n"))
        out = exec_in_pod(fake_kubectl, _pod(namespace="apps"), "ls", "-la", "/")
        assert out == "bin\netc\n"
        assert fake_kubectl.calls == [("exec", "web-1", "-n", "apps", "--", "ls", "-la", "/")]

    def test_exec_failure_propagates(self, fake_kubectl):
        fake_kubectl.register(r"^exec ", fail("command terminated with exit code 1"))
        with pytest.raises(KubectlError) as exc:
            exec_in_pod(fake_kubectl, _pod(), "false")
        assert exc.value.exit_code == 1

    def test_delete(self, fake_kubectl):
        fake_kubectl.register(r"^delete ", ok('pod "web-1" deleted'))
        delete_pod(fake_kubectl, _pod())
        assert fake_kubectl.calls == [("delete", "po", "-n", "default", "web-1")]

    def test_delete_retries(self, fake_kubectl):
        fake_kubectl.register(r"^delete ", fail(), ok())
        delete_pod(fake_kubectl, _pod(), retries=3)
        assert fake_kubectl.count(r"^delete ") == 2

    def test_delete_gives_up(self, fake_kubectl):
        fake_kubectl.register(r"^delete ", fail("timed out waiting"))
        with pytest.raises(KubectlError):
            delete_pod(fake_kubectl, _pod(), retries=2)
        assert fake_kubectl.count(r"^delete ") == 2

    def test_logs_per_container(self, fake_kubectl):
        pod = _pod(containers=[{"name": "app"}, {"name": "sidecar"}])
        fake_kubectl.register(r"^logs web-1 -c app ", ok("app log\n"))
        fake_kubectl.register(r"^logs web-1 -c sidecar ", ok("sidecar log\n"))
        assert pod_logs(fake_kubectl, pod) == "app log\nsidecar log\n"

    def test_describe(self, fake_kubectl):
        fake_kubectl.register(r"^describe pod web-1 -n default$", ok("Name: web-1\n"))
        assert describe_pod(fake_kubectl, _pod()) == "Name: web-1\n"


class FakeRunner:
    """ssh runner double returning scripted outputs."""

    def __init__(self, *outputs: str | KubectlError) -> None:
        self.outputs = list(outputs)
        self.calls = []

    def __call__(self, argv, timeout=None, log_output=False) -> str:
        self.calls.append(list(argv))
        out = self.outputs.pop(0) if len(self.outputs) > 1 else self.outputs[0]
        if isinstance(out, KubectlError):
            raise out
        return out


class TestValidateHostPort:
    @pytest.fixture
    def pod(self) -> Pod:
        return _pod(
            containers=[{"name": "nginx", "ports": [{"containerPort": 80, "hostPort": 8080}]}],
            hostIP="10.240.0.4",
        )

    def test_matches_on_later_attempt(self, pod):
        runner = FakeRunner(KubectlError(["ssh"], "Connection refused", 255), "<title>Welcome to nginx!</title>")
        assert validate_host_port(pod, "Welcome to nginx", 3, 0.01, "azureuser@master", "/tmp/key", runner)
        assert len(runner.calls) == 2
        argv = runner.calls[0]
        assert argv[:3] == ["ssh", "-i", "/tmp/key"]
        assert "StrictHostKeyChecking=no" in argv
        assert argv[-2] == "azureuser@master"
        assert argv[-1] == "curl --max-time 60 http://10.240.0.4:8080"

    def test_gives_up_after_attempts(self, pod):
        runner = FakeRunner("502 Bad Gateway")
        assert not validate_host_port(pod, "Welcome", 3, 0.01, "master", "/tmp/key", runner)
        assert len(runner.calls) == 3

    def test_pod_without_host_port(self):
        runner = FakeRunner("unused")
        assert not validate_host_port(_pod(), "Welcome", 3, 0.01, "master", "/tmp/key", runner)
        assert runner.calls == []
