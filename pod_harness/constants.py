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


"""Constants shared by pod operations, pollers and platform variants."""

from __future__ import annotations

# -- Pod phases --
PHASE_PENDING = "Pending"
PHASE_RUNNING = "Running"
PHASE_SUCCEEDED = "Succeeded"
PHASE_FAILED = "Failed"
PHASE_UNKNOWN = "Unknown"

# -- Timeouts (seconds) --
DEFAULT_COMMAND_TIMEOUT = 60
DEFAULT_DELETE_TIMEOUT = 300
DEFAULT_POLL_INTERVAL = 5.0
DEFAULT_POLL_TIMEOUT = 300.0
SSH_CONNECT_TIMEOUT = 10
HOST_PORT_CURL_MAX_TIME = 60

# -- Retry counts --
DEFAULT_POD_LOOKUP_RETRIES = 5
DEFAULT_DELETE_RETRIES = 3
DEFAULT_READY_SUCCESSES = 6
CREATE_IF_NOT_EXIST_LOOKUP_RETRIES = 3

# Bulk checks give every pod the per-pod timeout, then some slack.
FAN_OUT_TIMEOUT_FACTOR = 2

# -- kubectl --
DEFAULT_KUBECTL = "kubectl"
DEFAULT_NAMESPACE = "default"
NODE_SELECTOR_OS_KEY = "beta.kubernetes.io/os"
IMAGE_PULL_POLICY = "IfNotPresent"
RESTART_POLICY = "Never"

# -- In-pod probes --
DEFAULT_EXTERNAL_URLS = ("www.bing.com", "google.com")
APT_BINARY = "/usr/bin/apt"
WINDOWS_PROBE_HOST = "8.8.8.8"
WINDOWS_PROBE_PORT = 443
WINDOWS_CONNECTED_PATTERN = r"(Connected\s*:\s*True)"
MOUNT_TEST_DIR = "testdirectory"
OMS_AGENT_LOG_PATH = "/var/opt/microsoft/omsagent/log/omsagent.log"

# -- Manifest templating --
IMAGE_LINE_PATTERN = r"(image:) .*$"

# Upper bound for random pod name suffixes.
POD_NAME_SUFFIX_MAX = 99999
