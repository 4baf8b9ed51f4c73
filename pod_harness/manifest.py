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


"""Manifest templating: image substitution and pod name lookup."""

from __future__ import annotations

import re
import tempfile
from pathlib import Path

import yaml

from pod_harness import logger
from pod_harness.constants import IMAGE_LINE_PATTERN
from pod_harness.errors import NotFoundError

_IMAGE_LINE = re.compile(IMAGE_LINE_PATTERN)


def replace_image_lines(text: str, container_image: str) -> str:
    """Rewrite every ``image: ...`` line of *text* to point at *container_image*."""
    lines = [
        _IMAGE_LINE.sub(lambda m: f"{m.group(1)} {container_image}", line)
        for line in text.splitlines()
    ]
    return "".join(f"{line}\n" for line in lines)


def replace_container_image_from_file(filename: str | Path, container_image: str) -> str:
    """Copy a manifest into a temp file with every image reference replaced.

    This is a textual substitution, not a YAML merge: indentation, comments
    and unrelated lines are left untouched.

    Args:
        filename: Source manifest path.
        container_image: Image reference to substitute.

    Returns:
        Path of the rewritten temporary manifest. The caller owns the file.

    Raises:
        OSError: If the source cannot be read or the temp file written.
    """
    source = Path(filename)
    try:
        text = source.read_text()
    except OSError:
        logger.error("Error opening source YAML file %s", source)
        raise

    with tempfile.NamedTemporaryFile(
        "w", prefix=f"{source.stem}-", suffix=source.suffix, delete=False
    ) as tmp:
        tmp.write(replace_image_lines(text, container_image))
    return tmp.name


def pod_name_from_manifest(filename: str | Path) -> str:
    """Return ``metadata.name`` of the first Pod document in a manifest.

    Falls back to the first document carrying a name when no document is a Pod.

    Raises:
        NotFoundError: If no document has a name.
    """
    with open(filename) as f:
        documents = [doc for doc in yaml.safe_load_all(f) if isinstance(doc, dict)]

    named = [doc for doc in documents if (doc.get("metadata") or {}).get("name")]
    pods = [doc for doc in named if doc.get("kind") == "Pod"]
    for doc in pods or named:
        return doc["metadata"]["name"]
    raise NotFoundError(f"no named resource found in manifest {filename}")
