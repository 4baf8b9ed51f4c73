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

"""pod_harness - pod lifecycle helpers for end-to-end test suites."""

from __future__ import annotations

import io
import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from rich.console import Console


class ThreadAwareConsole:
    """Console proxy that lets concurrent pollers print one block per item.

    Inside :meth:`captured` the calling thread's output goes to a private
    buffer; when the block ends the buffer is written to the real console in
    one piece under a bold title. Threads outside a block print straight
    through.
    """

    def __init__(self, real_console: Console) -> None:
        object.__setattr__(self, "_real", real_console)
        object.__setattr__(self, "_local", threading.local())
        object.__setattr__(self, "_flush_lock", threading.Lock())

    def __getattr__(self, name: str):
        return getattr(getattr(self._local, "console", self._real), name)

    @contextmanager
    def captured(self, title: str) -> Iterator[io.StringIO]:
        """Capture this thread's output and flush it under *title* on exit."""
        buf = io.StringIO()
        self._local.console = Console(file=buf, width=self._real.width)
        try:
            yield buf
        finally:
            del self._local.console
            output = buf.getvalue()
            if output:
                with self._flush_lock:
                    self._real.print(f"[bold]{title}[/bold]")
                    self._real.print(output, end="", markup=False, highlight=False)


console = ThreadAwareConsole(Console(stderr=True))
logger = logging.getLogger("pod_harness")
