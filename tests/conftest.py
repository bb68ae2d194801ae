# /*
# Copyright 2026 The Install Manager Authors.
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

"""Shared fakes: recording sink, scripted sources, and a controllable clock."""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator
from typing import Any

import pytest

from install_manager.models import InstallationStatus


# =============================================================================
# Sink
# =============================================================================

class RecordingSink:
    """ProgressSink that records every call as a (method, argument) tuple."""

    def __init__(self) -> None:
        self.events: list[tuple[str, str | None]] = []

    def start(self, label: str) -> None:
        self.events.append(("start", label))

    def progress(self, text: str) -> None:
        self.events.append(("progress", text))

    def success(self, message: str | None = None) -> None:
        self.events.append(("success", message))

    def failure(self, message: str | None = None) -> None:
        self.events.append(("failure", message))

    def log_info(self, text: str) -> None:
        self.events.append(("log_info", text))

    def log_error(self, text: str) -> None:
        self.events.append(("log_error", text))

    def of(self, method: str) -> list[str | None]:
        return [arg for name, arg in self.events if name == method]


# =============================================================================
# Clock
# =============================================================================

class FakeClock:
    """Monotonic clock that only moves when told to, or by *step* per reading."""

    def __init__(self, start: float = 0.0, step: float = 0.0) -> None:
        self.now = start
        self.step = step

    def __call__(self) -> float:
        value = self.now
        self.now += self.step
        return value

    def advance(self, seconds: float) -> None:
        self.now += seconds


# =============================================================================
# Sources
# =============================================================================

class FakeInstallationSource:
    """Returns scripted samples in order; exceptions in the script are raised.

    The last sample repeats once the script is exhausted.
    """

    def __init__(
        self,
        samples: list[InstallationStatus | Exception],
        error_log: str = "",
        on_sample: Callable[[], None] | None = None,
    ) -> None:
        self.samples = list(samples)
        self.error_log_text = error_log
        self.on_sample = on_sample
        self.sampled = 0
        self.error_log_calls = 0

    def sample_status(self) -> InstallationStatus:
        index = min(self.sampled, len(self.samples) - 1)
        self.sampled += 1
        if self.on_sample:
            self.on_sample()
        sample = self.samples[index]
        if isinstance(sample, Exception):
            raise sample
        return sample

    def error_log(self) -> str:
        self.error_log_calls += 1
        return self.error_log_text


class FakeSuiteSource:
    """Scripted list responses and watch streams.

    Each ``list_suite`` call consumes one entry of *lists* (the last repeats);
    each ``watch_suite`` call consumes one stream of *streams* (empty once exhausted).
    """

    def __init__(
        self,
        lists: list[tuple[list[dict[str, Any]], str]],
        streams: list[list[dict[str, Any]]] | None = None,
        on_watch: Callable[[], None] | None = None,
    ) -> None:
        self.lists = list(lists)
        self.streams = list(streams or [])
        self.on_watch = on_watch
        self.list_calls = 0
        self.watch_calls: list[tuple[str, str, int]] = []
        self.cancel: threading.Event | None = None

    def list_suite(self, name: str) -> tuple[list[dict[str, Any]], str]:
        index = min(self.list_calls, len(self.lists) - 1)
        self.list_calls += 1
        return self.lists[index]

    def watch_suite(
        self,
        name: str,
        resource_version: str,
        timeout_seconds: int,
        cancel: threading.Event | None = None,
    ) -> Iterator[dict[str, Any]]:
        self.watch_calls.append((name, resource_version, timeout_seconds))
        self.cancel = cancel
        if self.on_watch:
            self.on_watch()
        stream = self.streams.pop(0) if self.streams else []
        return iter(stream)


def suite_object(
    name: str = "suite",
    resource_version: str = "1",
    results: list[dict[str, Any]] | None = None,
    conditions: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """A ClusterTestSuite object as returned by the API."""
    return {
        "apiVersion": "testing.kyma-project.io/v1alpha1",
        "kind": "ClusterTestSuite",
        "metadata": {"name": name, "resourceVersion": resource_version},
        "status": {"results": results or [], "conditions": conditions or []},
    }


def event(event_type: str, obj: dict[str, Any]) -> dict[str, Any]:
    return {"type": event_type, "object": obj}


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
