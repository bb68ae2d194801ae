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

"""Status taxonomy and value types observed by the watchers."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


# ============================================================================
# Installation
# ============================================================================

class InstallationState(str, Enum):
    """Values of ``.status.state`` on the Installation resource."""

    NOT_INSTALLED = ""
    IN_PROGRESS = "InProgress"
    INSTALLED = "Installed"
    ERROR = "Error"
    UNKNOWN = "Unknown"


@dataclass(frozen=True)
class InstallationStatus:
    """One poll sample of the Installation resource.

    Attributes:
        raw_state: State string exactly as reported by the installer.
        description: Human-readable description of the current phase.
    """

    raw_state: str
    description: str = ""

    @property
    def state(self) -> InstallationState | None:
        """Recognised state, or None when the installer reported something unknown."""
        try:
            return InstallationState(self.raw_state)
        except ValueError:
            return None

    @classmethod
    def from_object(cls, obj: dict[str, Any]) -> InstallationStatus:
        status = obj.get("status") or {}
        return cls(raw_state=status.get("state") or "", description=status.get("description") or "")


# ============================================================================
# Test suites
# ============================================================================

class TestStatus(str, Enum):
    """Status of a single test within a ClusterTestSuite."""

    __test__ = False

    SCHEDULED = "Scheduled"
    RUNNING = "Running"
    UNKNOWN = "Unknown"
    FAILED = "Failed"
    SUCCEEDED = "Succeeded"
    SKIPPED = "Skipped"


class ConditionType(str, Enum):
    """Condition types reported on a ClusterTestSuite."""

    RUNNING = "Running"
    SUCCEEDED = "Succeeded"
    ERROR = "Error"
    FAILED = "Failed"


class SuiteVerdict(str, Enum):
    """Terminal outcome of a watched test suite."""

    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    ERRORED = "Errored"


class EventType(str, Enum):
    """Watch event types delivered by the API server."""

    ADDED = "ADDED"
    MODIFIED = "MODIFIED"
    DELETED = "DELETED"
    ERROR = "ERROR"


@dataclass(frozen=True)
class TestExecution:
    """A single pod execution of a test."""

    __test__ = False

    id: str
    pod_phase: str = ""


@dataclass(frozen=True)
class TestResult:
    """Result entry for one test definition within a suite.

    Attributes:
        name: Test definition name.
        namespace: Namespace of the test definition and its pods.
        status: Raw status string; compare against TestStatus values.
        executions: Pod executions of the test, in creation order.
    """

    __test__ = False

    name: str
    namespace: str = ""
    status: str = ""
    executions: tuple[TestExecution, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TestResult:
        executions = tuple(
            TestExecution(id=e.get("id", ""), pod_phase=e.get("podPhase", ""))
            for e in data.get("executions") or []
        )
        return cls(
            name=data.get("name", ""),
            namespace=data.get("namespace", ""),
            status=data.get("status", ""),
            executions=executions,
        )


@dataclass(frozen=True)
class Condition:
    """A ClusterTestSuite status condition; ``status`` is True only for ``"True"``."""

    type: str
    status: bool

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Condition:
        return cls(type=data.get("type", ""), status=data.get("status") == "True")


@dataclass(frozen=True)
class TestSuiteSnapshot:
    """Observed state of a ClusterTestSuite.

    Attributes:
        name: Suite name, unique and immutable once created.
        results: Per-test results in the order reported by the controller.
        conditions: Suite conditions; at most one terminal condition is true.
    """

    __test__ = False

    name: str
    results: tuple[TestResult, ...] = ()
    conditions: tuple[Condition, ...] = ()

    @classmethod
    def from_object(cls, obj: dict[str, Any]) -> TestSuiteSnapshot:
        metadata = obj.get("metadata") or {}
        status = obj.get("status") or {}
        return cls(
            name=metadata.get("name", ""),
            results=tuple(TestResult.from_dict(r) for r in status.get("results") or []),
            conditions=tuple(Condition.from_dict(c) for c in status.get("conditions") or []),
        )


# ============================================================================
# Deadlines and transitions
# ============================================================================

@dataclass(frozen=True)
class WatchDeadline:
    """Deadline of a single watch; a zero or missing timeout never expires.

    Attributes:
        start: Clock reading when the watch started.
        timeout: Allowed duration in seconds, or None for no deadline.
        clock: Monotonic clock used for all readings.
    """

    start: float
    timeout: float | None = None
    clock: Callable[[], float] = field(default=time.monotonic, compare=False, repr=False)

    @classmethod
    def begin(cls, timeout: float | None, clock: Callable[[], float] = time.monotonic) -> WatchDeadline:
        return cls(start=clock(), timeout=timeout if timeout and timeout > 0 else None, clock=clock)

    def expired(self) -> bool:
        if self.timeout is None:
            return False
        return self.clock() - self.start >= self.timeout

    def remaining(self) -> float | None:
        """Seconds left before expiry, or None when there is no deadline."""
        if self.timeout is None:
            return None
        return max(0.0, self.timeout - (self.clock() - self.start))


class TransitionKind(str, Enum):
    """Kinds of progress transitions pushed to a ProgressSink."""

    START = "start"
    PROGRESS = "progress"
    SUCCESS = "success"
    FAILURE = "failure"
    LOG_INFO = "log_info"
    LOG_ERROR = "log_error"


@dataclass(frozen=True)
class ProgressTransition:
    """A semantic progress change, emitted once and never persisted."""

    kind: TransitionKind
    subject: str = ""
    message: str = ""


# ============================================================================
# Summary
# ============================================================================

@dataclass(frozen=True)
class InstallationSummary:
    """What the operator needs after a successful installation.

    Attributes:
        version: Installed version, taken from the installer image tag.
        host: Kubernetes API server the installation runs on.
        console_url: Console URL, or ``not installed``.
        admin_email: Admin user email.
        admin_password: Admin user password.
    """

    version: str
    host: str
    console_url: str
    admin_email: str
    admin_password: str
