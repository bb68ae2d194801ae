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

"""Convergence watchers for installations and test suites.

Both watchers run on the calling thread, own their progress record, and
report through a :class:`~install_manager.steps.ProgressSink`. They stop
with a verdict, or raise a :class:`~install_manager.errors.WatchError`.
"""

from __future__ import annotations

import math
import threading
import time
from collections.abc import Callable
from typing import Any

from install_manager import logger
from install_manager.constants import HTTP_GONE, INSTALL_POLL_INTERVAL_SECONDS, TEST_SUITE_PLURAL, WATCH_RESYNC_SECONDS
from install_manager.errors import (
    DeadlineExceeded,
    ProtocolViolation,
    ResourceNotFound,
    StatusSourceError,
    TransientStatusError,
    WatchCancelled,
)
from install_manager.models import (
    EventType,
    InstallationState,
    InstallationStatus,
    SuiteVerdict,
    TestSuiteSnapshot,
    WatchDeadline,
)
from install_manager.reducer import (
    InstallationProgress,
    SuiteProgress,
    dispatch,
    reduce_installation_status,
    reduce_test_suite,
)
from install_manager.sources import InstallationStatusSource, TestSuiteSource
from install_manager.steps import ProgressSink

WAITING_FOR_INSTALLATION = "Waiting for installation to start"
RETRYING_STATUS_MESSAGE = "Could not get the status, retrying..."


# ============================================================================
# Installation (poll)
# ============================================================================

class InstallationWatcher:
    """Poll the Installation resource until it is installed.

    Args:
        source: Where samples come from.
        sink: Where progress is reported.
        interval: Seconds between two samples.
        clock: Monotonic clock for the deadline.
        cancel: Event that stops the watch when set; also interrupts the interval sleep.
    """

    def __init__(
        self,
        source: InstallationStatusSource,
        sink: ProgressSink,
        interval: float = INSTALL_POLL_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        cancel: threading.Event | None = None,
    ) -> None:
        self.source = source
        self.sink = sink
        self.interval = interval
        self.clock = clock
        self.cancel = cancel or threading.Event()

    def wait(self, timeout: float | None = None) -> None:
        """Block until the installation reports ``Installed``.

        Args:
            timeout: Seconds to watch; zero or None watches forever.

        Raises:
            DeadlineExceeded: If the timeout elapsed first.
            WatchCancelled: If the cancel event was set.
            ProtocolViolation: If the installer reported an unknown state.
            StatusSourceError: If sampling failed for a non-transient reason.
        """
        deadline = WatchDeadline.begin(timeout, self.clock)
        progress = InstallationProgress()
        self.sink.start(WAITING_FOR_INSTALLATION)

        self._check_interrupted(deadline)
        status = self._sample()
        while True:
            if status is not None:
                progress, transitions = reduce_installation_status(progress, status)
                dispatch(self.sink, transitions)
                state = status.state
                if state is InstallationState.INSTALLED:
                    logger.debug("Installation reached state %s", state.value)
                    return
                if state is None:
                    raise ProtocolViolation(
                        f"Unexpected installation status: {status.raw_state}", observed=status.raw_state
                    )

            self.cancel.wait(self.interval)
            self._check_interrupted(deadline)
            status = self._sample()

    def _sample(self) -> InstallationStatus | None:
        try:
            status = self.source.sample_status()
        except TransientStatusError as err:
            logger.warning("Installation status request timed out: %s", err)
            self.sink.log_error(RETRYING_STATUS_MESSAGE)
            return None
        except StatusSourceError:
            self.sink.failure()
            raise
        logger.debug("Installation status sample: state=%r description=%r", status.raw_state, status.description)
        return status

    def _check_interrupted(self, deadline: WatchDeadline) -> None:
        if deadline.expired():
            self.sink.failure()
            self._report_error_log()
            raise DeadlineExceeded(f"Timeout reached while waiting for installation ({deadline.timeout:g}s)")
        if self.cancel.is_set():
            self.sink.failure()
            raise WatchCancelled("Waiting for installation was cancelled")

    def _report_error_log(self) -> None:
        try:
            error_log = self.source.error_log()
        except StatusSourceError as err:
            logger.warning("Unable to fetch the installer error log: %s", err)
            return
        if error_log.strip():
            self.sink.log_error("Installer error log:")
            for line in error_log.strip().splitlines():
                self.sink.log_info(line)


def wait_for_installation(
    source: InstallationStatusSource,
    sink: ProgressSink,
    timeout: float | None = None,
    interval: float = INSTALL_POLL_INTERVAL_SECONDS,
    cancel: threading.Event | None = None,
) -> None:
    """Watch an installation to completion. See :class:`InstallationWatcher`."""
    InstallationWatcher(source, sink, interval=interval, cancel=cancel).wait(timeout)


# ============================================================================
# Test suites (list + watch)
# ============================================================================

class TestSuiteWatcher:
    """Follow a ClusterTestSuite until a terminal condition is reported.

    The suite is listed first; a watch is only opened once the list has shown
    the suite exists, and it resumes from the list's resource version.

    Args:
        source: List and watch access to test suites.
        sink: Where progress is reported.
        clock: Monotonic clock for the deadline.
        cancel: Event that stops the watch when set.
        resync_seconds: Longest a single watch stream is kept open.
    """

    __test__ = False

    def __init__(
        self,
        source: TestSuiteSource,
        sink: ProgressSink,
        clock: Callable[[], float] = time.monotonic,
        cancel: threading.Event | None = None,
        resync_seconds: int = WATCH_RESYNC_SECONDS,
    ) -> None:
        self.source = source
        self.sink = sink
        self.clock = clock
        self.cancel = cancel or threading.Event()
        self.resync_seconds = resync_seconds

    def wait(self, name: str, timeout: float | None = 0) -> SuiteVerdict:
        """Block until the suite succeeds, fails or errors.

        Args:
            name: ClusterTestSuite name.
            timeout: Seconds to watch; zero or None watches forever.

        Returns:
            The terminal verdict.

        Raises:
            ResourceNotFound: If the suite does not exist or was deleted.
            DeadlineExceeded: If the timeout elapsed first.
            WatchCancelled: If the cancel event was set.
            ProtocolViolation: If the stream delivered an event it cannot interpret.
            StatusSourceError: If listing or watching failed.
        """
        deadline = WatchDeadline.begin(timeout, self.clock)
        self.sink.start(f"Waiting for test suite '{name}' to finish")
        try:
            return self._watch(name, deadline)
        except StatusSourceError:
            self.sink.failure()
            raise

    def _watch(self, name: str, deadline: WatchDeadline) -> SuiteVerdict:
        progress = SuiteProgress()
        self._check_interrupted(name, deadline)
        progress, resource_version, verdict = self._list(name, progress)
        while verdict is None:
            self._check_interrupted(name, deadline)
            logger.debug("Watching test suite %s from resource version %s", name, resource_version)
            stream = self.source.watch_suite(name, resource_version, self._stream_timeout(deadline), self.cancel)
            for event in stream:
                event_type = event.get("type")
                obj = event.get("object") or {}

                if event_type in (EventType.ADDED.value, EventType.MODIFIED.value):
                    resource_version = _resource_version(obj) or resource_version
                    progress, verdict = self._reduce(progress, obj)
                elif event_type == EventType.DELETED.value:
                    self.sink.failure()
                    raise ResourceNotFound(TEST_SUITE_PLURAL, name)
                elif event_type == EventType.ERROR.value and obj.get("code") == HTTP_GONE:
                    logger.info("Resource version %s of test suite %s expired, listing again", resource_version, name)
                    progress, resource_version, verdict = self._list(name, progress)
                    break
                else:
                    self.sink.failure()
                    raise ProtocolViolation(
                        f"Unexpected event while watching test suite '{name}': {event_type}",
                        observed=str(event_type),
                    )

                if verdict is not None or deadline.expired() or self.cancel.is_set():
                    break
        return verdict

    def _list(self, name: str, progress: SuiteProgress) -> tuple[SuiteProgress, str, SuiteVerdict | None]:
        items, resource_version = self.source.list_suite(name)
        found = next((item for item in items if (item.get("metadata") or {}).get("name") == name), None)
        if found is None:
            self.sink.failure()
            raise ResourceNotFound(TEST_SUITE_PLURAL, name)
        progress, verdict = self._reduce(progress, found)
        return progress, resource_version, verdict

    def _reduce(self, progress: SuiteProgress, obj: dict[str, Any]) -> tuple[SuiteProgress, SuiteVerdict | None]:
        progress, transitions, verdict = reduce_test_suite(progress, TestSuiteSnapshot.from_object(obj))
        dispatch(self.sink, transitions)
        return progress, verdict

    def _stream_timeout(self, deadline: WatchDeadline) -> int:
        remaining = deadline.remaining()
        if remaining is None:
            return self.resync_seconds
        return max(1, min(self.resync_seconds, math.ceil(remaining)))

    def _check_interrupted(self, name: str, deadline: WatchDeadline) -> None:
        if deadline.expired():
            self.sink.failure(f"Timeout reached while waiting for test suite '{name}'")
            raise DeadlineExceeded(f"Timeout reached while waiting for test suite '{name}' ({deadline.timeout:g}s)")
        if self.cancel.is_set():
            self.sink.failure()
            raise WatchCancelled(f"Waiting for test suite '{name}' was cancelled")


def _resource_version(obj: dict[str, Any]) -> str:
    return (obj.get("metadata") or {}).get("resourceVersion", "")


def wait_for_test_suite(
    source: TestSuiteSource,
    sink: ProgressSink,
    name: str,
    timeout: float | None = 0,
    cancel: threading.Event | None = None,
) -> SuiteVerdict:
    """Watch a test suite to a verdict. See :class:`TestSuiteWatcher`."""
    return TestSuiteWatcher(source, sink, cancel=cancel).wait(name, timeout)
