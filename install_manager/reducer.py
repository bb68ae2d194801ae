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

"""Reduce raw status samples and suite snapshots to progress transitions.

The reducers are pure: each takes the caller's progress record and returns
a new one together with the transitions to display. A poll interval of ten
seconds over a long installation yields many identical samples, so the
reducers only emit when the observed state actually changes.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace

from install_manager.constants import ERROR_LOG_HINT, INSTALLER_LOGS_HINT
from install_manager.models import (
    ConditionType,
    InstallationState,
    InstallationStatus,
    ProgressTransition,
    SuiteVerdict,
    TestStatus,
    TestSuiteSnapshot,
    TransitionKind,
)
from install_manager.steps import ProgressSink

STATUS_UNAVAILABLE_MESSAGE = "Failed to get the installation status. Will retry later..."


# ============================================================================
# Installation
# ============================================================================

@dataclass(frozen=True)
class InstallationProgress:
    """What an installation watcher has already reported.

    Attributes:
        description: Description of the phase whose step is currently open.
        error_reported: Whether the current run of Error samples was reported.
    """

    description: str = ""
    error_reported: bool = False


def reduce_installation_status(
    progress: InstallationProgress,
    status: InstallationStatus,
) -> tuple[InstallationProgress, list[ProgressTransition]]:
    """Reduce one installation sample.

    Args:
        progress: Progress reported so far.
        status: The new sample.

    Returns:
        Tuple of (updated progress, transitions to emit in order).
    """
    state = status.state

    if state is InstallationState.INSTALLED:
        return progress, [ProgressTransition(TransitionKind.SUCCESS, subject=progress.description)]

    if state is InstallationState.ERROR:
        if progress.error_reported:
            return progress, []
        return replace(progress, error_reported=True), [
            ProgressTransition(
                TransitionKind.LOG_ERROR,
                subject=status.description,
                message=f"{status.description} failed, which may be OK. Will retry later...",
            ),
            ProgressTransition(TransitionKind.LOG_INFO, message=ERROR_LOG_HINT),
            ProgressTransition(TransitionKind.LOG_INFO, message=INSTALLER_LOGS_HINT),
        ]

    if state is InstallationState.IN_PROGRESS:
        progress = replace(progress, error_reported=False)
        if status.description == progress.description:
            return progress, []
        return replace(progress, description=status.description), [
            ProgressTransition(TransitionKind.SUCCESS, subject=progress.description),
            ProgressTransition(TransitionKind.START, subject=status.description),
        ]

    if state in (InstallationState.NOT_INSTALLED, InstallationState.UNKNOWN):
        return progress, [ProgressTransition(TransitionKind.LOG_INFO, message=STATUS_UNAVAILABLE_MESSAGE)]

    return progress, [
        ProgressTransition(
            TransitionKind.LOG_ERROR,
            subject=status.raw_state,
            message=f"Unexpected status: {status.raw_state}",
        ),
        ProgressTransition(TransitionKind.FAILURE, subject=progress.description),
    ]


# ============================================================================
# Test suites
# ============================================================================

@dataclass(frozen=True)
class SuiteProgress:
    """Last statistic line a test-suite watcher reported."""

    statistic: str = ""


_VERDICTS = {
    ConditionType.SUCCEEDED.value: (SuiteVerdict.SUCCEEDED, TransitionKind.SUCCESS, "succeeded"),
    ConditionType.ERROR.value: (SuiteVerdict.ERRORED, TransitionKind.FAILURE, "errored"),
    ConditionType.FAILED.value: (SuiteVerdict.FAILED, TransitionKind.FAILURE, "failed"),
}


def suite_statistic(snapshot: TestSuiteSnapshot) -> str:
    """Summarise finished tests of a suite in one line."""
    succeeded = failed = skipped = 0
    for result in snapshot.results:
        if result.status == TestStatus.FAILED.value:
            failed += 1
        elif result.status == TestStatus.SUCCEEDED.value:
            succeeded += 1
        elif result.status == TestStatus.SKIPPED.value:
            skipped += 1

    finished = succeeded + failed + skipped
    return (
        f"{finished} out of {len(snapshot.results)} test(s) have finished "
        f"(Succeeded: {succeeded}, Failed: {failed}, Skipped: {skipped})..."
    )


def reduce_test_suite(
    progress: SuiteProgress,
    snapshot: TestSuiteSnapshot,
) -> tuple[SuiteProgress, list[ProgressTransition], SuiteVerdict | None]:
    """Reduce one observed suite snapshot.

    The statistic line is emitted before the terminal check so partial
    progress stays visible for suites that never finish.

    Args:
        progress: Progress reported so far.
        snapshot: Suite state carried by an ADDED or MODIFIED event.

    Returns:
        Tuple of (updated progress, transitions, verdict or None if not terminal).
    """
    transitions: list[ProgressTransition] = []
    statistic = suite_statistic(snapshot)
    if statistic != progress.statistic:
        progress = replace(progress, statistic=statistic)
        transitions.append(ProgressTransition(TransitionKind.PROGRESS, subject=snapshot.name, message=statistic))

    for condition in snapshot.conditions:
        if not condition.status or condition.type not in _VERDICTS:
            continue
        verdict, kind, word = _VERDICTS[condition.type]
        transitions.append(
            ProgressTransition(kind, subject=snapshot.name, message=f"Test suite '{snapshot.name}' execution {word}")
        )
        return progress, transitions, verdict

    return progress, transitions, None


# ============================================================================
# Dispatch
# ============================================================================

def dispatch(sink: ProgressSink, transitions: Iterable[ProgressTransition]) -> None:
    """Apply transitions to a sink in order."""
    for transition in transitions:
        kind = transition.kind
        if kind is TransitionKind.START:
            sink.start(transition.subject)
        elif kind is TransitionKind.PROGRESS:
            sink.progress(transition.message)
        elif kind is TransitionKind.SUCCESS:
            sink.success(transition.message or None)
        elif kind is TransitionKind.FAILURE:
            sink.failure(transition.message or None)
        elif kind is TransitionKind.LOG_INFO:
            sink.log_info(transition.message)
        elif kind is TransitionKind.LOG_ERROR:
            sink.log_error(transition.message)
