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

"""ClusterTestSuite creation, execution, logs, and deletion."""

from __future__ import annotations

import random
import threading
from collections.abc import Iterable
from typing import Any

from kubernetes import client
from urllib3.exceptions import HTTPError

from install_manager import console, logger
from install_manager.config import TestRunConfig
from install_manager.constants import (
    DEFAULT_IGNORED_CONTAINERS,
    TEST_SUITE_KIND,
    TEST_SUITE_NAME_PREFIX,
    TESTING_GROUP,
    TESTING_VERSION,
)
from install_manager.errors import ConfigurationError, StatusSourceError
from install_manager.models import SuiteVerdict, TestResult, TestStatus, TestSuiteSnapshot
from install_manager.sources import TestSuiteClient
from install_manager.steps import ProgressSink
from install_manager.watcher import TestSuiteWatcher


# ============================================================================
# Creation
# ============================================================================

def generate_suite_name() -> str:
    """Random suite name of the form ``test-<int31>``."""
    return f"{TEST_SUITE_NAME_PREFIX}{random.randint(0, 2**31 - 1)}"


def suite_exists(suites: TestSuiteClient, name: str) -> bool:
    """Whether a ClusterTestSuite with *name* exists."""
    items = suites.list_test_suites().get("items", [])
    return any((item.get("metadata") or {}).get("name") == name for item in items)


def match_test_definitions(names: Iterable[str], definitions: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Select test definitions by name, case-insensitively.

    Args:
        names: Requested definition names; empty selects all definitions.
        definitions: TestDefinition objects present in the cluster.

    Returns:
        Matching definitions, in the order the names were given.

    Raises:
        ConfigurationError: If a name matches no definition.
    """
    names = list(names)
    if not names:
        return list(definitions)

    matched = []
    for name in names:
        found = next(
            (d for d in definitions if (d.get("metadata") or {}).get("name", "").lower() == name.lower()),
            None,
        )
        if found is None:
            raise ConfigurationError(f"Test definition '{name}' not found in the list of cluster test definitions")
        matched.append(found)
    return matched


def build_test_suite(
    name: str,
    definitions: list[dict[str, Any]],
    count: int = 1,
    max_retries: int = 0,
    concurrency: int = 1,
) -> dict[str, Any]:
    """Build a ClusterTestSuite selecting *definitions* by name and namespace.

    ``count`` and ``max_retries`` are both passed through; the testing
    controller decides how to combine them.
    """
    match_names = [
        {"name": d["metadata"]["name"], "namespace": d["metadata"].get("namespace", "")}
        for d in definitions
    ]
    return {
        "apiVersion": f"{TESTING_GROUP}/{TESTING_VERSION}",
        "kind": TEST_SUITE_KIND,
        "metadata": {"name": name},
        "spec": {
            "count": count,
            "maxRetries": max_retries,
            "concurrency": concurrency,
            "selectors": {"matchNames": match_names},
        },
    }


def run_test_suite(
    suites: TestSuiteClient,
    sink: ProgressSink,
    names: Iterable[str],
    cfg: TestRunConfig,
    suite_name: str | None = None,
    cancel: threading.Event | None = None,
) -> tuple[str, SuiteVerdict | None]:
    """Create a test suite and, when configured, watch it to a verdict.

    Args:
        suites: Test-suite API access.
        sink: Where progress is reported.
        names: Test definition names; empty runs every definition.
        cfg: Execution settings.
        suite_name: Suite name, generated when None.
        cancel: Optional event that aborts the watch.

    Returns:
        Tuple of (suite name, verdict or None when not watching).

    Raises:
        ConfigurationError: If the suite exists or a definition is unknown.
        StatusSourceError: If the API requests fail.
        WatchError: If the watch stops without a verdict.
    """
    name = suite_name or generate_suite_name()
    if suite_exists(suites, name):
        raise ConfigurationError(f"Test suite '{name}' already exists")

    definitions = match_test_definitions(names, suites.list_test_definitions())
    logger.debug("Creating test suite %s with %d test definition(s)", name, len(definitions))
    suites.create_test_suite(
        build_test_suite(name, definitions, cfg.count, cfg.max_retries, cfg.concurrency)
    )
    console.print(f"[green]✅ Test suite '{name}' successfully created[/green]")

    if not cfg.watch:
        return name, None
    verdict = TestSuiteWatcher(suites, sink, cancel=cancel).wait(name, cfg.timeout)
    return name, verdict


def delete_test_suite(suites: TestSuiteClient, name: str) -> None:
    """Delete a test suite.

    Raises:
        ResourceNotFound: If the suite does not exist.
    """
    suites.delete_test_suite(name)
    console.print(f"[green]✅ Test suite '{name}' deleted[/green]")


# ============================================================================
# Logs
# ============================================================================

def validate_status(status: str) -> str:
    """Check a ``--in-status`` value against the known test statuses.

    Raises:
        ConfigurationError: If the value is not a test status.
    """
    allowed = [s.value for s in TestStatus]
    if status not in allowed:
        raise ConfigurationError(
            f'invalid argument "{status}" for "--in-status" flag: allowed values are: {", ".join(allowed)}'
        )
    return status


def list_test_suites_by_name(suites: TestSuiteClient, names: Iterable[str]) -> list[TestSuiteSnapshot]:
    """Snapshots of the named suites that exist, in cluster order."""
    wanted = set(names)
    items = suites.list_test_suites().get("items", [])
    return [
        TestSuiteSnapshot.from_object(item)
        for item in items
        if (item.get("metadata") or {}).get("name") in wanted
    ]


def filter_results_by_status(snapshots: Iterable[TestSuiteSnapshot], status: str) -> list[TestResult]:
    """Results of all *snapshots* whose status equals *status*."""
    return [result for snapshot in snapshots for result in snapshot.results if result.status == status]


def fetch_result_logs(
    core: client.CoreV1Api,
    result: TestResult,
    ignored_containers: Iterable[str] = DEFAULT_IGNORED_CONTAINERS,
) -> str:
    """Concatenate logs of every testing pod execution of *result*.

    Args:
        core: Core v1 API client.
        result: Test result whose executions are pod names.
        ignored_containers: Container names skipped, e.g. sidecars.

    Returns:
        Log text, one header line per pod container.

    Raises:
        StatusSourceError: If a pod or its logs cannot be read.
    """
    ignored = set(ignored_containers)
    chunks = []
    for execution in result.executions:
        try:
            pod = core.read_namespaced_pod(execution.id, result.namespace)
        except client.ApiException as err:
            raise StatusSourceError(f"Unable to get pod {result.namespace}/{execution.id}: {err.reason}") from err
        except HTTPError as err:
            raise StatusSourceError(f"Unable to reach the Kubernetes API server: {err}") from err

        for container in pod.spec.containers:
            if container.name in ignored:
                continue
            try:
                log = core.read_namespaced_pod_log(execution.id, result.namespace, container=container.name)
            except client.ApiException as err:
                raise StatusSourceError(
                    f"Unable to get logs of {result.namespace}/{execution.id}[{container.name}]: {err.reason}"
                ) from err
            except HTTPError as err:
                raise StatusSourceError(f"Unable to reach the Kubernetes API server: {err}") from err
            chunks.append(f"Logs from test {result.name}, pod {execution.id}, container {container.name}:")
            chunks.append(log.rstrip("\n"))
    return "\n".join(chunks)


def show_test_logs(
    suites: TestSuiteClient,
    core: client.CoreV1Api,
    sink: ProgressSink,
    suite_names: list[str],
    in_status: str,
    ignored_containers: Iterable[str] = DEFAULT_IGNORED_CONTAINERS,
) -> None:
    """Print logs of the testing pods of *suite_names* whose result matches *in_status*.

    Raises:
        ConfigurationError: If *in_status* is not a test status.
        StatusSourceError: If suites, pods or logs cannot be read.
    """
    validate_status(in_status)
    sink.start("Fetching logs")

    snapshots = list_test_suites_by_name(suites, suite_names)
    if not snapshots:
        sink.log_info(f"No test suites found for names: {', '.join(suite_names)}")
        sink.success()
        return

    results = filter_results_by_status(snapshots, in_status)
    if not results:
        sink.log_info(f"No logs to fetch for testing pods in status {in_status}")
        sink.success()
        return

    for result in results:
        try:
            content = fetch_result_logs(core, result, ignored_containers)
        except StatusSourceError:
            sink.failure()
            raise
        for line in content.splitlines():
            sink.log_info(line)
    sink.success()
