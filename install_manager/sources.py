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

"""Status sources observed by the watchers.

Two shapes exist: the Installation resource is polled through kubectl, and
ClusterTestSuites are listed and watched through the Kubernetes API.
"""

from __future__ import annotations

import functools
import threading
from collections.abc import Iterator
from typing import Any, Protocol

from kubernetes import client, watch
from urllib3.exceptions import HTTPError, ProtocolError, ReadTimeoutError

from install_manager import logger
from install_manager.constants import (
    CANCEL_CHECK_SECONDS,
    ERROR_LOG_TEMPLATE,
    HTTP_GONE,
    INSTALLATION_KIND,
    STATUS_REQUEST_TIMEOUT_SECONDS,
    TEST_DEFINITION_PLURAL,
    TEST_SUITE_PLURAL,
    TESTING_GROUP,
    TESTING_VERSION,
)
from install_manager.errors import ResourceNotFound, StatusSourceError
from install_manager.kube import kubectl_args, kubectl_json, kubectl_output
from install_manager.models import InstallationStatus


# ============================================================================
# Installation (poll)
# ============================================================================

class InstallationStatusSource(Protocol):
    """Poll interface over the Installation resource."""

    def sample_status(self) -> InstallationStatus:
        """Return the current state and description.

        Raises:
            TransientStatusError: If the request timed out and may be retried.
            StatusSourceError: For any other failure.
        """
        ...

    def error_log(self) -> str:
        """Return the installer's accumulated error log for diagnostics."""
        ...


class KubectlInstallationSource:
    """Sample the Installation resource with kubectl.

    State and description are read from one ``-o json`` response, so a
    sample never mixes two revisions of the resource.
    """

    def __init__(
        self,
        name: str,
        namespace: str,
        kubeconfig: str | None = None,
        request_timeout: int = STATUS_REQUEST_TIMEOUT_SECONDS,
    ) -> None:
        self.name = name
        self.namespace = namespace
        self.kubeconfig = kubeconfig
        self.request_timeout = request_timeout

    def _args(self, *args: str) -> list[str]:
        return kubectl_args(["-n", self.namespace, *args], self.kubeconfig)

    def sample_status(self) -> InstallationStatus:
        obj = kubectl_json(self._args("get", f"{INSTALLATION_KIND}/{self.name}"), timeout=self.request_timeout)
        return InstallationStatus.from_object(obj)

    def error_log(self) -> str:
        return kubectl_output(
            self._args("get", INSTALLATION_KIND, self.name, "-o", "go-template", f"--template={ERROR_LOG_TEMPLATE}"),
            timeout=self.request_timeout,
        )


# ============================================================================
# Test suites (list + watch)
# ============================================================================

class TestSuiteSource(Protocol):
    """List-then-watch interface over ClusterTestSuites, restricted to one name."""

    def list_suite(self, name: str) -> tuple[list[dict[str, Any]], str]:
        """Return suites matching *name* and the list's resource version."""
        ...

    def watch_suite(
        self,
        name: str,
        resource_version: str,
        timeout_seconds: int,
        cancel: threading.Event | None = None,
    ) -> Iterator[dict[str, Any]]:
        """Yield ``{"type": ..., "object": ...}`` events newer than *resource_version*.

        The iterator ends after at most *timeout_seconds*, or soon after
        *cancel* is set, even while a read is pending.
        """
        ...


def _name_selector(name: str) -> str:
    return f"metadata.name={name}"


def _unreachable(err: HTTPError) -> StatusSourceError:
    return StatusSourceError(f"Unable to reach the Kubernetes API server: {err}")


class TestSuiteClient:
    """ClusterTestSuite and TestDefinition access through the Kubernetes API.

    API errors and transport failures (refused connections, exhausted
    retries) both surface as :class:`StatusSourceError`.
    """

    __test__ = False

    def __init__(self, api: client.CustomObjectsApi, request_timeout: int = STATUS_REQUEST_TIMEOUT_SECONDS) -> None:
        self.api = api
        self.request_timeout = request_timeout

    def list_test_suites(self, field_selector: str | None = None) -> dict[str, Any]:
        """List ClusterTestSuites.

        Args:
            field_selector: Optional field selector, e.g. ``metadata.name=x``.

        Returns:
            The list object with ``items`` and ``metadata``.

        Raises:
            StatusSourceError: If the API request fails.
        """
        kwargs: dict[str, Any] = {"_request_timeout": self.request_timeout}
        if field_selector:
            kwargs["field_selector"] = field_selector
        try:
            return self.api.list_cluster_custom_object(TESTING_GROUP, TESTING_VERSION, TEST_SUITE_PLURAL, **kwargs)
        except client.ApiException as err:
            raise StatusSourceError(f"Unable to list test suites: {err.reason}") from err
        except HTTPError as err:
            raise _unreachable(err) from err

    def list_test_definitions(self) -> list[dict[str, Any]]:
        """List TestDefinitions across all namespaces.

        Raises:
            StatusSourceError: If the API request fails.
        """
        try:
            result = self.api.list_cluster_custom_object(
                TESTING_GROUP, TESTING_VERSION, TEST_DEFINITION_PLURAL, _request_timeout=self.request_timeout,
            )
        except client.ApiException as err:
            raise StatusSourceError(f"Unable to get the list of test definitions: {err.reason}") from err
        except HTTPError as err:
            raise _unreachable(err) from err
        return result.get("items", [])

    def create_test_suite(self, body: dict[str, Any]) -> dict[str, Any]:
        """Create a ClusterTestSuite.

        Raises:
            StatusSourceError: If the API request fails.
        """
        try:
            return self.api.create_cluster_custom_object(
                TESTING_GROUP, TESTING_VERSION, TEST_SUITE_PLURAL, body, _request_timeout=self.request_timeout,
            )
        except client.ApiException as err:
            raise StatusSourceError(f"Unable to create test suite: {err.reason}") from err
        except HTTPError as err:
            raise _unreachable(err) from err

    def delete_test_suite(self, name: str) -> None:
        """Delete a ClusterTestSuite.

        Raises:
            ResourceNotFound: If the suite does not exist.
            StatusSourceError: If the API request fails otherwise.
        """
        try:
            self.api.delete_cluster_custom_object(
                TESTING_GROUP, TESTING_VERSION, TEST_SUITE_PLURAL, name, _request_timeout=self.request_timeout,
            )
        except client.ApiException as err:
            if err.status == 404:
                raise ResourceNotFound(TEST_SUITE_PLURAL, name) from err
            raise StatusSourceError(f"Unable to delete test suite '{name}': {err.reason}") from err
        except HTTPError as err:
            raise _unreachable(err) from err

    def list_suite(self, name: str) -> tuple[list[dict[str, Any]], str]:
        result = self.list_test_suites(_name_selector(name))
        return result.get("items", []), (result.get("metadata") or {}).get("resourceVersion", "")

    def watch_suite(
        self,
        name: str,
        resource_version: str,
        timeout_seconds: int,
        cancel: threading.Event | None = None,
    ) -> Iterator[dict[str, Any]]:
        """Stream watch events for one suite.

        When *cancel* is set while a read is pending, the open response is
        closed and the stream ends without an error.
        """
        w = watch.Watch()
        responses: list[Any] = []
        done = threading.Event()

        @functools.wraps(self.api.list_cluster_custom_object)
        def list_call(*args: Any, **kwargs: Any) -> Any:
            resp = self.api.list_cluster_custom_object(*args, **kwargs)
            responses.append(resp)
            return resp

        if cancel is not None:
            threading.Thread(
                target=_abort_on_cancel, args=(cancel, done, w, responses), name=f"watch-cancel-{name}", daemon=True,
            ).start()
        try:
            yield from w.stream(
                list_call,
                TESTING_GROUP,
                TESTING_VERSION,
                TEST_SUITE_PLURAL,
                field_selector=_name_selector(name),
                resource_version=resource_version,
                timeout_seconds=timeout_seconds,
                _request_timeout=timeout_seconds + self.request_timeout,
            )
        except client.ApiException as err:
            # the watch helper turns ERROR events into exceptions
            if err.status == HTTP_GONE:
                yield {"type": "ERROR", "object": {"kind": "Status", "code": HTTP_GONE, "reason": err.reason}}
                return
            raise StatusSourceError(f"Watching test suite '{name}' failed: {err.reason}") from err
        except (ReadTimeoutError, ProtocolError) as err:
            logger.debug("Watch stream for test suite %s closed: %s", name, err)
        except HTTPError as err:
            if cancel is not None and cancel.is_set():
                logger.debug("Watch stream for test suite %s aborted: %s", name, err)
                return
            raise _unreachable(err) from err
        finally:
            done.set()
            w.stop()


def _abort_on_cancel(cancel: threading.Event, done: threading.Event, w: watch.Watch, responses: list[Any]) -> None:
    while not done.wait(CANCEL_CHECK_SECONDS):
        if cancel.is_set():
            logger.debug("Cancelling pending watch read")
            w.stop()
            for resp in responses:
                resp.close()
            return
