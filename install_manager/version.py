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

"""Client and cluster version lookup."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from kubernetes import client
from urllib3.exceptions import HTTPError

from install_manager.constants import INSTALLER_NAMESPACE, INSTALLER_POD_SELECTOR, VERSION_NOT_AVAILABLE
from install_manager.errors import StatusSourceError

DISTRIBUTION_NAME = "install-manager"


def cli_version() -> str:
    """Version of this tool, or N/A when running from an uninstalled tree."""
    try:
        return version(DISTRIBUTION_NAME)
    except PackageNotFoundError:
        return VERSION_NOT_AVAILABLE


def cluster_version(core: client.CoreV1Api, request_timeout: int | None = None) -> str:
    """Installed version, read from the tag of the installer pod image.

    Args:
        core: Core v1 API client.
        request_timeout: Optional request timeout in seconds.

    Returns:
        The image tag, or N/A when no installer pod or no tag exists.

    Raises:
        StatusSourceError: If the pods cannot be listed.
    """
    try:
        pods = core.list_namespaced_pod(
            INSTALLER_NAMESPACE, label_selector=INSTALLER_POD_SELECTOR, _request_timeout=request_timeout,
        )
    except client.ApiException as err:
        raise StatusSourceError(f"Unable to list installer pods: {err.reason}") from err
    except HTTPError as err:
        raise StatusSourceError(f"Unable to reach the Kubernetes API server: {err}") from err

    if not pods.items or not pods.items[0].spec.containers:
        return VERSION_NOT_AVAILABLE
    image = pods.items[0].spec.containers[0].image or ""
    _, sep, tag = image.rpartition(":")
    if not sep or "/" in tag:
        return VERSION_NOT_AVAILABLE
    return tag
