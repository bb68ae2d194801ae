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

"""Constants, release defaults loading, and default_value helper."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml


def load_defaults() -> dict:
    """Load release defaults from defaults.yaml.

    Returns:
        Parsed YAML content as a nested dictionary.
    """
    defaults_file = Path(__file__).resolve().parent / "defaults.yaml"
    with open(defaults_file) as f:
        return yaml.safe_load(f)


DEFAULTS = load_defaults()


def default_value(*keys: str, default: Any = None) -> Any:
    """Safely traverse the DEFAULTS dict by key path.

    Args:
        *keys: Sequence of dictionary keys to traverse.
        default: Value to return if any key is missing.

    Returns:
        The value at the nested key path, or *default* if not found.
    """
    node = DEFAULTS
    for key in keys:
        if not isinstance(node, dict):
            return default
        node = node.get(key)
        if node is None:
            return default
    return node


# -- Installation watch --
INSTALL_POLL_INTERVAL_SECONDS = 10
DEFAULT_INSTALL_TIMEOUT_SECONDS = 30 * 60
STATUS_REQUEST_TIMEOUT_SECONDS = 30

ACTIVATE_MAX_RETRIES = 12
ACTIVATE_POLL_INTERVAL_SECONDS = 5

# -- Test-suite watch --
WATCH_RESYNC_SECONDS = 30
CANCEL_CHECK_SECONDS = 0.2
HTTP_GONE = 410

# -- Installer resources --
INSTALLATION_KIND = "installation"
INSTALLATION_NAME = "kyma-installation"
INSTALLATION_NAMESPACE = "default"
INSTALLATION_ACTION_LABEL = "action=install"
INSTALLER_NAMESPACE = "kyma-installer"
INSTALLER_POD_SELECTOR = "name=kyma-installer"
OVERRIDES_CONFIGMAP = "installation-config-overrides"
OWN_DOMAIN_CONFIGMAP = "owndomain-overrides"
OVERRIDES_LABEL = "installer=overrides"

# -- Summary --
NS_KYMA_SYSTEM = "kyma-system"
ADMIN_SECRET = "admin-user"
CONSOLE_VIRTUAL_SERVICE = "core-console"
VIRTUAL_SERVICE_GROUP = "networking.istio.io"
VIRTUAL_SERVICE_VERSION = "v1alpha3"
VIRTUAL_SERVICE_PLURAL = "virtualservices"
CONSOLE_NOT_INSTALLED = "not installed"
VERSION_NOT_AVAILABLE = "N/A"

# -- Domain --
LOCAL_DOMAIN = "kyma.local"

# -- Test suites --
TESTING_GROUP = "testing.kyma-project.io"
TESTING_VERSION = "v1alpha1"
TEST_SUITE_KIND = "ClusterTestSuite"
TEST_SUITE_PLURAL = "clustertestsuites"
TEST_DEFINITION_PLURAL = "testdefinitions"
TEST_SUITE_NAME_PREFIX = "test-"
DEFAULT_IGNORED_CONTAINERS = ("istio-init", "istio-proxy", "manager")
DEFAULT_LOGS_IN_STATUS = "Failed"

# -- Installer diagnostics --
ERROR_LOG_TEMPLATE = (
    '{{- range .status.errorLog -}}'
    '{{printf "%s:\\n %s [%s]\\n" .component .log .occurrences}}'
    '{{- end}}'
)
ERROR_LOG_HINT = (
    f"To fetch the error logs from the installer, run: kubectl get installation {INSTALLATION_NAME} "
    "-o go-template --template='{{- range .status.errorLog }}"
    '{{printf "%s:\\n %s\\n" .component .log}}{{- end}}\''
)
INSTALLER_LOGS_HINT = (
    "To fetch the application logs from the installer, run: "
    f"kubectl logs -n {INSTALLER_NAMESPACE} -l {INSTALLER_POD_SELECTOR}"
)

# -- kubectl timeout markers --
KUBECTL_TIMEOUT_MARKERS = ("timed out", "timeout", "deadline exceeded")
