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

"""kubectl invocation, timeout classification, and Kubernetes API clients."""

from __future__ import annotations

import json
import subprocess
from dataclasses import dataclass
from typing import Any

import sh
from kubernetes import client, config

from install_manager.config import KubeConfig
from install_manager.constants import KUBECTL_TIMEOUT_MARKERS, STATUS_REQUEST_TIMEOUT_SECONDS
from install_manager.errors import StatusSourceError, TransientStatusError


def require_command(cmd: str) -> None:
    """Check if a command exists on the system PATH.

    Args:
        cmd: Name of the CLI command to check.

    Raises:
        RuntimeError: If the command is not found.
    """
    try:
        found = sh.which(cmd)
    except sh.ErrorReturnCode as err:
        raise RuntimeError(f"Required command '{cmd}' not found. Please install it first.") from err
    if not found:
        raise RuntimeError(f"Required command '{cmd}' not found. Please install it first.")


def kubectl_args(args: list[str], kubeconfig: str | None = None) -> list[str]:
    """Prefix kubectl arguments with ``--kubeconfig`` when one is configured."""
    if kubeconfig:
        return ["--kubeconfig", kubeconfig, *args]
    return list(args)


def run_kubectl(args: list[str], timeout: int = 30) -> tuple[bool, str, str]:
    """Run a kubectl command via subprocess and return (success, stdout, stderr).

    Args:
        args: kubectl arguments (e.g. ``["get", "pods", "-n", "default"]``).
        timeout: Maximum seconds to wait for the command to complete.

    Returns:
        Tuple of (success, stdout, stderr).
    """
    try:
        result = subprocess.run(
            ["kubectl", *args],
            capture_output=True,
            text=True,
            timeout=timeout,
        )
        return result.returncode == 0, result.stdout, result.stderr
    except (subprocess.SubprocessError, OSError) as exc:
        return False, "", str(exc)


def is_timeout_message(stderr: str) -> bool:
    """Whether kubectl stderr reports a client or server side timeout."""
    lowered = stderr.lower()
    return any(marker in lowered for marker in KUBECTL_TIMEOUT_MARKERS)


def kubectl_output(args: list[str], timeout: int = STATUS_REQUEST_TIMEOUT_SECONDS) -> str:
    """Run kubectl and return stdout, classifying failures.

    Unlike :func:`run_kubectl`, failures are raised so that callers can tell
    a timed out request from any other error without inspecting messages.

    Args:
        args: kubectl arguments.
        timeout: Maximum seconds to wait for the command to complete.

    Returns:
        The command's stdout.

    Raises:
        TransientStatusError: If kubectl or the API server timed out.
        StatusSourceError: If kubectl failed for any other reason.
    """
    try:
        result = subprocess.run(
            ["kubectl", f"--request-timeout={timeout}s", *args],
            capture_output=True,
            text=True,
            timeout=timeout + 5,
        )
    except subprocess.TimeoutExpired as exc:
        raise TransientStatusError(f"kubectl {' '.join(args)} timed out after {timeout}s") from exc
    except (subprocess.SubprocessError, OSError) as exc:
        raise StatusSourceError(f"kubectl {' '.join(args)} failed: {exc}") from exc

    if result.returncode != 0:
        stderr = result.stderr.strip()
        if is_timeout_message(stderr):
            raise TransientStatusError(stderr)
        raise StatusSourceError(stderr or f"kubectl {' '.join(args)} exited with {result.returncode}")
    return result.stdout


def kubectl_json(args: list[str], timeout: int = STATUS_REQUEST_TIMEOUT_SECONDS) -> dict[str, Any]:
    """Run ``kubectl ... -o json`` and parse the output.

    Raises:
        TransientStatusError: If kubectl or the API server timed out.
        StatusSourceError: If kubectl failed or printed something other than JSON.
    """
    output = kubectl_output([*args, "-o", "json"], timeout=timeout)
    try:
        return json.loads(output)
    except json.JSONDecodeError as exc:
        raise StatusSourceError(f"kubectl {' '.join(args)} returned invalid JSON") from exc


# ============================================================================
# API clients
# ============================================================================

@dataclass(frozen=True)
class KubeClients:
    """Kubernetes API clients sharing one configuration.

    Attributes:
        core: Core v1 API (pods, secrets, config maps).
        custom: Custom objects API (test suites, virtual services).
        host: API server URL.
        request_timeout: Seconds allowed for a single request.
    """

    core: client.CoreV1Api
    custom: client.CustomObjectsApi
    host: str
    request_timeout: int


def load_clients(kube_cfg: KubeConfig) -> KubeClients:
    """Load kubeconfig and build API clients.

    Args:
        kube_cfg: Cluster access settings.

    Returns:
        Clients bound to the configured cluster.

    Raises:
        RuntimeError: If the kubeconfig cannot be loaded.
    """
    try:
        api_client = config.new_client_from_config(config_file=kube_cfg.kubeconfig)
    except (config.ConfigException, OSError) as err:
        raise RuntimeError(
            "Could not initialize the Kubernetes client. Make sure your kubeconfig is valid"
        ) from err
    return KubeClients(
        core=client.CoreV1Api(api_client),
        custom=client.CustomObjectsApi(api_client),
        host=api_client.configuration.host,
        request_timeout=kube_cfg.request_timeout,
    )
