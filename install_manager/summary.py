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

"""Post-installation summary."""

from __future__ import annotations

import base64

from kubernetes import client
from rich.panel import Panel
from rich.table import Table
from urllib3.exceptions import HTTPError

from install_manager import console
from install_manager.config import InstallConfig
from install_manager.constants import (
    ADMIN_SECRET,
    CONSOLE_NOT_INSTALLED,
    CONSOLE_VIRTUAL_SERVICE,
    LOCAL_DOMAIN,
    NS_KYMA_SYSTEM,
    VIRTUAL_SERVICE_GROUP,
    VIRTUAL_SERVICE_PLURAL,
    VIRTUAL_SERVICE_VERSION,
    default_value,
)
from install_manager.errors import StatusSourceError
from install_manager.kube import KubeClients
from install_manager.models import InstallationSummary
from install_manager.version import cluster_version


def console_url(custom: client.CustomObjectsApi, request_timeout: int | None = None) -> str:
    """URL of the console, from the first host of its VirtualService.

    Raises:
        StatusSourceError: If the VirtualService cannot be read or has no hosts.
    """
    try:
        vs = custom.get_namespaced_custom_object(
            VIRTUAL_SERVICE_GROUP,
            VIRTUAL_SERVICE_VERSION,
            NS_KYMA_SYSTEM,
            VIRTUAL_SERVICE_PLURAL,
            CONSOLE_VIRTUAL_SERVICE,
            _request_timeout=request_timeout,
        )
    except client.ApiException as err:
        if err.status == 404:
            return CONSOLE_NOT_INSTALLED
        raise StatusSourceError(f"Unable to read the console VirtualService: {err.reason}") from err
    except HTTPError as err:
        raise StatusSourceError(f"Unable to reach the Kubernetes API server: {err}") from err

    hosts = (vs.get("spec") or {}).get("hosts") or []
    if not hosts:
        raise StatusSourceError("Console host could not be obtained.")
    return f"https://{hosts[0]}"


def admin_credentials(core: client.CoreV1Api, request_timeout: int | None = None) -> tuple[str, str]:
    """Admin email and password from the admin user secret.

    Raises:
        StatusSourceError: If the secret cannot be read.
    """
    try:
        secret = core.read_namespaced_secret(ADMIN_SECRET, NS_KYMA_SYSTEM, _request_timeout=request_timeout)
    except client.ApiException as err:
        raise StatusSourceError(f"Unable to read secret {ADMIN_SECRET}: {err.reason}") from err
    except HTTPError as err:
        raise StatusSourceError(f"Unable to reach the Kubernetes API server: {err}") from err

    data = secret.data or {}

    def decode(key: str) -> str:
        return base64.b64decode(data.get(key, "")).decode()

    return decode("email"), decode("password")


def collect_summary(clients: KubeClients) -> InstallationSummary:
    """Gather version, endpoints, and credentials of an installation.

    Args:
        clients: Kubernetes API clients.

    Returns:
        The collected summary.

    Raises:
        StatusSourceError: If any of the reads fails.
    """
    email, password = admin_credentials(clients.core, clients.request_timeout)
    return InstallationSummary(
        version=cluster_version(clients.core, clients.request_timeout),
        host=clients.host,
        console_url=console_url(clients.custom, clients.request_timeout),
        admin_email=email,
        admin_password=password,
    )


def print_summary(summary: InstallationSummary, cfg: InstallConfig) -> None:
    """Print the summary; the password is only shown when it was generated.

    Args:
        summary: Collected summary.
        cfg: Settings the installation ran with.
    """
    console.print(Panel.fit("Installation summary", style="bold blue"))
    table = Table(show_header=False, box=None)
    table.add_column("Key", style="bold")
    table.add_column("Value", style="cyan")
    table.add_row("Installed version", summary.version)
    table.add_row("Running at", summary.host)
    table.add_row("Console", summary.console_url)
    table.add_row("Admin email", summary.admin_email)
    if not cfg.password:
        table.add_row("Admin password", summary.admin_password)
    console.print(table)

    if cfg.domain != LOCAL_DOMAIN:
        dns_docs = default_value("docs", "own_domain_dns", default="")
        console.print(f"[yellow]ℹ️  To access the console, configure DNS for the cluster load balancer: {dns_docs}[/yellow]")

    console.print("[green]✅ Installation completed[/green]")
