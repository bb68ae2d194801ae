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

"""Version command."""

from __future__ import annotations

import typer

from install_manager import console
from install_manager.config import KubeConfig
from install_manager.errors import StatusSourceError
from install_manager.kube import load_clients
from install_manager.version import cli_version, cluster_version


def version(
    ctx: typer.Context,
    client_only: bool = typer.Option(False, "--client", "-c", help="Client version only (no cluster required)"),
) -> None:
    """Print the client version and the version installed on the cluster."""
    typer.echo(f"Client version: {cli_version()}")
    if client_only:
        return

    kube_cfg: KubeConfig = ctx.obj
    clients = load_clients(kube_cfg)
    try:
        installed = cluster_version(clients.core, clients.request_timeout)
    except StatusSourceError as e:
        console.print(
            f"[yellow]⚠️  Unable to get the cluster version: {e}. "
            "Check if your cluster is available and has the platform installed[/yellow]"
        )
        return
    typer.echo(f"Cluster version: {installed}")
