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

"""Install command."""

from __future__ import annotations

import typer

from install_manager.config import InstallConfig, KubeConfig
from install_manager.installer import run_install
from install_manager.kube import load_clients
from install_manager.steps import ConsoleSteps


def install(
    ctx: typer.Context,
    domain: str | None = typer.Option(None, "--domain", "-d", help="Domain the installation is exposed on"),
    password: str | None = typer.Option(None, "--password", "-p", help="Predefined admin password"),
    tls_cert: str | None = typer.Option(None, "--tls-cert", help="TLS certificate for the domain"),
    tls_key: str | None = typer.Option(None, "--tls-key", help="TLS key for the domain"),
    timeout: int | None = typer.Option(
        None, "--timeout", min=0, help="Seconds to wait for the installation; 0 waits forever",
    ),
    no_wait: bool = typer.Option(False, "--no-wait", "-n", help="Do not wait for the installation to finish"),
    resource: list[str] | None = typer.Option(
        None, "--resource", help="Installer manifest (path or URL); repeatable, replaces the release defaults",
    ),
    override: list[str] | None = typer.Option(
        None, "--override", "-o", help="Override manifest applied after the installer; repeatable",
    ),
    version: str | None = typer.Option(None, "--version", help="Release version to install"),
) -> None:
    """Install onto the cluster the kubeconfig points to."""
    kube_cfg: KubeConfig = ctx.obj
    cfg = InstallConfig()
    updates = {
        key: value
        for key, value in {
            "domain": domain,
            "password": password,
            "tls_cert": tls_cert,
            "tls_key": tls_key,
            "timeout": timeout,
            "version": version,
        }.items()
        if value is not None
    }
    if no_wait:
        updates["no_wait"] = True
    if resource:
        updates["resources"] = list(resource)
    if override:
        updates["overrides"] = list(override)
    if updates:
        cfg = cfg.model_copy(update=updates)

    run_install(cfg, kube_cfg, load_clients(kube_cfg), ConsoleSteps())
