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

"""
cli.py - Install Kyma onto a Kubernetes cluster and run its test suites.

Subcommands:
    install    Deploy the installer, activate it, and wait for convergence
    test       Test suites (run, logs, delete)
    version    Client and cluster versions

Environment Variables:
    Settings can be overridden via KYMA_* environment variables:
    - KYMA_KUBECONFIG, KYMA_REQUEST_TIMEOUT
    - KYMA_DOMAIN, KYMA_PASSWORD, KYMA_TIMEOUT, KYMA_VERSION
    - KYMA_TEST_COUNT, KYMA_TEST_TIMEOUT, KYMA_TEST_WATCH

Examples:
    # Install the default release on the current cluster
    install-manager install

    # Install on an own domain and return right after activation
    install-manager install --domain example.com --tls-cert ... --tls-key ... --no-wait

    # Run two test definitions and watch them for at most ten minutes
    install-manager test run api-gateway dex --timeout 600

    # Show logs of failed tests
    install-manager test logs test-12345
"""

from __future__ import annotations

import logging
import sys

import typer

from install_manager import console
from install_manager.commands import install_cmd, test_cmd, version_cmd
from install_manager.config import KubeConfig

app = typer.Typer(
    help="Install Kyma onto a Kubernetes cluster and run its test suites.",
    no_args_is_help=True,
)


@app.callback()
def _main_callback(
    ctx: typer.Context,
    kubeconfig: str | None = typer.Option(None, "--kubeconfig", help="Path to the kubeconfig file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Initialize logging and cluster access for all subcommands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )
    kube_cfg = KubeConfig()
    if kubeconfig is not None:
        kube_cfg = kube_cfg.model_copy(update={"kubeconfig": kubeconfig})
    ctx.obj = kube_cfg


app.command("install")(install_cmd.install)
app.add_typer(test_cmd.app, name="test")
app.command("version")(version_cmd.version)


def main() -> None:
    """Console script entry point."""
    try:
        app()
    except Exception as e:
        console.print(f"[red]❌ {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
