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

"""Test subcommands (run, logs, delete)."""

from __future__ import annotations

import typer

from install_manager import console
from install_manager.config import KubeConfig, TestRunConfig
from install_manager.constants import DEFAULT_IGNORED_CONTAINERS, DEFAULT_LOGS_IN_STATUS
from install_manager.kube import load_clients
from install_manager.models import SuiteVerdict
from install_manager.sources import TestSuiteClient
from install_manager.steps import ConsoleSteps
from install_manager.suites import delete_test_suite, run_test_suite, show_test_logs

app = typer.Typer(help="Run and inspect test suites.")


@app.command()
def run(
    ctx: typer.Context,
    names: list[str] | None = typer.Argument(None, help="Test definitions to run; all when omitted"),
    name: str | None = typer.Option(None, "--name", "-n", help="Test suite name; generated when omitted"),
    count: int | None = typer.Option(None, "--count", "-c", min=1, help="How many times every test is executed"),
    max_retries: int | None = typer.Option(None, "--max-retries", min=0, help="Retries of a failing test"),
    concurrency: int | None = typer.Option(None, "--concurrency", min=1, help="Tests executed in parallel"),
    timeout: int | None = typer.Option(None, "--timeout", min=0, help="Seconds to watch the suite; 0 watches forever"),
    watch: bool | None = typer.Option(None, "--watch/--no-watch", help="Watch the suite until it finishes"),
) -> None:
    """Create a test suite and watch it to a verdict."""
    kube_cfg: KubeConfig = ctx.obj
    cfg = TestRunConfig()
    updates = {
        key: value
        for key, value in {
            "count": count,
            "max_retries": max_retries,
            "concurrency": concurrency,
            "timeout": timeout,
            "watch": watch,
        }.items()
        if value is not None
    }
    if updates:
        cfg = cfg.model_copy(update=updates)

    clients = load_clients(kube_cfg)
    suites = TestSuiteClient(clients.custom, request_timeout=clients.request_timeout)
    _, verdict = run_test_suite(suites, ConsoleSteps(), names or [], cfg, suite_name=name)
    if verdict is not None and verdict is not SuiteVerdict.SUCCEEDED:
        raise typer.Exit(code=1)


@app.command()
def logs(
    ctx: typer.Context,
    suites: list[str] = typer.Argument(..., help="Test suite names"),
    in_status: str = typer.Option(
        DEFAULT_LOGS_IN_STATUS, "--in-status", help="Only show logs of testing pods in this status",
    ),
    ignored_containers: str = typer.Option(
        ",".join(DEFAULT_IGNORED_CONTAINERS), "--ignored-containers", help="Comma-separated container names to skip",
    ),
) -> None:
    """Show logs of testing pods of the given test suites."""
    kube_cfg: KubeConfig = ctx.obj
    clients = load_clients(kube_cfg)
    show_test_logs(
        TestSuiteClient(clients.custom, request_timeout=clients.request_timeout),
        clients.core,
        ConsoleSteps(),
        suites,
        in_status,
        [c.strip() for c in ignored_containers.split(",") if c.strip()],
    )


@app.command()
def delete(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Test suite name"),
) -> None:
    """Delete a test suite."""
    kube_cfg: KubeConfig = ctx.obj
    clients = load_clients(kube_cfg)
    console.print(f"[yellow]ℹ️  Deleting test suite '{name}'...[/yellow]")
    delete_test_suite(TestSuiteClient(clients.custom, request_timeout=clients.request_timeout), name)
