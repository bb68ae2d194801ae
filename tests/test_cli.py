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

"""Tests for the command-line surface."""

from __future__ import annotations

from unittest import mock

import pytest
from typer.testing import CliRunner
from urllib3.exceptions import MaxRetryError, NewConnectionError

from install_manager.cli import app
from install_manager.commands import install_cmd, test_cmd, version_cmd
from install_manager.errors import ConfigurationError, StatusSourceError
from install_manager.models import SuiteVerdict

runner = CliRunner()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in ("KYMA_KUBECONFIG", "KYMA_DOMAIN", "KYMA_TIMEOUT", "KYMA_TEST_WATCH", "KYMA_TEST_COUNT"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def load_clients(monkeypatch) -> mock.Mock:
    fake = mock.Mock()
    for module in (install_cmd, test_cmd, version_cmd):
        monkeypatch.setattr(module, "load_clients", fake)
    return fake


def test_install_maps_options_to_settings(monkeypatch, load_clients):
    run_install = mock.Mock()
    monkeypatch.setattr(install_cmd, "run_install", run_install)

    result = runner.invoke(app, [
        "--kubeconfig", "/tmp/kc",
        "install",
        "--domain", "example.com",
        "--timeout", "120",
        "--no-wait",
        "--override", "a.yaml",
        "--override", "b.yaml",
    ])

    assert result.exit_code == 0, result.output
    cfg, kube_cfg, clients, _ = run_install.call_args.args
    assert cfg.domain == "example.com"
    assert cfg.timeout == 120
    assert cfg.no_wait is True
    assert cfg.overrides == ["a.yaml", "b.yaml"]
    assert cfg.resources == []
    assert kube_cfg.kubeconfig == "/tmp/kc"
    assert clients is load_clients.return_value


def test_install_rejects_negative_timeout(load_clients):
    result = runner.invoke(app, ["install", "--timeout", "-5"])

    assert result.exit_code != 0


def test_test_run_failed_suite_exits_non_zero(monkeypatch, load_clients):
    run_test_suite = mock.Mock(return_value=("smoke", SuiteVerdict.FAILED))
    monkeypatch.setattr(test_cmd, "run_test_suite", run_test_suite)

    result = runner.invoke(app, ["test", "run", "dex", "logging", "--name", "smoke", "--count", "2", "--no-watch"])

    assert result.exit_code == 1
    _, _, names, cfg = run_test_suite.call_args.args
    assert names == ["dex", "logging"]
    assert cfg.count == 2
    assert cfg.watch is False
    assert run_test_suite.call_args.kwargs["suite_name"] == "smoke"


def test_test_run_succeeded(monkeypatch, load_clients):
    monkeypatch.setattr(test_cmd, "run_test_suite", mock.Mock(return_value=("test-1", SuiteVerdict.SUCCEEDED)))

    assert runner.invoke(app, ["test", "run"]).exit_code == 0


def test_test_logs_passes_ignored_containers(monkeypatch, load_clients):
    show_test_logs = mock.Mock()
    monkeypatch.setattr(test_cmd, "show_test_logs", show_test_logs)

    result = runner.invoke(app, ["test", "logs", "a", "b", "--in-status", "Succeeded", "--ignored-containers", "x, y"])

    assert result.exit_code == 0, result.output
    args = show_test_logs.call_args.args
    assert args[3:] == (["a", "b"], "Succeeded", ["x", "y"])


def test_test_logs_invalid_status_fails(load_clients):
    load_clients.return_value.custom.list_cluster_custom_object.return_value = {"items": []}

    result = runner.invoke(app, ["test", "logs", "a", "--in-status", "broken"])

    assert result.exit_code == 1
    assert isinstance(result.exception, ConfigurationError)


def test_version_client_only_does_not_touch_cluster(load_clients):
    result = runner.invoke(app, ["version", "--client"])

    assert result.exit_code == 0
    assert "Client version:" in result.stdout
    load_clients.assert_not_called()


def test_version_reports_cluster(monkeypatch, load_clients):
    monkeypatch.setattr(version_cmd, "cluster_version", mock.Mock(return_value="1.6.0"))

    result = runner.invoke(app, ["version"])

    assert "Cluster version: 1.6.0" in result.stdout


def test_version_unreachable_cluster_is_not_fatal(monkeypatch, load_clients):
    monkeypatch.setattr(version_cmd, "cluster_version", mock.Mock(side_effect=StatusSourceError("refused")))

    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert "Cluster version" not in result.stdout


def test_version_with_refused_connection_is_not_fatal(load_clients):
    load_clients.return_value.core.list_namespaced_pod.side_effect = MaxRetryError(
        None, "/api/v1/namespaces/kyma-installer/pods", NewConnectionError(None, "connection refused"),
    )

    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert "Client version:" in result.stdout
    assert "Cluster version" not in result.stdout
