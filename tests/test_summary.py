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

"""Tests for the installation summary and version lookup."""

from __future__ import annotations

import base64
import io
from types import SimpleNamespace
from unittest import mock

import pytest
from kubernetes import client
from rich.console import Console
from urllib3.exceptions import MaxRetryError, NewConnectionError

from install_manager import summary, version
from install_manager.config import InstallConfig
from install_manager.errors import StatusSourceError
from install_manager.kube import KubeClients
from install_manager.models import InstallationSummary


def b64(value: str) -> str:
    return base64.b64encode(value.encode()).decode()


def installer_pods(*images: str) -> SimpleNamespace:
    return SimpleNamespace(items=[
        SimpleNamespace(spec=SimpleNamespace(containers=[SimpleNamespace(image=image)])) for image in images
    ])


@pytest.fixture
def core() -> mock.Mock:
    fake = mock.Mock(spec=client.CoreV1Api)
    fake.read_namespaced_secret.return_value = SimpleNamespace(
        data={"email": b64("admin@kyma.cx"), "password": b64("s3cret")},
    )
    fake.list_namespaced_pod.return_value = installer_pods("eu.gcr.io/kyma-project/kyma-installer:1.6.0")
    return fake


@pytest.fixture
def custom() -> mock.Mock:
    fake = mock.Mock(spec=client.CustomObjectsApi)
    fake.get_namespaced_custom_object.return_value = {"spec": {"hosts": ["console.kyma.local", "other"]}}
    return fake


@pytest.fixture
def output(monkeypatch) -> io.StringIO:
    buffer = io.StringIO()
    monkeypatch.setattr(summary, "console", Console(file=buffer, width=400, color_system=None))
    return buffer


def test_console_url_uses_first_host(custom):
    assert summary.console_url(custom) == "https://console.kyma.local"


def test_console_not_installed(custom):
    custom.get_namespaced_custom_object.side_effect = client.ApiException(status=404, reason="Not Found")

    assert summary.console_url(custom) == "not installed"


def test_console_without_hosts_is_an_error(custom):
    custom.get_namespaced_custom_object.return_value = {"spec": {}}

    with pytest.raises(StatusSourceError, match="Console host"):
        summary.console_url(custom)


def test_admin_credentials_are_decoded(core):
    assert summary.admin_credentials(core) == ("admin@kyma.cx", "s3cret")


@pytest.mark.parametrize(
    ("pods", "expected"),
    [
        (installer_pods("eu.gcr.io/kyma-project/kyma-installer:1.6.0"), "1.6.0"),
        (installer_pods("localhost:5000/kyma-installer"), "N/A"),
        (installer_pods("kyma-installer"), "N/A"),
        (installer_pods(), "N/A"),
    ],
)
def test_cluster_version_from_image_tag(core, pods, expected):
    core.list_namespaced_pod.return_value = pods

    assert version.cluster_version(core) == expected


def test_cluster_version_api_error(core):
    core.list_namespaced_pod.side_effect = client.ApiException(status=500, reason="boom")

    with pytest.raises(StatusSourceError):
        version.cluster_version(core)


def refused() -> MaxRetryError:
    return MaxRetryError(None, "/api", NewConnectionError(None, "connection refused"))


def test_cluster_version_unreachable_api_server(core):
    core.list_namespaced_pod.side_effect = refused()

    with pytest.raises(StatusSourceError, match="Unable to reach"):
        version.cluster_version(core)


def test_summary_lookups_unreachable_api_server(core, custom):
    custom.get_namespaced_custom_object.side_effect = refused()
    core.read_namespaced_secret.side_effect = refused()

    with pytest.raises(StatusSourceError, match="Unable to reach"):
        summary.console_url(custom)
    with pytest.raises(StatusSourceError, match="Unable to reach"):
        summary.admin_credentials(core)


def test_collect_summary(core, custom):
    clients = KubeClients(core=core, custom=custom, host="https://api.cluster:6443", request_timeout=5)

    assert summary.collect_summary(clients) == InstallationSummary(
        version="1.6.0",
        host="https://api.cluster:6443",
        console_url="https://console.kyma.local",
        admin_email="admin@kyma.cx",
        admin_password="s3cret",
    )


SUMMARY = InstallationSummary("1.6.0", "https://api", "https://console.kyma.local", "admin@kyma.cx", "s3cret")


def test_generated_password_is_shown(output):
    summary.print_summary(SUMMARY, InstallConfig(password=None))

    assert "s3cret" in output.getvalue()
    assert "configure DNS" not in output.getvalue()


def test_supplied_password_is_hidden(output):
    summary.print_summary(SUMMARY, InstallConfig(password="s3cret", domain="example.com"))

    text = output.getvalue()
    assert "s3cret" not in text
    assert "admin@kyma.cx" in text
    assert "configure DNS" in text
