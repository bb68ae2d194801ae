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

"""Install workflow: deploy the installer, activate it, and wait for convergence."""

from __future__ import annotations

import base64
import threading
from collections.abc import Iterator
from contextlib import contextmanager

import sh
from kubernetes import client
from rich.panel import Panel
from tenacity import retry, stop_after_attempt, wait_fixed

from install_manager import console, logger
from install_manager.config import InstallConfig, KubeConfig, display_install_config, validate_install_config
from install_manager.constants import (
    ACTIVATE_MAX_RETRIES,
    ACTIVATE_POLL_INTERVAL_SECONDS,
    INSTALLATION_ACTION_LABEL,
    INSTALLATION_KIND,
    INSTALLER_NAMESPACE,
    LOCAL_DOMAIN,
    OVERRIDES_CONFIGMAP,
    OVERRIDES_LABEL,
    OWN_DOMAIN_CONFIGMAP,
)
from install_manager.errors import InstallManagerError
from install_manager.kube import KubeClients, kubectl_args, require_command, run_kubectl
from install_manager.models import InstallationState, InstallationSummary
from install_manager.sources import KubectlInstallationSource
from install_manager.steps import ProgressSink
from install_manager.summary import collect_summary, print_summary
from install_manager.watcher import InstallationWatcher


@contextmanager
def step(sink: ProgressSink, label: str) -> Iterator[None]:
    """Open a sink step that succeeds on exit and fails if the body raises."""
    sink.start(label)
    try:
        yield
    except Exception:
        sink.failure()
        raise
    sink.success()


# ============================================================================
# Installer resources
# ============================================================================

def _kubectl(kube_cfg: KubeConfig, *args: str) -> str:
    try:
        return str(sh.kubectl(*kubectl_args(list(args), kube_cfg.kubeconfig)))
    except sh.ErrorReturnCode as e:
        raise InstallManagerError(f"kubectl {' '.join(args)} failed: {e.stderr.decode(errors='replace').strip()}") from e


def apply_manifests(kube_cfg: KubeConfig, manifests: list[str]) -> None:
    """Apply manifest files or URLs in order with ``kubectl apply -f``.

    Args:
        kube_cfg: Cluster access settings.
        manifests: Paths or URLs, applied as opaque files.

    Raises:
        InstallManagerError: If kubectl rejects a manifest.
    """
    for manifest in manifests:
        logger.debug("Applying %s", manifest)
        _kubectl(kube_cfg, "apply", "-f", manifest)


def set_admin_password(core: client.CoreV1Api, password: str) -> None:
    """Store the predefined admin password in the installer overrides.

    Raises:
        InstallManagerError: If the overrides ConfigMap cannot be patched.
    """
    encoded = base64.b64encode(password.encode()).decode()
    patch = [{"op": "replace", "path": "/data/global.adminPassword", "value": encoded}]
    try:
        core.patch_namespaced_config_map(OVERRIDES_CONFIGMAP, INSTALLER_NAMESPACE, patch)
    except client.ApiException as err:
        raise InstallManagerError(f"Error setting admin password: {err.reason}") from err


def create_own_domain_overrides(core: client.CoreV1Api, cfg: InstallConfig) -> None:
    """Create or update the overrides ConfigMap for a custom domain.

    Raises:
        InstallManagerError: If the ConfigMap cannot be written.
    """
    key, _, value = OVERRIDES_LABEL.partition("=")
    body = client.V1ConfigMap(
        metadata=client.V1ObjectMeta(name=OWN_DOMAIN_CONFIGMAP, labels={key: value}),
        data={
            "global.domainName": cfg.domain,
            "global.tlsCrt": cfg.tls_cert or "",
            "global.tlsKey": cfg.tls_key or "",
        },
    )
    try:
        core.create_namespaced_config_map(INSTALLER_NAMESPACE, body)
    except client.ApiException as err:
        if err.status != 409:
            raise InstallManagerError(f"Unable to create {OWN_DOMAIN_CONFIGMAP}: {err.reason}") from err
        logger.info("ConfigMap %s already exists, replacing it", OWN_DOMAIN_CONFIGMAP)
        try:
            core.replace_namespaced_config_map(OWN_DOMAIN_CONFIGMAP, INSTALLER_NAMESPACE, body)
        except client.ApiException as replace_err:
            raise InstallManagerError(
                f"Unable to update {OWN_DOMAIN_CONFIGMAP}: {replace_err.reason}"
            ) from replace_err


# ============================================================================
# Activation
# ============================================================================

@retry(
    stop=stop_after_attempt(ACTIVATE_MAX_RETRIES),
    wait=wait_fixed(ACTIVATE_POLL_INTERVAL_SECONDS),
    reraise=True,
)
def activate_installer(kube_cfg: KubeConfig, cfg: InstallConfig) -> bool:
    """Label the Installation resource so the installer starts working.

    Retried while the Installation resource is not yet served.

    Args:
        kube_cfg: Cluster access settings.
        cfg: Installation settings naming the Installation resource.

    Returns:
        True if the installer was activated, False if an installation was already in progress.

    Raises:
        RuntimeError: If the Installation resource cannot be read or labelled.
    """
    resource = f"{INSTALLATION_KIND}/{cfg.installation_name}"
    ok, stdout, stderr = run_kubectl(
        kubectl_args(
            ["-n", cfg.installation_namespace, "get", resource, "-o", "jsonpath={.status.state}"],
            kube_cfg.kubeconfig,
        ),
        timeout=kube_cfg.request_timeout,
    )
    if not ok:
        raise RuntimeError(f"Installation resource not available: {stderr.strip()}")
    if stdout.strip().strip("'") == InstallationState.IN_PROGRESS.value:
        logger.info("Installation %s is already in progress", cfg.installation_name)
        return False

    ok, _, stderr = run_kubectl(
        kubectl_args(
            ["-n", cfg.installation_namespace, "label", resource, INSTALLATION_ACTION_LABEL, "--overwrite"],
            kube_cfg.kubeconfig,
        ),
        timeout=kube_cfg.request_timeout,
    )
    if not ok:
        raise RuntimeError(f"Unable to activate the installer: {stderr.strip()}")
    return True


# ============================================================================
# Workflow
# ============================================================================

def run_install(
    cfg: InstallConfig,
    kube_cfg: KubeConfig,
    clients: KubeClients,
    sink: ProgressSink,
    cancel: threading.Event | None = None,
) -> InstallationSummary | None:
    """Install onto the current cluster.

    Args:
        cfg: Resolved installation settings.
        kube_cfg: Cluster access settings.
        clients: Kubernetes API clients.
        sink: Where step progress is reported.
        cancel: Optional event that aborts the wait.

    Returns:
        The installation summary, or None when not waiting for completion.

    Raises:
        ConfigurationError: If the settings are inconsistent.
        InstallManagerError: If any step fails.
    """
    console.print(Panel.fit(f"Installing Kyma {cfg.version}", style="bold blue"))

    with step(sink, "Validating configurations"):
        validate_install_config(cfg)
    display_install_config(cfg)

    with step(sink, "Checking requirements"):
        require_command("kubectl")

    with step(sink, "Applying installer resources"):
        apply_manifests(kube_cfg, cfg.release_resources())

    if cfg.overrides:
        with step(sink, "Applying configuration overrides"):
            apply_manifests(kube_cfg, cfg.overrides)

    if cfg.password:
        with step(sink, "Setting admin password"):
            set_admin_password(clients.core, cfg.password)

    if cfg.domain != LOCAL_DOMAIN:
        with step(sink, "Configuring own domain"):
            create_own_domain_overrides(clients.core, cfg)

    with step(sink, "Activating the installer"):
        if not activate_installer(kube_cfg, cfg):
            sink.log_info("Installation already in progress, watching it")

    if cfg.no_wait:
        console.print("[yellow]ℹ️  Installation triggered; not waiting for it to finish[/yellow]")
        return None

    source = KubectlInstallationSource(
        cfg.installation_name,
        cfg.installation_namespace,
        kubeconfig=kube_cfg.kubeconfig,
        request_timeout=kube_cfg.request_timeout,
    )
    InstallationWatcher(source, sink, interval=cfg.poll_interval, cancel=cancel).wait(cfg.timeout)

    summary = collect_summary(clients)
    print_summary(summary, cfg)
    return summary
