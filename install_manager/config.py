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

"""Configuration classes, validation, and display."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from rich.panel import Panel

from install_manager import console, logger
from install_manager.constants import (
    DEFAULT_INSTALL_TIMEOUT_SECONDS,
    INSTALL_POLL_INTERVAL_SECONDS,
    INSTALLATION_NAME,
    INSTALLATION_NAMESPACE,
    LOCAL_DOMAIN,
    STATUS_REQUEST_TIMEOUT_SECONDS,
    default_value,
)
from install_manager.errors import ConfigurationError


# ============================================================================
# Configuration classes
# ============================================================================

class KubeConfig(BaseSettings):
    """Cluster access settings, auto-loaded from KYMA_* env vars.

    Attributes:
        kubeconfig: Path to the kubeconfig file, or None for the default lookup.
        request_timeout: Seconds allowed for a single API or kubectl request.
    """

    model_config = SettingsConfigDict(env_prefix="KYMA_", extra="ignore")

    kubeconfig: str | None = None
    request_timeout: int = Field(default=STATUS_REQUEST_TIMEOUT_SECONDS, ge=1)


class InstallConfig(BaseSettings):
    """Installation settings, auto-loaded from KYMA_* env vars.

    Attributes:
        version: Release version whose installer resources are applied.
        domain: Domain the installation is exposed on.
        password: Predefined admin password, or None to let the installer generate one.
        tls_cert: TLS certificate for a custom domain.
        tls_key: TLS key for a custom domain.
        timeout: Seconds to watch the installation; 0 watches forever.
        poll_interval: Seconds between two installation status samples.
        no_wait: Whether to return right after activating the installer.
        installation_name: Name of the Installation resource.
        installation_namespace: Namespace of the Installation resource.
        resources: Installer manifests (paths or URLs); empty uses the release defaults.
        overrides: Override manifests applied after the installer resources.
    """

    model_config = SettingsConfigDict(env_prefix="KYMA_", extra="ignore")

    version: str = default_value("release", "version", default="master")
    domain: str = LOCAL_DOMAIN
    password: str | None = None
    tls_cert: str | None = None
    tls_key: str | None = None
    timeout: int = Field(default=DEFAULT_INSTALL_TIMEOUT_SECONDS, ge=0)
    poll_interval: float = Field(default=INSTALL_POLL_INTERVAL_SECONDS, gt=0)
    no_wait: bool = False
    installation_name: str = INSTALLATION_NAME
    installation_namespace: str = INSTALLATION_NAMESPACE
    resources: list[str] = Field(default_factory=list)
    overrides: list[str] = Field(default_factory=list)

    def release_resources(self) -> list[str]:
        """Installer manifests to apply, falling back to the release URLs.

        Returns:
            List of manifest paths or URLs, in apply order.
        """
        if self.resources:
            return list(self.resources)
        pattern = default_value("release", "resource_url", default="")
        files = default_value("release", "resources", default=[])
        return [pattern.format(version=self.version, file=name) for name in files]


class TestRunConfig(BaseSettings):
    """Test-suite run settings, auto-loaded from KYMA_TEST_* env vars.

    Attributes:
        count: How many times every test is executed.
        max_retries: How many times a failing test is retried.
        concurrency: Number of tests executed in parallel.
        timeout: Seconds to watch the suite; 0 watches forever.
        watch: Whether to watch the suite until it finishes.
    """

    __test__ = False

    model_config = SettingsConfigDict(env_prefix="KYMA_TEST_", extra="ignore")

    count: int = Field(default=1, ge=1)
    max_retries: int = Field(default=0, ge=0)
    concurrency: int = Field(default=1, ge=1)
    timeout: int = Field(default=0, ge=0)
    watch: bool = True


# ============================================================================
# Validation
# ============================================================================

def validate_install_config(cfg: InstallConfig) -> None:
    """Validate setting combinations for consistency.

    Args:
        cfg: Resolved installation settings.

    Raises:
        ConfigurationError: If TLS settings are incomplete or used with the local domain.
    """
    if bool(cfg.tls_cert) != bool(cfg.tls_key):
        raise ConfigurationError("--tls-cert and --tls-key must be provided together")
    if cfg.tls_cert and cfg.domain == LOCAL_DOMAIN:
        raise ConfigurationError(f"A custom TLS certificate requires a domain other than {LOCAL_DOMAIN}")
    if cfg.domain != LOCAL_DOMAIN and not cfg.tls_cert:
        logger.warning("Domain %s is set without a TLS certificate; the installer will generate one", cfg.domain)
    if cfg.no_wait and cfg.timeout != DEFAULT_INSTALL_TIMEOUT_SECONDS:
        logger.warning("--timeout is ignored because --no-wait is set")


# ============================================================================
# Display
# ============================================================================

def display_install_config(cfg: InstallConfig) -> None:
    """Print the settings relevant to the installation.

    Args:
        cfg: Resolved installation settings.
    """
    console.print(Panel.fit("Configuration", style="bold blue"))
    console.print(f"  version         : {cfg.version}")
    console.print(f"  domain          : {cfg.domain}")
    console.print(f"  timeout         : {cfg.timeout or 'none'}")
    console.print(f"  wait            : {not cfg.no_wait}")
    console.print(f"  overrides       : {len(cfg.overrides)} file(s)")
