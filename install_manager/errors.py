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

"""Error hierarchy shared by status sources, watchers, and commands."""

from __future__ import annotations


class InstallManagerError(RuntimeError):
    """Base class for all errors raised by install_manager."""


class ConfigurationError(InstallManagerError):
    """Invalid flag or setting combination."""


# ============================================================================
# Status sources
# ============================================================================

class StatusSourceError(InstallManagerError):
    """A status sample or cluster read could not be taken."""


class TransientStatusError(StatusSourceError):
    """The transport timed out; sampling may be retried."""


# ============================================================================
# Watchers
# ============================================================================

class WatchError(InstallManagerError):
    """A watcher stopped without reaching a terminal verdict."""


class WatchInterrupted(WatchError):
    """The watch was stopped by its deadline or by external cancellation."""


class DeadlineExceeded(WatchInterrupted):
    """The watch deadline elapsed before a terminal state was observed."""


class WatchCancelled(WatchInterrupted):
    """The watch was cancelled by the caller."""


class ProtocolViolation(WatchError):
    """The remote side reported a status or event the watcher cannot interpret.

    Attributes:
        observed: The unexpected raw value (status string or event type).
    """

    def __init__(self, message: str, observed: str = "") -> None:
        super().__init__(message)
        self.observed = observed


class ResourceNotFound(WatchError):
    """The watched resource does not exist or was deleted mid-watch.

    Attributes:
        resource: Plural resource name, e.g. ``clustertestsuites``.
        name: Name of the missing object, empty when unknown.
    """

    def __init__(self, resource: str, name: str = "") -> None:
        if name:
            message = f'{resource} "{name}" not found'
        else:
            message = f"{resource} not found"
        super().__init__(message)
        self.resource = resource
        self.name = name
