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

"""Progress sink protocol and its rich console implementation."""

from __future__ import annotations

from typing import Protocol

from rich.console import Console
from rich.markup import escape

from install_manager import console as default_console


class ProgressSink(Protocol):
    """Receives progress transitions for display.

    A sink tracks one current step: ``start`` opens it, ``success`` and
    ``failure`` close it. Log calls never change the current step.
    """

    def start(self, label: str) -> None: ...

    def progress(self, text: str) -> None: ...

    def success(self, message: str | None = None) -> None: ...

    def failure(self, message: str | None = None) -> None: ...

    def log_info(self, text: str) -> None: ...

    def log_error(self, text: str) -> None: ...


class ConsoleSteps:
    """Render steps as console lines.

    Closing a step without a label and without a message prints nothing.
    """

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or default_console
        self._label: str | None = None

    @property
    def current(self) -> str | None:
        """Label of the open step, or None."""
        return self._label

    def start(self, label: str) -> None:
        self._label = label
        self._console.print(f"[yellow]ℹ️  {escape(label)}...[/yellow]")

    def progress(self, text: str) -> None:
        prefix = f"{escape(self._label)} : " if self._label else ""
        self._console.print(f"[yellow]   {prefix}{escape(text)}[/yellow]")

    def success(self, message: str | None = None) -> None:
        text = message or self._label
        self._label = None
        if text:
            self._console.print(f"[green]✅ {escape(text)}[/green]")

    def failure(self, message: str | None = None) -> None:
        text = message or self._label
        self._label = None
        if text:
            self._console.print(f"[red]❌ {escape(text)}[/red]")

    def log_info(self, text: str) -> None:
        self._console.print(f"   {escape(text)}")

    def log_error(self, text: str) -> None:
        self._console.print(f"[yellow]⚠️  {escape(text)}[/yellow]")
