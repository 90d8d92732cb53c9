"""Interactive questions asked during a run.

The orchestrator talks to a ``Prompter``; the default implementation uses
Rich prompts on the shared console.
"""

from __future__ import annotations

from typing import Protocol

from rich.prompt import Confirm, Prompt

from create_astro.models import is_valid_project_name
from create_astro.utils import console, print_error, sanitize_name


class Prompter(Protocol):
    def ask_project_name(self, default: str) -> str | None: ...

    def confirm_overwrite(self, name: str) -> bool: ...

    def confirm_api(self) -> bool: ...


class RichPrompter:
    """Ask on the terminal; Ctrl-C or EOF counts as cancelling."""

    def ask_project_name(self, default: str) -> str | None:
        while True:
            try:
                value = Prompt.ask("Project name", default=default, console=console)
            except (KeyboardInterrupt, EOFError):
                return None
            value = (value or "").strip()
            if not value:
                print_error("Project name is required")
                continue
            if not is_valid_project_name(sanitize_name(value)):
                print_error("Project name must be npm-safe (lowercase, kebab-case, no spaces)")
                continue
            return value

    def confirm_overwrite(self, name: str) -> bool:
        try:
            return Confirm.ask(
                f"Directory [bold]{name}[/bold] already exists. Overwrite?",
                default=False,
                console=console,
            )
        except (KeyboardInterrupt, EOFError):
            return False

    def confirm_api(self) -> bool:
        try:
            return Confirm.ask("Use API routes?", default=True, console=console)
        except (KeyboardInterrupt, EOFError):
            return True
