"""Scaffolding orchestrator.

Runs the stages of a project scaffold strictly in order:

    ResolvingName -> ValidatingName -> CheckingDestination
    -> ResolvingReference -> Fetching -> Sanitizing -> Cleaning
    -> RewritingManifest -> Installing -> Summarizing -> Done

The destination directory is treated as a single all-or-nothing transaction:
once the destination check has passed, any failure moves the run to
``Failed`` and the directory this run created is removed before returning.

Usage::

    config = ScaffoldConfig.resolve({"project_name": "my-site"})
    result = asyncio.run(Scaffolder(config).run())
"""

from __future__ import annotations

import asyncio
import shutil
import time
import traceback
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field
from rich.panel import Panel
from rich.tree import Tree

from create_astro.config import DEFAULT_PROJECT_NAME, ScaffoldConfig
from create_astro.errors import DestinationExistsError, ScaffoldError, UserCancelledError
from create_astro.installer import PackageManagerAdapter
from create_astro.models import (
    CleanupReport,
    PackageManager,
    ProjectIdentity,
    ResolvedReference,
    SanitizeReport,
    ScaffoldState,
)
from create_astro.project.cleanup import CleanupEngine
from create_astro.project.ignore_patterns import RemotePatterns
from create_astro.project.manifest import update_manifest
from create_astro.project.sanitizer import sanitize_project
from create_astro.prompts import Prompter, RichPrompter
from create_astro.template.fetcher import ArchiveFetcher
from create_astro.template.resolver import ReferenceResolver
from create_astro.template.selector import FrameworkSelector
from create_astro.utils import console, format_duration, print_error, print_warning


class ScaffoldResult(BaseModel):
    """Outcome of one run, returned by :meth:`Scaffolder.run`."""

    success: bool = False
    project_name: Optional[str] = None
    project_dir: Optional[Path] = None
    reference: Optional[ResolvedReference] = None
    package_manager: Optional[PackageManager] = None
    installed: bool = False
    sanitize: Optional[SanitizeReport] = None
    cleanup: Optional[CleanupReport] = None
    api_enabled: bool = True
    framework: Optional[str] = None
    states: list[ScaffoldState] = Field(default_factory=list)
    failed_state: Optional[ScaffoldState] = None
    error: Optional[str] = None
    rolled_back: bool = False
    duration: str = ""


class Scaffolder:
    """Drive one scaffolding run from a resolved ``ScaffoldConfig``.

    Collaborators can be injected; anything left as ``None`` is built from
    the config.  ``transport`` is handed to every HTTP client that is built
    here, which lets tests serve the template from memory.
    """

    def __init__(
        self,
        config: ScaffoldConfig,
        prompter: Prompter | None = None,
        resolver: ReferenceResolver | None = None,
        fetcher: ArchiveFetcher | None = None,
        adapter: PackageManagerAdapter | None = None,
        transport: Any = None,
    ) -> None:
        self.config = config
        self.prompter = prompter or RichPrompter()
        self.transport = transport
        self.resolver = resolver or ReferenceResolver(
            config.template, timeout=config.http_timeout, transport=transport
        )
        self.fetcher = fetcher or ArchiveFetcher(
            config.template, timeout=config.http_timeout, transport=transport
        )
        self.adapter = adapter or PackageManagerAdapter(is_ci=config.is_ci)
        self.state = ScaffoldState.RESOLVING_NAME
        self.result = ScaffoldResult()

    # ------------------------------------------------------------------
    # State bookkeeping
    # ------------------------------------------------------------------

    def _enter(self, state: ScaffoldState) -> None:
        self.state = state
        self.result.states.append(state)

    def _fail(self, exc: BaseException) -> None:
        self.result.failed_state = self.state
        self.result.error = str(exc) or exc.__class__.__name__
        self._enter(ScaffoldState.FAILED)

    def _rollback(self, project_dir: Path) -> None:
        """Best-effort removal of the directory this run created."""
        shutil.rmtree(project_dir, ignore_errors=True)
        self.result.rolled_back = not project_dir.exists()
        if not self.result.rolled_back:
            print_warning(f"Could not fully remove {project_dir}")

    # ------------------------------------------------------------------
    # Pre-transaction states
    # ------------------------------------------------------------------

    def _resolve_identity(self) -> ProjectIdentity:
        self._enter(ScaffoldState.RESOLVING_NAME)
        raw = self.config.project_name
        if not raw and self.config.interactive:
            raw = self.prompter.ask_project_name(DEFAULT_PROJECT_NAME)
            if not raw:
                raise UserCancelledError()
        if not raw:
            raw = DEFAULT_PROJECT_NAME

        self._enter(ScaffoldState.VALIDATING_NAME)
        return ProjectIdentity.from_raw(raw)

    def _check_destination(self, identity: ProjectIdentity) -> Path:
        self._enter(ScaffoldState.CHECKING_DESTINATION)
        project_dir = self.config.destination(identity.normalized)
        if project_dir.exists() or project_dir.is_symlink():
            if not self.config.interactive:
                raise DestinationExistsError(identity.normalized)
            if not self.prompter.confirm_overwrite(identity.normalized):
                raise UserCancelledError()
            try:
                if project_dir.is_dir() and not project_dir.is_symlink():
                    shutil.rmtree(project_dir)
                else:
                    project_dir.unlink()
            except OSError as exc:
                raise ScaffoldError(
                    f"Cannot replace existing directory {identity.normalized}: {exc}",
                    stage="destination",
                ) from exc

        if self.config.use_api is None and self.config.interactive:
            self.result.api_enabled = self.prompter.confirm_api()
        else:
            self.result.api_enabled = self.config.keep_api
        return project_dir

    # ------------------------------------------------------------------
    # Transactional stages
    # ------------------------------------------------------------------

    async def _materialize(self, project_dir: Path, identity: ProjectIdentity) -> None:
        config = self.config

        self._enter(ScaffoldState.RESOLVING_REFERENCE)
        reference = await self.resolver.resolve(config.ref)
        self.result.reference = reference

        self._enter(ScaffoldState.FETCHING)
        if config.framework:
            await FrameworkSelector(self.fetcher).fetch(reference.ref, config.framework, project_dir)
        else:
            await self.fetcher.fetch(reference.ref, project_dir)

        self._enter(ScaffoldState.SANITIZING)
        self.result.sanitize = await sanitize_project(project_dir)

        self._enter(ScaffoldState.CLEANING)
        if config.cleanup:
            engine = CleanupEngine(
                config.cleanup_mode,
                pattern_source=RemotePatterns(
                    config.template,
                    reference.ref,
                    timeout=config.http_timeout,
                    transport=self.transport,
                ),
            )
            self.result.cleanup = await engine.clean(project_dir, keep_api=self.result.api_enabled)

        self._enter(ScaffoldState.REWRITING_MANIFEST)
        await update_manifest(project_dir, identity.normalized)

        self._enter(ScaffoldState.INSTALLING)
        manager = config.package_manager or await self.adapter.detect()
        if config.install:
            manager = await self.adapter.install(project_dir, manager)
            self.result.installed = True
        self.result.package_manager = manager

        self._enter(ScaffoldState.SUMMARIZING)
        print_summary(self.result)

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    async def run(self) -> ScaffoldResult:
        """Execute the run and return its result.

        Never raises for stage failures; ``result.success`` tells the caller
        whether the project was created.  Cancellation still propagates after
        the rollback.
        """
        started = time.monotonic()
        try:
            identity = self._resolve_identity()
            project_dir = self._check_destination(identity)
        except ScaffoldError as exc:
            self._fail(exc)
            print_error(f"Error: {exc}")
            return self._finish(started)

        self.result.project_name = identity.normalized
        self.result.project_dir = project_dir
        self.result.framework = self.config.framework

        try:
            await self._materialize(project_dir, identity)
        except (KeyboardInterrupt, asyncio.CancelledError) as exc:
            self._fail(exc)
            self._rollback(project_dir)
            raise
        except ScaffoldError as exc:
            self._fail(exc)
            print_error(f"Error creating project: {exc}")
            self._rollback(project_dir)
            return self._finish(started)
        except Exception as exc:
            self._fail(exc)
            print_error(f"Error creating project: {exc}")
            console.print(f"[dim]{traceback.format_exc()}[/dim]")
            self._rollback(project_dir)
            return self._finish(started)

        self._enter(ScaffoldState.DONE)
        self.result.success = True
        return self._finish(started)

    def _finish(self, started: float) -> ScaffoldResult:
        self.result.duration = format_duration(time.monotonic() - started)
        return self.result


# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------


def build_project_tree(project_name: str, api_enabled: bool) -> Tree:
    tree = Tree(f"[cyan]{project_name}/[/cyan]")
    src = tree.add("[grey50]src/[/grey50]")
    src.add("[grey50]components/[/grey50]")
    pages = src.add("[grey50]pages/[/grey50]")
    if api_enabled:
        pages.add("[yellow]api/[/yellow] [green](enabled)[/green]")
    src.add("[grey50]layout/[/grey50]")
    src.add("[grey50]styles/[/grey50]")
    tree.add("[grey50]public/[/grey50]")
    for name in ("package.json", "astro.config.mjs", "tsconfig.json"):
        tree.add(f"[yellow]{name}[/yellow]")
    return tree


def print_summary(result: ScaffoldResult) -> None:
    """Print the success panel, cleanup summary and next steps."""
    name = result.project_name or DEFAULT_PROJECT_NAME
    manager = result.package_manager or PackageManager.NPM

    console.print()
    console.print(Panel("[bold green]✨ Project scaffolded successfully![/bold green]", expand=False))
    console.print("\n[bold]📁 Project Structure:[/bold]")
    console.print(build_project_tree(name, result.api_enabled))

    cleanup = result.cleanup
    if cleanup is not None and cleanup.anything_removed:
        console.print("\n[bold]🧹 Cleanup Summary:[/bold]")
        console.print(
            f"   Removed {cleanup.files_removed} files and {cleanup.folders_removed} folders"
        )
        shown, remaining = cleanup.display_items()
        if shown:
            console.print(f"   [grey50]Items removed:[/grey50] {', '.join(shown)}")
        if remaining:
            console.print(f"   [grey50]... and[/grey50] {remaining} [grey50]more[/grey50]")

    console.print("\n[bold]🚀 Next Steps:[/bold]")
    console.print(f"   [cyan]cd[/cyan] {name}")
    if not result.installed:
        console.print(f"   [cyan]{manager.install_command}[/cyan]")
    console.print(f"   [cyan]{manager.dev_command}[/cyan]")

    console.print("\n[bold]📚 Features included:[/bold]")
    console.print("   • [green]Astro[/green] with SSR support")
    framework = (result.framework or "react").title()
    console.print(f"   • [blue]{framework}[/blue] + [blue]TypeScript[/blue]")
    console.print("   • [magenta]Tailwind CSS v4[/magenta]")
    console.print("   • [red]Zod[/red] validation")
    console.print("   • [grey50]ESLint + Prettier[/grey50]")
    status = "[green]enabled[/green]" if result.api_enabled else "[red]disabled[/red]"
    console.print(f"   • [yellow]API Routes[/yellow] {status}")
