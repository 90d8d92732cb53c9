"""Package-manager detection and dependency installation.

Host binaries are reached only through two injectable callables -- a
*probe* that reports whether a manager is usable and a *runner* that executes
a command -- so tests can substitute fakes for real ``npm``/``yarn``/``pnpm``.
"""

from __future__ import annotations

import shutil
from collections.abc import Awaitable, Callable
from pathlib import Path

from create_astro.errors import InstallError
from create_astro.models import PackageManager
from create_astro.utils import console, print_failure, print_success, run_command, spinner

Probe = Callable[[str], Awaitable[bool]]
Runner = Callable[[list[str], Path], Awaitable[tuple[int, str, str]]]

# Detection order; npm is the default when neither responds.
PROBE_ORDER: tuple[PackageManager, ...] = (PackageManager.PNPM, PackageManager.YARN)

PROBE_TIMEOUT = 30


async def probe_binary(binary: str) -> bool:
    """Return ``True`` if *binary* is on PATH and answers ``--version`` and ``--help``."""
    if shutil.which(binary) is None:
        return False
    for flag in ("--version", "--help"):
        try:
            returncode, _, _ = await run_command([binary, flag], timeout=PROBE_TIMEOUT)
        except OSError:
            return False
        if returncode != 0:
            return False
    return True


async def run_install(cmd: list[str], cwd: Path) -> tuple[int, str, str]:
    """Run an install command with output captured (not shown)."""
    return await run_command(cmd, cwd=cwd, capture=True)


class PackageManagerAdapter:
    """Pick a package manager and install a project's dependencies.

    Args:
        probe: Availability check for a manager binary.
        runner: Executes a command in a working directory.
        is_ci: In CI, detection skips probing and returns npm.
    """

    def __init__(
        self,
        probe: Probe = probe_binary,
        runner: Runner = run_install,
        is_ci: bool = False,
    ) -> None:
        self.probe = probe
        self.runner = runner
        self.is_ci = is_ci

    async def detect(self) -> PackageManager:
        """Return pnpm, then yarn, if usable; otherwise npm."""
        if self.is_ci:
            return PackageManager.NPM
        for manager in PROBE_ORDER:
            if await self.probe(manager.value):
                return manager
        return PackageManager.NPM

    async def _install_once(self, manager: PackageManager, project_dir: Path) -> str | None:
        """Run one install; return an error description, or ``None`` on success."""
        cmd = [manager.value, "install"]
        try:
            returncode, _, stderr = await self.runner(cmd, project_dir)
        except OSError as exc:
            return f"{manager.value} could not be started: {exc}"
        if returncode != 0:
            return stderr or f"{' '.join(cmd)} exited with code {returncode}"
        return None

    async def install(self, project_dir: Path, manager: PackageManager) -> PackageManager:
        """Install dependencies, retrying once with npm when yarn fails.

        Returns:
            The manager that completed the install.

        Raises:
            InstallError: If the install (and, for yarn, the npm retry) failed.
        """
        failures: dict[str, str] = {}
        with spinner(f"Installing dependencies with [cyan]{manager.value}[/cyan]...") as status:
            error = await self._install_once(manager, project_dir)
            if error is None:
                used = manager
            else:
                failures[manager.value] = error
                if manager is not PackageManager.YARN:
                    print_failure("Failed to install dependencies")
                    raise InstallError(f"{manager.install_command} failed: {error}", failures)

                status.update("Yarn failed, trying with npm...")
                npm_error = await self._install_once(PackageManager.NPM, project_dir)
                if npm_error is not None:
                    failures[PackageManager.NPM.value] = npm_error
                    print_failure("Failed to install dependencies with both yarn and npm")
                    console.print(f"  [red]Yarn error:[/red] {error}")
                    console.print(f"  [red]NPM error:[/red] {npm_error}")
                    raise InstallError("Dependency installation failed with yarn and npm", failures)
                used = PackageManager.NPM

        if used is manager:
            print_success("Dependencies installed successfully")
        else:
            print_success("Dependencies installed successfully with npm (yarn fallback)")
        return used
