"""Framework selection for multi-template archives.

Some template repositories ship one subtree per UI framework (``react/``,
``vue/`` ...).  The whole archive is unpacked into a scratch directory next to
the destination, the chosen subtree is copied into place, and the scratch
directory is removed on every exit path.
"""

from __future__ import annotations

import shutil
import threading
import time
from pathlib import Path

from create_astro.errors import FrameworkNotFoundError
from create_astro.template.fetcher import ArchiveFetcher, raise_if_stopped, run_stoppable
from create_astro.utils import print_failure, print_success, spinner


def scratch_path(destination: Path) -> Path:
    """Return an unused sibling of *destination* for staging the archive."""
    stamp = int(time.time() * 1000)
    candidate = destination.parent / f".{destination.name}-tmp-{stamp}"
    while candidate.exists():
        stamp += 1
        candidate = destination.parent / f".{destination.name}-tmp-{stamp}"
    return candidate


def available_frameworks(root: Path) -> list[str]:
    """List the top-level, non-hidden directories of an unpacked archive."""
    return sorted(p.name for p in root.iterdir() if p.is_dir() and not p.name.startswith("."))


def copy_subtree(source: Path, destination: Path) -> None:
    """Recursively copy *source* into *destination*, preserving structure."""
    destination.mkdir(parents=True, exist_ok=True)
    shutil.copytree(source, destination, symlinks=True, dirs_exist_ok=True)


class FrameworkSelector:
    """Materialise one framework subtree of a multi-template archive."""

    def __init__(self, fetcher: ArchiveFetcher) -> None:
        self.fetcher = fetcher

    def select(
        self, ref: str, framework: str, destination: Path, stop: threading.Event | None = None
    ) -> Path:
        """Blocking implementation of :meth:`fetch`.

        *stop* is forwarded to the download and checked again before the copy.

        Raises:
            FrameworkNotFoundError: If the archive has no ``<framework>/`` subtree.
        """
        scratch = scratch_path(destination)
        try:
            self.fetcher.download_and_extract(ref, scratch, stop)
            subtree = scratch / framework
            if not subtree.is_dir():
                raise FrameworkNotFoundError(framework, available_frameworks(scratch))
            raise_if_stopped(stop)
            copy_subtree(subtree, destination)
        finally:
            shutil.rmtree(scratch, ignore_errors=True)
        return destination

    async def fetch(self, ref: str, framework: str, destination: Path) -> Path:
        with spinner(
            f"Downloading [cyan]{framework}[/cyan] template from [cyan]{ref}[/cyan]..."
        ):
            try:
                await run_stoppable(self.select, ref, framework, destination)
            except Exception:
                print_failure(f"Failed to download {framework} template")
                raise
        print_success(f"Template ({framework}) copied to [green]{destination}[/green]")
        return destination
