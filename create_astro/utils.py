"""Shared utility functions for create-astro-app.

Provides async command execution, name normalisation, file-system removal
helpers and Rich-based console reporting.  Every stage of the scaffolding
pipeline reports progress through the helpers defined here so output stays
consistent.
"""

from __future__ import annotations

import asyncio
import re
import shutil
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from rich.console import Console
from rich.rule import Rule
from rich.status import Status

console = Console()

# ---------------------------------------------------------------------------
# Async command execution
# ---------------------------------------------------------------------------


async def run_command(
    cmd: list[str],
    cwd: str | Path | None = None,
    timeout: int | None = None,
    capture: bool = True,
) -> tuple[int, str, str]:
    """Run a command asynchronously.

    Args:
        cmd: Program and arguments.  The program is resolved on ``PATH`` so
            wrapper scripts such as ``npm.cmd`` work on Windows.
        cwd: Working directory for the child process.
        timeout: Maximum wall-clock seconds before the process is killed.
            ``None`` waits indefinitely.
        capture: Whether to capture stdout/stderr (if ``False`` they inherit
            the parent's streams).

    Returns:
        A ``(returncode, stdout, stderr)`` tuple.

    Raises:
        FileNotFoundError: If the program cannot be found.
    """
    program = shutil.which(cmd[0]) or cmd[0]
    stdout_pipe = asyncio.subprocess.PIPE if capture else None
    stderr_pipe = asyncio.subprocess.PIPE if capture else None

    process = await asyncio.create_subprocess_exec(
        program,
        *cmd[1:],
        stdin=asyncio.subprocess.DEVNULL,
        stdout=stdout_pipe,
        stderr=stderr_pipe,
        cwd=str(cwd) if cwd else None,
    )

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(
            process.communicate(), timeout=timeout
        )
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        return (-1, "", f"Command timed out after {timeout}s: {' '.join(cmd)}")

    stdout_str = (stdout_bytes or b"").decode("utf-8", errors="replace").strip()
    stderr_str = (stderr_bytes or b"").decode("utf-8", errors="replace").strip()
    return (process.returncode or 0, stdout_str, stderr_str)


# ---------------------------------------------------------------------------
# String / name helpers
# ---------------------------------------------------------------------------


def sanitize_name(name: str) -> str:
    """Convert an arbitrary project name to a kebab-case, npm-safe name.

    * Splits camelCase words (``myApp`` -> ``my-app``).
    * Replaces whitespace and underscores with hyphens.
    * Lowercases and replaces any remaining non ``[a-z0-9-]`` character.
    * Collapses consecutive hyphens and strips leading/trailing hyphens.

    Examples::

        sanitize_name("My Cool_App") -> "my-cool-app"
        sanitize_name("myAstroSite") -> "my-astro-site"
        sanitize_name("  Blog (v2)! ") -> "blog-v2"
    """
    result = re.sub(r"([a-z0-9])([A-Z])", r"\1-\2", name.strip())
    result = re.sub(r"[\s_]+", "-", result).lower()
    result = re.sub(r"[^a-z0-9-]", "-", result)
    result = re.sub(r"-+", "-", result)
    return result.strip("-")


# ---------------------------------------------------------------------------
# File-system helpers
# ---------------------------------------------------------------------------


def remove_path(path: Path) -> bool:
    """Remove a file, symlink or directory tree.

    Returns:
        ``True`` if the removed entry was a directory, ``False`` otherwise.

    Raises:
        OSError: If the entry cannot be removed.
    """
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
        return True
    path.unlink()
    return False


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def format_duration(seconds: float) -> str:
    """Format a duration in seconds to a human-readable string.

    Examples::

        format_duration(3.7)    -> "3.7s"
        format_duration(65.2)   -> "1m 5s"
    """
    if seconds < 0:
        return "0.0s"

    minutes = int(seconds // 60)
    secs = seconds % 60
    if minutes > 0:
        return f"{minutes}m {int(secs)}s"
    return f"{secs:.1f}s"


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_header(title: str) -> None:
    """Print a full-width rule with a title."""
    console.print()
    console.print(Rule(f"[bold bright_cyan] {title} [/bold bright_cyan]", style="bright_cyan"))
    console.print()


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]✔[/bold green] {message}")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{message}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]Warning:[/bold yellow] {message}")


def print_failure(message: str) -> None:
    """Print a red cross followed by a message."""
    console.print(f"[bold red]✖[/bold red] {message}")


@contextmanager
def spinner(message: str) -> Iterator[Status]:
    """Show a Rich spinner while a stage runs.

    The spinner is cleared on exit; callers print their own success or
    failure line afterwards.
    """
    with console.status(message, spinner="dots") as status:
        yield status
