"""Byte-order-mark removal for known configuration files.

Node tooling (JSON parsers, Astro's config loader) chokes on a leading UTF-8
BOM.  Only a short allowlist of files is inspected; a file without a BOM is
left byte-for-byte untouched, so the pass is safe to repeat.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from create_astro.models import EntryOutcome, EntryResult, SanitizeReport
from create_astro.utils import print_success, spinner

UTF8_BOM = b"\xef\xbb\xbf"

FILES_TO_SANITIZE: tuple[str, ...] = (
    "package.json",
    "tsconfig.json",
    ".releaserc.json",
    "astro.config.mjs",
)


def strip_bom(path: Path) -> EntryResult:
    """Strip a leading BOM from one file.

    Missing files are reported as skipped, unreadable or undecodable ones as
    failed; neither raises.
    """
    name = path.name
    if not path.is_file():
        return EntryResult(path=name, outcome=EntryOutcome.SKIPPED, detail="missing")
    try:
        with path.open("rb") as handle:
            head = handle.read(len(UTF8_BOM))
        if head != UTF8_BOM:
            return EntryResult(path=name, outcome=EntryOutcome.SKIPPED, detail="no BOM")
        text = path.read_bytes()[len(UTF8_BOM):].decode("utf-8")
        path.write_text(text, encoding="utf-8", newline="")
    except (OSError, UnicodeDecodeError) as exc:
        return EntryResult(path=name, outcome=EntryOutcome.FAILED, detail=str(exc))
    return EntryResult(path=name, outcome=EntryOutcome.DONE)


def sanitize_files(project_dir: Path, files: tuple[str, ...] = FILES_TO_SANITIZE) -> SanitizeReport:
    """Strip BOMs from every allowlisted file in *project_dir*."""
    return SanitizeReport(results=tuple(strip_bom(project_dir / name) for name in files))


async def sanitize_project(project_dir: Path) -> SanitizeReport:
    """Run :func:`sanitize_files` off the event loop and report the outcome."""
    with spinner("Sanitizing files (removing BOM)..."):
        report = await asyncio.to_thread(sanitize_files, project_dir)

    if report.sanitized:
        print_success(f"Sanitized {len(report.sanitized)} file(s) (removed BOM)")
    else:
        print_success("No BOM found in files")
    return report
