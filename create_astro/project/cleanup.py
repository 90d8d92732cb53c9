"""Removal of development-only files from a freshly extracted template.

Two strategies share one engine:

* **simple** -- every top-level entry is classified by exact name against a
  whitelist and a denylist, plus a test-file naming convention.
* **pattern** -- glob patterns (from the template's ``.templateignore`` or the
  built-in list) are expanded against the whole tree.

In both modes the whitelist is consulted first and always wins.  A failure to
remove one entry is recorded in the report and the pass continues; only a
project directory that cannot be listed at all aborts with ``CleanupError``.
"""

from __future__ import annotations

import asyncio
import fnmatch
import os
from enum import Enum
from pathlib import Path

from create_astro.errors import CleanupError
from create_astro.models import CleanupMode, CleanupReport, EntryOutcome, EntryResult
from create_astro.project.ignore_patterns import BuiltinPatterns, IgnorePatternSet, PatternSource
from create_astro.utils import print_failure, print_success, remove_path, spinner

# Files and folders that are never deleted.
WHITELIST: tuple[str, ...] = (
    ".gitignore",
    "README.md",
    ".env.example",
    "eslint.config.js",
    "eslint.config.mjs",
    "eslint.config.ts",
    "astro.config.mjs",
    "astro.config.js",
    "astro.config.ts",
    "tsconfig.json",
    "package.json",
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    "public",
    "src",
)

DENYLIST: tuple[str, ...] = (
    # CI & release
    ".github",
    ".husky",
    ".releaserc.json",
    ".releaserc.js",
    ".releaserc.yml",
    ".releaserc.yaml",
    "CHANGELOG.md",
    "CONTRIBUTING.md",
    # Editor / tooling
    ".editorconfig",
    ".gitattributes",
    ".prettierrc",
    ".prettierrc.json",
    ".prettierrc.js",
    ".prettierrc.yml",
    ".prettierrc.yaml",
    ".prettierignore",
    ".vscode",
    ".npmignore",
    # Documentation
    "docs",
    # Testing
    "vitest.config.js",
    "vitest.config.ts",
    "vitest.config.mjs",
    "jest.config.js",
    "jest.config.ts",
    "jest.config.json",
    "__tests__",
    "msw",
)

SOURCE_DIR = "src"
API_ROUTES_DIR = Path("src", "pages", "api")
API_ROUTES_LABEL = "src/pages/api/**"

_GLOB_CHARS = frozenset("*?[")
_TEST_INFIXES = (".test.", ".spec.")


class Classification(str, Enum):
    KEEP = "keep"
    REMOVE = "remove"
    UNTOUCHED = "untouched"


# ---------------------------------------------------------------------------
# Pure classification helpers
# ---------------------------------------------------------------------------


def is_test_file(name: str) -> bool:
    """``True`` for names like ``Button.test.tsx`` or ``api.spec.ts``."""
    return any(infix in name for infix in _TEST_INFIXES)


def classify_entry(
    name: str,
    whitelist: tuple[str, ...] = WHITELIST,
    denylist: tuple[str, ...] = DENYLIST,
) -> Classification:
    """Classify a top-level entry by name; whitelist beats everything."""
    if name in whitelist:
        return Classification.KEEP
    if name in denylist or is_test_file(name):
        return Classification.REMOVE
    return Classification.UNTOUCHED


def literal_prefix(pattern: str) -> str:
    """Leading path segments of *pattern* that contain no glob characters.

    ``"docs/**/*.md"`` -> ``"docs"``, ``"*.md"`` -> ``""``.
    """
    literal: list[str] = []
    for segment in pattern.strip("/").split("/"):
        if _GLOB_CHARS.intersection(segment):
            break
        literal.append(segment)
    return "/".join(literal)


def is_protected_pattern(pattern: str, whitelist: tuple[str, ...] = WHITELIST) -> bool:
    """Whether a whole pattern is skipped because it overlaps the whitelist.

    The pattern's literal prefix is compared by substring, in both
    directions, against every whitelist entry.  Patterns with no literal
    prefix are never skipped here; their matches are checked one by one.
    """
    prefix = literal_prefix(pattern)
    if not prefix:
        return False
    return any(prefix in entry or entry in prefix for entry in whitelist)


def is_whitelisted_path(relative: str, whitelist: tuple[str, ...] = WHITELIST) -> bool:
    return any(relative == entry or fnmatch.fnmatchcase(relative, entry) for entry in whitelist)


def expand_pattern(project_dir: Path, pattern: str) -> list[Path]:
    """Expand *pattern* below *project_dir*, hidden files included.

    Raises:
        ValueError: For empty, negated or parent-escaping patterns, or
            patterns ``pathlib`` rejects.
    """
    cleaned = pattern.strip()
    if cleaned.startswith("!"):
        raise ValueError(f"Negated patterns are not supported: {pattern}")
    dir_only = cleaned.endswith("/")
    cleaned = cleaned.strip("/")
    if not cleaned or ".." in cleaned.split("/"):
        raise ValueError(f"Unsupported pattern: {pattern!r}")

    try:
        matches = list(project_dir.glob(cleaned))
    except NotImplementedError as exc:
        raise ValueError(str(exc)) from exc

    root = project_dir.resolve()
    selected: list[Path] = []
    for match in matches:
        if match == project_dir or (dir_only and not match.is_dir()):
            continue
        if not match.parent.resolve().is_relative_to(root):
            continue
        selected.append(match)
    return sorted(set(selected))


# ---------------------------------------------------------------------------
# Removal
# ---------------------------------------------------------------------------


def _remove(path: Path, label: str) -> EntryResult:
    try:
        is_dir = path.is_dir() and not path.is_symlink()
        remove_path(path)
    except OSError as exc:
        return EntryResult(path=label, outcome=EntryOutcome.FAILED, detail=str(exc))
    return EntryResult(path=label, outcome=EntryOutcome.DONE, is_dir=is_dir)


def touches_api_routes(relative: str) -> bool:
    """True if removing *relative* would delete anything under ``src/pages/api``."""
    api = API_ROUTES_DIR.as_posix()
    return relative == api or relative.startswith(api + "/") or api.startswith(relative + "/")


def remove_api_routes(project_dir: Path) -> EntryResult:
    """Delete ``src/pages/api`` if it exists."""
    api_dir = project_dir / API_ROUTES_DIR
    if not api_dir.exists():
        return EntryResult(path=API_ROUTES_LABEL, outcome=EntryOutcome.SKIPPED, detail="missing")
    return _remove(api_dir, API_ROUTES_LABEL)


def _list_entries(project_dir: Path) -> list[str]:
    try:
        return sorted(os.listdir(project_dir))
    except OSError as exc:
        raise CleanupError(f"Cannot read project directory {project_dir}: {exc}") from exc


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class CleanupEngine:
    """Strip development artefacts from a project directory.

    Args:
        mode: Exact-name (``simple``) or glob (``pattern``) classification.
        pattern_source: Where pattern mode gets its globs; defaults to the
            built-in list.
        whitelist: Names (or globs, in pattern mode) that are never removed.
        denylist: Top-level names removed in simple mode.
    """

    def __init__(
        self,
        mode: CleanupMode = CleanupMode.SIMPLE,
        pattern_source: PatternSource | None = None,
        whitelist: tuple[str, ...] = WHITELIST,
        denylist: tuple[str, ...] = DENYLIST,
    ) -> None:
        self.mode = mode
        self.pattern_source = pattern_source or BuiltinPatterns()
        self.whitelist = whitelist
        self.denylist = denylist

    def clean_simple(self, project_dir: Path, keep_api: bool = True) -> CleanupReport:
        results: list[EntryResult] = []
        for name in _list_entries(project_dir):
            if name == SOURCE_DIR:
                # src itself is never bulk-removed
                if not keep_api:
                    results.append(remove_api_routes(project_dir))
                continue
            if classify_entry(name, self.whitelist, self.denylist) is Classification.REMOVE:
                results.append(_remove(project_dir / name, name))
        return CleanupReport.from_results(results)

    def clean_patterns(
        self,
        project_dir: Path,
        patterns: IgnorePatternSet,
        keep_api: bool = True,
    ) -> CleanupReport:
        results: list[EntryResult] = []
        skipped: list[str] = []
        if not keep_api:
            results.append(remove_api_routes(project_dir))
        _list_entries(project_dir)

        for pattern in patterns.patterns:
            if is_protected_pattern(pattern, self.whitelist):
                skipped.append(pattern)
                continue
            try:
                matches = expand_pattern(project_dir, pattern)
            except (ValueError, OSError):
                skipped.append(pattern)
                continue

            for match in matches:
                relative = match.relative_to(project_dir).as_posix()
                if is_whitelisted_path(relative, self.whitelist):
                    results.append(
                        EntryResult(path=relative, outcome=EntryOutcome.SKIPPED, detail="whitelisted")
                    )
                    continue
                if keep_api and touches_api_routes(relative):
                    results.append(
                        EntryResult(path=relative, outcome=EntryOutcome.SKIPPED, detail="api routes")
                    )
                    continue
                if not os.path.lexists(match):
                    # already gone with an earlier match's directory
                    continue
                results.append(_remove(match, relative))

        return CleanupReport.from_results(results, patterns_skipped=skipped)

    async def clean(self, project_dir: Path, keep_api: bool = True) -> CleanupReport:
        """Run the configured strategy and print a one-line result."""
        patterns: IgnorePatternSet | None = None
        if self.mode is CleanupMode.PATTERN:
            patterns = await self.pattern_source.load()

        with spinner("Cleaning up development files..."):
            try:
                if patterns is not None:
                    report = await asyncio.to_thread(
                        self.clean_patterns, project_dir, patterns, keep_api
                    )
                else:
                    report = await asyncio.to_thread(self.clean_simple, project_dir, keep_api)
            except CleanupError:
                print_failure("Failed to cleanup development files")
                raise

        if report.anything_removed:
            print_success(
                f"Cleaned up {report.files_removed} files and {report.folders_removed} folders"
            )
        else:
            print_success("No development files to clean up")
        return report
