"""Pydantic v2 models shared by the scaffolding stages.

Every value here is created fresh per run.  Values that must not change once
decided (the resolved reference, the project identity, the cleanup report)
are frozen models.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

from create_astro.errors import ValidationError
from create_astro.utils import sanitize_name

PROJECT_NAME_PATTERN = re.compile(r"^[a-z0-9-]+$")

# Removed items beyond this count are summarised as "... and N more".
REMOVED_ITEMS_DISPLAY_LIMIT = 10


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class PackageManager(str, Enum):
    """Supported Node.js package managers."""
    NPM = "npm"
    YARN = "yarn"
    PNPM = "pnpm"

    @property
    def install_command(self) -> str:
        return f"{self.value} install"

    @property
    def dev_command(self) -> str:
        if self is PackageManager.YARN:
            return "yarn dev"
        return f"{self.value} run dev"


class CleanupMode(str, Enum):
    """How the Cleanup Engine decides what to remove."""
    SIMPLE = "simple"
    PATTERN = "pattern"


class EntryOutcome(str, Enum):
    """Outcome of processing one file-system entry."""
    DONE = "done"
    SKIPPED = "skipped"
    FAILED = "failed"


class ScaffoldState(str, Enum):
    """States of the scaffolding run, in execution order."""
    RESOLVING_NAME = "ResolvingName"
    VALIDATING_NAME = "ValidatingName"
    CHECKING_DESTINATION = "CheckingDestination"
    RESOLVING_REFERENCE = "ResolvingReference"
    FETCHING = "Fetching"
    SANITIZING = "Sanitizing"
    CLEANING = "Cleaning"
    REWRITING_MANIFEST = "RewritingManifest"
    INSTALLING = "Installing"
    SUMMARIZING = "Summarizing"
    DONE = "Done"
    FAILED = "Failed"


# ---------------------------------------------------------------------------
# Identity & reference
# ---------------------------------------------------------------------------

class ProjectIdentity(BaseModel):
    """The user-supplied project name and its normalised form."""

    model_config = ConfigDict(frozen=True)

    raw: str = Field(..., description="Name as typed by the user")
    normalized: str = Field(..., pattern=r"^[a-z0-9-]+$")

    @classmethod
    def from_raw(cls, raw: str) -> "ProjectIdentity":
        """Normalise *raw* into a kebab-case name.

        Raises:
            ValidationError: If nothing usable remains after normalisation.
        """
        normalized = sanitize_name(raw)
        if not is_valid_project_name(normalized):
            raise ValidationError(
                f"Invalid project name {raw!r}. Must be npm-safe "
                "(lowercase, kebab-case, no spaces)"
            )
        return cls(raw=raw, normalized=normalized)


def is_valid_project_name(name: str) -> bool:
    """Return ``True`` for lowercase kebab-case names without edge hyphens."""
    return (
        bool(PROJECT_NAME_PATTERN.match(name))
        and not name.startswith("-")
        and not name.endswith("-")
    )


class ResolvedReference(BaseModel):
    """The template tag, branch or commit chosen for this run."""

    model_config = ConfigDict(frozen=True)

    ref: str
    source: str = Field(..., description="'explicit', 'latest-release' or 'fallback'")
    warning: Optional[str] = Field(default=None, description="Why the fallback was used")

    @property
    def is_fallback(self) -> bool:
        return self.source == "fallback"


# ---------------------------------------------------------------------------
# Per-entry results & reports
# ---------------------------------------------------------------------------

class EntryResult(BaseModel):
    """What happened to a single path during sanitising or cleanup."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., description="Path relative to the project root")
    outcome: EntryOutcome
    is_dir: bool = False
    detail: str = ""


class SanitizeReport(BaseModel):
    """Result of a byte-order-mark sanitising pass."""

    model_config = ConfigDict(frozen=True)

    results: tuple[EntryResult, ...] = ()

    @computed_field  # type: ignore[misc]
    @property
    def sanitized(self) -> list[str]:
        return [r.path for r in self.results if r.outcome is EntryOutcome.DONE]

    @property
    def failed(self) -> list[EntryResult]:
        return [r for r in self.results if r.outcome is EntryOutcome.FAILED]


class CleanupReport(BaseModel):
    """Counts and ordered list of what the Cleanup Engine removed."""

    model_config = ConfigDict(frozen=True)

    files_removed: int = Field(default=0, ge=0)
    folders_removed: int = Field(default=0, ge=0)
    removed_items: tuple[str, ...] = ()
    failures: tuple[EntryResult, ...] = ()
    patterns_skipped: tuple[str, ...] = ()

    @classmethod
    def from_results(
        cls,
        results: list[EntryResult],
        patterns_skipped: list[str] | None = None,
    ) -> "CleanupReport":
        """Aggregate per-entry results into a report."""
        removed = [r for r in results if r.outcome is EntryOutcome.DONE]
        return cls(
            files_removed=sum(1 for r in removed if not r.is_dir),
            folders_removed=sum(1 for r in removed if r.is_dir),
            removed_items=tuple(r.path for r in removed),
            failures=tuple(r for r in results if r.outcome is EntryOutcome.FAILED),
            patterns_skipped=tuple(patterns_skipped or ()),
        )

    @property
    def anything_removed(self) -> bool:
        return self.files_removed > 0 or self.folders_removed > 0

    def display_items(self, limit: int = REMOVED_ITEMS_DISPLAY_LIMIT) -> tuple[list[str], int]:
        """Return the first *limit* removed items and how many were left out."""
        shown = list(self.removed_items[:limit])
        return shown, max(len(self.removed_items) - limit, 0)
