"""Ignore-pattern sources for pattern-mode cleanup.

A template may publish a ``.templateignore`` file: one glob per line, blank
lines and ``#`` comments ignored.  When that file cannot be fetched, or is
empty, the built-in list below is used instead.
"""

from __future__ import annotations

from typing import Protocol

import httpx
from pydantic import BaseModel, ConfigDict

from create_astro.config import TemplateSource
from create_astro.template.resolver import USER_AGENT
from create_astro.utils import console

BUILTIN_PATTERNS: tuple[str, ...] = (
    # CI & release
    ".github",
    ".husky",
    ".releaserc*",
    "CHANGELOG.md",
    "CONTRIBUTING.md",
    # Editor / tooling
    ".editorconfig",
    ".gitattributes",
    ".prettierrc*",
    ".prettierignore",
    ".vscode",
    ".npmignore",
    ".templateignore",
    # Documentation
    "docs",
    # Testing
    "vitest.config.*",
    "jest.config.*",
    "**/__tests__",
    "**/*.test.*",
    "**/*.spec.*",
    "msw",
)


class IgnorePatternSet(BaseModel):
    """Ordered glob patterns and where they came from."""

    model_config = ConfigDict(frozen=True)

    patterns: tuple[str, ...]
    origin: str = "builtin"


def parse_ignore_file(text: str) -> list[str]:
    """Split a ``.templateignore`` document into patterns."""
    patterns: list[str] = []
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        patterns.append(stripped)
    return patterns


class PatternSource(Protocol):
    async def load(self) -> IgnorePatternSet: ...


class BuiltinPatterns:
    """The fixed fallback list."""

    def __init__(self, patterns: tuple[str, ...] = BUILTIN_PATTERNS) -> None:
        self.patterns = patterns

    async def load(self) -> IgnorePatternSet:
        return IgnorePatternSet(patterns=self.patterns, origin="builtin")


class RemotePatterns:
    """Patterns read from the template's own ``.templateignore``.

    Falls back to :class:`BuiltinPatterns` when the request fails, the server
    answers with a non-success status, or the file has no patterns.
    """

    def __init__(
        self,
        source: TemplateSource,
        ref: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
        fallback: PatternSource | None = None,
    ) -> None:
        self.source = source
        self.ref = ref
        self.timeout = timeout
        self.transport = transport
        self.fallback = fallback or BuiltinPatterns()

    async def _fetch_text(self) -> str | None:
        url = self.source.ignore_file_url(self.ref)
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout, connect=min(self.timeout, 10.0)),
                headers={"User-Agent": USER_AGENT},
                follow_redirects=True,
                transport=self.transport,
            ) as client:
                response = await client.get(url)
        except httpx.HTTPError as exc:
            console.print(f"  [dim]Could not fetch {self.source.ignore_file}: {exc}[/dim]")
            return None
        if not response.is_success:
            console.print(
                f"  [dim]No {self.source.ignore_file} in template "
                f"(HTTP {response.status_code})[/dim]"
            )
            return None
        return response.text

    async def load(self) -> IgnorePatternSet:
        text = await self._fetch_text()
        patterns = parse_ignore_file(text) if text else []
        if not patterns:
            return await self.fallback.load()
        return IgnorePatternSet(patterns=tuple(patterns), origin="remote")
