"""Shared pytest fixtures for the create-astro-app test suite.

Provides reusable fixtures for:
- In-memory ``.tar.gz`` template archives shaped like GitHub snapshots
- An ``httpx.MockTransport`` serving release metadata, archives and
  ``.templateignore`` files
- Sample extracted project trees
- Fake package-manager probes/runners and prompters
"""

from __future__ import annotations

import io
import json
import tarfile
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
import pytest

from create_astro.installer import PackageManagerAdapter

UTF8_BOM = b"\xef\xbb\xbf"
WRAPPER = "astro-react-typescript-template-1.2.0"

PACKAGE_JSON = {
    "name": "astro-react-typescript-template",
    "version": "1.2.0",
    "type": "module",
    "scripts": {"dev": "astro dev", "build": "astro build"},
}


# ---------------------------------------------------------------------------
# Isolation from the caller's environment
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove variables that would change config resolution."""
    for var in (
        "CREATE_ASTRO_API",
        "CREATE_ASTRO_FRAMEWORK",
        "CREATE_ASTRO_PM",
        "CREATE_ASTRO_YES",
        "CREATE_ASTRO_HTTP_TIMEOUT",
        "CI",
        "GITHUB_ACTIONS",
    ):
        monkeypatch.delenv(var, raising=False)


# ---------------------------------------------------------------------------
# Archives
# ---------------------------------------------------------------------------

def build_archive(files: dict[str, str | bytes], wrapper: str = WRAPPER) -> bytes:
    """Build a gzip tarball with every path nested under *wrapper*/."""
    buffer = io.BytesIO()
    now = time.time()
    with tarfile.open(fileobj=buffer, mode="w:gz") as archive:
        directories: set[str] = {wrapper}
        for name in files:
            parts = name.split("/")[:-1]
            for i in range(1, len(parts) + 1):
                directories.add(f"{wrapper}/{'/'.join(parts[:i])}")
        for directory in sorted(directories):
            info = tarfile.TarInfo(directory)
            info.type = tarfile.DIRTYPE
            info.mode = 0o755
            info.mtime = now
            archive.addfile(info)
        for name, content in files.items():
            data = content.encode("utf-8") if isinstance(content, str) else content
            info = tarfile.TarInfo(f"{wrapper}/{name}")
            info.size = len(data)
            info.mode = 0o644
            info.mtime = now
            archive.addfile(info, io.BytesIO(data))
    return buffer.getvalue()


def template_files() -> dict[str, str | bytes]:
    """A realistic single-framework template repository."""
    return {
        "package.json": UTF8_BOM + json.dumps(PACKAGE_JSON, indent=2).encode("utf-8"),
        "tsconfig.json": '{"extends": "astro/tsconfigs/strict"}\n',
        "astro.config.mjs": "export default {};\n",
        "README.md": "# Template\n",
        "CHANGELOG.md": "## 1.2.0\n",
        ".gitignore": "node_modules\n",
        ".releaserc.json": "{}\n",
        ".github/workflows/ci.yml": "name: ci\n",
        ".vscode/settings.json": "{}\n",
        "docs/guide.md": "# Guide\n",
        "vitest.config.ts": "export default {};\n",
        "Button.test.ts": "test('x', () => {});\n",
        "notes.txt": "keep me\n",
        "public/favicon.svg": "<svg/>\n",
        "src/pages/index.astro": "---\n---\n<h1>Hi</h1>\n",
        "src/pages/api/hello.ts": "export const GET = () => new Response('hi');\n",
        "src/components/Button.tsx": "export const Button = () => null;\n",
        "src/components/Button.test.tsx": "test('button', () => {});\n",
    }


@pytest.fixture
def archive_factory() -> Callable[..., bytes]:
    return build_archive


@pytest.fixture
def template_file_map() -> dict[str, str | bytes]:
    return template_files()


@pytest.fixture
def template_archive() -> bytes:
    return build_archive(template_files())


@pytest.fixture
def project_tree(tmp_path: Path) -> Path:
    """An already-extracted template (wrapper stripped) on disk."""
    root = tmp_path / "my-site"
    for name, content in template_files().items():
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, str):
            path.write_text(content, encoding="utf-8")
        else:
            path.write_bytes(content)
    return root


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

class TemplateServer:
    """In-memory stand-in for api.github.com, github.com and raw content."""

    def __init__(
        self,
        archive: bytes,
        tag: str = "v1.2.0",
        release_status: int = 200,
        archive_status: int = 200,
        ignore_text: str | None = None,
        connect_error: bool = False,
    ) -> None:
        self.archive = archive
        self.tag = tag
        self.release_status = release_status
        self.archive_status = archive_status
        self.ignore_text = ignore_text
        self.connect_error = connect_error
        self.requests: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        if self.connect_error:
            raise httpx.ConnectError("Connection refused", request=request)
        if url.endswith("/releases/latest"):
            if self.release_status != 200:
                return httpx.Response(self.release_status, json={"message": "Not Found"})
            return httpx.Response(200, json={"tag_name": self.tag, "name": self.tag})
        if "/archive/" in url:
            if self.archive_status != 200:
                return httpx.Response(self.archive_status, text="Not Found")
            return httpx.Response(200, content=self.archive)
        if url.endswith("/.templateignore"):
            if self.ignore_text is None:
                return httpx.Response(404, text="404: Not Found")
            return httpx.Response(200, text=self.ignore_text)
        return httpx.Response(404)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def server_factory() -> Callable[..., TemplateServer]:
    return TemplateServer


@pytest.fixture
def template_server(template_archive: bytes) -> TemplateServer:
    return TemplateServer(template_archive)


# ---------------------------------------------------------------------------
# Package managers & prompts
# ---------------------------------------------------------------------------

class FakeRunner:
    """Records install commands; exit codes are looked up per manager."""

    def __init__(self, codes: dict[str, int] | None = None) -> None:
        self.codes = codes or {}
        self.calls: list[tuple[list[str], Path]] = []

    async def __call__(self, cmd: list[str], cwd: Path) -> tuple[int, str, str]:
        self.calls.append((cmd, cwd))
        code = self.codes.get(cmd[0], 0)
        return (code, "", f"{cmd[0]} failed" if code else "")


def make_probe(available: set[str]) -> Callable[[str], Any]:
    async def probe(binary: str) -> bool:
        return binary in available

    return probe


@pytest.fixture
def probe_factory() -> Callable[[set[str]], Any]:
    return make_probe


@pytest.fixture
def runner_factory() -> Callable[..., FakeRunner]:
    return FakeRunner


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def fake_adapter(fake_runner: FakeRunner) -> PackageManagerAdapter:
    """Adapter that 'finds' pnpm and records installs without running them."""
    return PackageManagerAdapter(probe=make_probe({"pnpm"}), runner=fake_runner)


class FakePrompter:
    def __init__(
        self,
        name: str | None = "my-site",
        overwrite: bool = False,
        api: bool = True,
    ) -> None:
        self.name = name
        self.overwrite = overwrite
        self.api = api
        self.asked: list[str] = []

    def ask_project_name(self, default: str) -> str | None:
        self.asked.append("name")
        return self.name

    def confirm_overwrite(self, name: str) -> bool:
        self.asked.append("overwrite")
        return self.overwrite

    def confirm_api(self) -> bool:
        self.asked.append("api")
        return self.api


@pytest.fixture
def prompter_factory() -> Callable[..., FakePrompter]:
    return FakePrompter
