"""Unit tests for shared utilities (create_astro.utils).

Tests cover:
- sanitize_name normalisation rules
- remove_path for files, directories and symlinks
- format_duration
- run_command (success, failure, missing program, timeout)
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

from create_astro.utils import format_duration, remove_path, run_command, sanitize_name


# ---------------------------------------------------------------------------
# sanitize_name
# ---------------------------------------------------------------------------

class TestSanitizeName:
    @pytest.mark.unit
    def test_already_kebab(self):
        assert sanitize_name("my-site") == "my-site"

    @pytest.mark.unit
    def test_spaces_and_underscores(self):
        assert sanitize_name("My Cool_App") == "my-cool-app"

    @pytest.mark.unit
    def test_camel_case_split(self):
        assert sanitize_name("myAstroSite") == "my-astro-site"

    @pytest.mark.unit
    def test_digits_before_capital(self):
        assert sanitize_name("web3App") == "web3-app"

    @pytest.mark.unit
    def test_special_characters_replaced(self):
        assert sanitize_name("  Blog (v2)! ") == "blog-v2"

    @pytest.mark.unit
    def test_edge_hyphens_stripped(self):
        assert sanitize_name("--site--") == "site"

    @pytest.mark.unit
    def test_only_symbols_gives_empty(self):
        assert sanitize_name("!!!") == ""


# ---------------------------------------------------------------------------
# remove_path
# ---------------------------------------------------------------------------

class TestRemovePath:
    @pytest.mark.unit
    def test_file(self, tmp_path: Path):
        target = tmp_path / "a.txt"
        target.write_text("x")
        assert remove_path(target) is False
        assert not target.exists()

    @pytest.mark.unit
    def test_directory_tree(self, tmp_path: Path):
        target = tmp_path / "dir"
        (target / "nested").mkdir(parents=True)
        (target / "nested" / "f.txt").write_text("x")
        assert remove_path(target) is True
        assert not target.exists()

    @pytest.mark.unit
    @pytest.mark.skipif(sys.platform == "win32", reason="symlinks need privileges on Windows")
    def test_symlink_to_directory_removes_link_only(self, tmp_path: Path):
        real = tmp_path / "real"
        real.mkdir()
        (real / "keep.txt").write_text("x")
        link = tmp_path / "link"
        os.symlink(real, link)

        assert remove_path(link) is False
        assert not link.exists()
        assert (real / "keep.txt").exists()

    @pytest.mark.unit
    def test_missing_raises(self, tmp_path: Path):
        with pytest.raises(OSError):
            remove_path(tmp_path / "nope")


# ---------------------------------------------------------------------------
# format_duration
# ---------------------------------------------------------------------------

class TestFormatDuration:
    @pytest.mark.unit
    def test_seconds(self):
        assert format_duration(3.7) == "3.7s"

    @pytest.mark.unit
    def test_minutes(self):
        assert format_duration(65.2) == "1m 5s"

    @pytest.mark.unit
    def test_negative(self):
        assert format_duration(-1) == "0.0s"


# ---------------------------------------------------------------------------
# run_command
# ---------------------------------------------------------------------------

class TestRunCommand:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_success_captures_stdout(self):
        code, out, err = await run_command([sys.executable, "-c", "print('hello')"])
        assert code == 0
        assert out == "hello"
        assert err == ""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_nonzero_exit(self):
        code, _, err = await run_command(
            [sys.executable, "-c", "import sys; sys.stderr.write('bad'); sys.exit(3)"]
        )
        assert code == 3
        assert err == "bad"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_cwd(self, tmp_path: Path):
        code, out, _ = await run_command(
            [sys.executable, "-c", "import os; print(os.getcwd())"], cwd=tmp_path
        )
        assert code == 0
        assert Path(out).resolve() == tmp_path.resolve()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_inherits_parent_environment(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("CREATE_ASTRO_CHILD_VALUE", "from-parent")
        code, out, _ = await run_command(
            [sys.executable, "-c", "import os; print(os.environ['CREATE_ASTRO_CHILD_VALUE'])"]
        )
        assert code == 0
        assert out == "from-parent"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_missing_program(self):
        with pytest.raises(FileNotFoundError):
            await run_command(["definitely-not-a-real-binary-xyz"])

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_timeout(self):
        code, _, err = await run_command(
            [sys.executable, "-c", "import time; time.sleep(5)"], timeout=0.2
        )
        assert code == -1
        assert "timed out" in err
