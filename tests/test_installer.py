"""Unit tests for PackageManagerAdapter (create_astro.installer).

Tests cover:
- Detection order and CI short-circuit
- Successful installs with each manager
- The yarn -> npm retry and the double-failure error
- Failures of non-yarn managers are not retried
- probe_binary for a binary that does not exist
"""

from __future__ import annotations

from pathlib import Path

import pytest

from create_astro.errors import InstallError
from create_astro.installer import PackageManagerAdapter, probe_binary
from create_astro.models import PackageManager


class TestDetect:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_prefers_pnpm(self, probe_factory):
        adapter = PackageManagerAdapter(probe=probe_factory({"pnpm", "yarn"}))
        assert await adapter.detect() is PackageManager.PNPM

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_yarn_when_no_pnpm(self, probe_factory):
        adapter = PackageManagerAdapter(probe=probe_factory({"yarn"}))
        assert await adapter.detect() is PackageManager.YARN

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_npm_default(self, probe_factory):
        adapter = PackageManagerAdapter(probe=probe_factory(set()))
        assert await adapter.detect() is PackageManager.NPM

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_ci_skips_probing(self):
        async def probe(binary: str) -> bool:
            raise AssertionError("probe must not run in CI")

        adapter = PackageManagerAdapter(probe=probe, is_ci=True)
        assert await adapter.detect() is PackageManager.NPM


class TestInstall:
    @pytest.mark.unit
    @pytest.mark.asyncio
    @pytest.mark.parametrize("manager", list(PackageManager))
    async def test_success(self, tmp_path: Path, runner_factory, manager: PackageManager):
        runner = runner_factory()
        adapter = PackageManagerAdapter(runner=runner)

        used = await adapter.install(tmp_path, manager)

        assert used is manager
        assert runner.calls == [([manager.value, "install"], tmp_path)]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_yarn_failure_retries_with_npm(self, tmp_path: Path, runner_factory):
        runner = runner_factory({"yarn": 1})
        adapter = PackageManagerAdapter(runner=runner)

        used = await adapter.install(tmp_path, PackageManager.YARN)

        assert used is PackageManager.NPM
        assert [cmd for cmd, _ in runner.calls] == [["yarn", "install"], ["npm", "install"]]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_yarn_and_npm_failure(self, tmp_path: Path, runner_factory):
        adapter = PackageManagerAdapter(runner=runner_factory({"yarn": 1, "npm": 1}))

        with pytest.raises(InstallError, match="yarn and npm") as excinfo:
            await adapter.install(tmp_path, PackageManager.YARN)

        assert excinfo.value.failures == {"yarn": "yarn failed", "npm": "npm failed"}

    @pytest.mark.unit
    @pytest.mark.asyncio
    @pytest.mark.parametrize("manager", [PackageManager.NPM, PackageManager.PNPM])
    async def test_other_managers_not_retried(
        self, tmp_path: Path, runner_factory, manager: PackageManager
    ):
        runner = runner_factory({manager.value: 2})
        adapter = PackageManagerAdapter(runner=runner)

        with pytest.raises(InstallError, match=f"{manager.value} install failed"):
            await adapter.install(tmp_path, manager)

        assert len(runner.calls) == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_runner_oserror_becomes_install_error(self, tmp_path: Path):
        async def runner(cmd: list[str], cwd: Path) -> tuple[int, str, str]:
            raise FileNotFoundError(cmd[0])

        adapter = PackageManagerAdapter(runner=runner)
        with pytest.raises(InstallError, match="could not be started"):
            await adapter.install(tmp_path, PackageManager.PNPM)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_exit_code_used_when_stderr_empty(self, tmp_path: Path):
        async def runner(cmd: list[str], cwd: Path) -> tuple[int, str, str]:
            return (7, "", "")

        adapter = PackageManagerAdapter(runner=runner)
        with pytest.raises(InstallError, match="exited with code 7"):
            await adapter.install(tmp_path, PackageManager.NPM)


class TestProbeBinary:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_missing_binary(self):
        assert await probe_binary("definitely-not-a-package-manager-xyz") is False
