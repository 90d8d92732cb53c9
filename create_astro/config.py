"""create-astro-app configuration.

Centralised, typed configuration for a scaffolding run.  All settings use
Pydantic v2 models so they are validated at construction time.  A
``ScaffoldConfig`` is resolved exactly once at start-up (command-line flags,
then environment variables, then defaults) and passed explicitly to every
stage; no stage reads the environment on its own.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field

from create_astro.errors import ValidationError
from create_astro.models import CleanupMode, PackageManager

DEFAULT_PROJECT_NAME = "my-astro-app"

SUPPORTED_FRAMEWORKS: tuple[str, ...] = ("react", "preact", "vue", "svelte", "solid")

_TRUE_VALUES = {"1", "true", "yes"}
_FALSE_VALUES = {"0", "false", "no"}


class TemplateSource(BaseModel):
    """Where the project template is downloaded from."""

    repo: str = Field(default="PamanAleph/astro-react-typescript-template")
    api_base: str = Field(default="https://api.github.com")
    archive_base: str = Field(default="https://github.com")
    raw_base: str = Field(default="https://raw.githubusercontent.com")
    fallback_ref: str = Field(default="v0.1.0", description="Used when the latest release is unknown")
    ignore_file: str = Field(default=".templateignore")

    @property
    def latest_release_url(self) -> str:
        return f"{self.api_base.rstrip('/')}/repos/{self.repo}/releases/latest"

    def archive_url(self, ref: str) -> str:
        return f"{self.archive_base.rstrip('/')}/{self.repo}/archive/{ref}.tar.gz"

    def ignore_file_url(self, ref: str) -> str:
        return f"{self.raw_base.rstrip('/')}/{self.repo}/{ref}/{self.ignore_file}"


class ScaffoldConfig(BaseModel):
    """Everything a scaffolding run needs to know, resolved up front."""

    project_name: Optional[str] = Field(default=None)
    ref: Optional[str] = Field(default=None, description="Template tag, branch or commit")
    framework: Optional[str] = Field(default=None, description="Subtree of a multi-template archive")
    package_manager: Optional[PackageManager] = Field(default=None, description="None means detect")
    use_api: Optional[bool] = Field(default=None, description="None means ask (or default to True)")
    yes: bool = Field(default=False, description="Accept defaults without prompting")
    install: bool = Field(default=True)
    cleanup: bool = Field(default=True)
    cleanup_mode: CleanupMode = Field(default=CleanupMode.SIMPLE)
    http_timeout: float = Field(default=30.0, gt=0, description="Per-request timeout in seconds")
    interactive: bool = Field(default=False, description="Prompts may be shown")
    is_ci: bool = Field(default=False)
    cwd: Path = Field(default_factory=Path.cwd)
    template: TemplateSource = Field(default_factory=TemplateSource)

    @property
    def keep_api(self) -> bool:
        return True if self.use_api is None else self.use_api

    def destination(self, project_name: str) -> Path:
        """Absolute path of the directory a project named *project_name* goes to."""
        return (self.cwd / project_name).resolve()

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    @classmethod
    def resolve(
        cls,
        flags: Mapping[str, Any],
        env: Mapping[str, str] | None = None,
        stdout_is_tty: bool = False,
    ) -> "ScaffoldConfig":
        """Build a config with precedence flags -> environment -> defaults.

        Recognised variables (all optional):
            CREATE_ASTRO_API, CREATE_ASTRO_FRAMEWORK, CREATE_ASTRO_PM,
            CREATE_ASTRO_YES, CREATE_ASTRO_HTTP_TIMEOUT, CI, GITHUB_ACTIONS.

        Raises:
            ValidationError: On conflicting flags or an out-of-range value.
        """
        env = os.environ if env is None else env

        if flags.get("api") and flags.get("no_api"):
            raise ValidationError("Cannot use both --api and --no-api flags")

        use_api: Optional[bool] = None
        if flags.get("api"):
            use_api = True
        elif flags.get("no_api"):
            use_api = False
        elif "CREATE_ASTRO_API" in env:
            use_api = _parse_bool("CREATE_ASTRO_API", env["CREATE_ASTRO_API"])

        framework = flags.get("framework") or env.get("CREATE_ASTRO_FRAMEWORK") or None
        if framework is not None:
            framework = framework.strip().lower()
            if framework not in SUPPORTED_FRAMEWORKS:
                raise ValidationError(
                    f"Unknown framework {framework!r} (expected one of: "
                    f"{', '.join(SUPPORTED_FRAMEWORKS)})"
                )

        pm_value = flags.get("package_manager") or env.get("CREATE_ASTRO_PM") or None
        package_manager: Optional[PackageManager] = None
        if pm_value is not None:
            try:
                package_manager = PackageManager(pm_value.strip().lower())
            except ValueError:
                raise ValidationError(
                    f"Unknown package manager {pm_value!r} (expected npm, yarn or pnpm)"
                ) from None

        yes = bool(flags.get("yes"))
        if not yes and "CREATE_ASTRO_YES" in env:
            yes = _parse_bool("CREATE_ASTRO_YES", env["CREATE_ASTRO_YES"])

        mode_value = flags.get("cleanup_mode")
        if mode_value:
            try:
                cleanup_mode = CleanupMode(mode_value)
            except ValueError:
                raise ValidationError(
                    f"Unknown cleanup mode {mode_value!r} (expected simple or pattern)"
                ) from None
        else:
            cleanup_mode = CleanupMode.PATTERN if framework else CleanupMode.SIMPLE

        kwargs: dict[str, Any] = {}
        if env.get("CREATE_ASTRO_HTTP_TIMEOUT"):
            try:
                kwargs["http_timeout"] = float(env["CREATE_ASTRO_HTTP_TIMEOUT"])
            except ValueError:
                raise ValidationError(
                    f"CREATE_ASTRO_HTTP_TIMEOUT must be a number, got "
                    f"{env['CREATE_ASTRO_HTTP_TIMEOUT']!r}"
                ) from None
            if kwargs["http_timeout"] <= 0:
                raise ValidationError("CREATE_ASTRO_HTTP_TIMEOUT must be positive")
        if flags.get("cwd"):
            kwargs["cwd"] = Path(flags["cwd"])

        return cls(
            project_name=flags.get("project_name") or None,
            ref=flags.get("ref") or None,
            framework=framework,
            package_manager=package_manager,
            use_api=use_api,
            yes=yes,
            install=not flags.get("no_install", False),
            cleanup=not flags.get("no_cleanup", False),
            cleanup_mode=cleanup_mode,
            interactive=stdout_is_tty and not yes,
            is_ci=_detect_ci(env),
            **kwargs,
        )


def _parse_bool(name: str, value: str) -> bool:
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ValidationError(f"{name} must be one of 1/0/true/false/yes/no, got {value!r}")


def _detect_ci(env: Mapping[str, str]) -> bool:
    return any(env.get(var, "").lower() in ("true", "1") for var in ("CI", "GITHUB_ACTIONS"))
