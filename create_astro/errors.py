"""Exceptions raised by the scaffolding pipeline."""

from __future__ import annotations


class ScaffoldError(Exception):
    """Raised when a pipeline stage fails irrecoverably."""

    stage = "scaffold"

    def __init__(self, message: str, stage: str | None = None) -> None:
        if stage is not None:
            self.stage = stage
        self.message = message
        super().__init__(message)


class ValidationError(ScaffoldError):
    """Bad project name, invalid option value or conflicting flags."""

    stage = "validate"


class DestinationExistsError(ValidationError):
    """The destination directory already exists and may not be replaced."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Directory {path} already exists")


class UserCancelledError(ScaffoldError):
    """The user declined a prompt or interrupted the run."""

    stage = "prompt"

    def __init__(self, message: str = "Operation cancelled") -> None:
        super().__init__(message)


class DownloadError(ScaffoldError):
    """The template archive could not be retrieved."""

    stage = "fetch"


class ExtractionError(ScaffoldError):
    """The template archive could not be unpacked."""

    stage = "fetch"


class FrameworkNotFoundError(ScaffoldError):
    """The requested framework subtree is missing from the template."""

    stage = "fetch"

    def __init__(self, framework: str, available: list[str] | None = None) -> None:
        self.framework = framework
        self.available = available or []
        message = f"Framework '{framework}' not found in template"
        if self.available:
            message += f" (available: {', '.join(self.available)})"
        super().__init__(message)


class CleanupError(ScaffoldError):
    """The project directory could not be read during cleanup."""

    stage = "cleanup"


class ManifestError(ScaffoldError):
    """``package.json`` is missing or not a JSON object."""

    stage = "manifest"


class InstallError(ScaffoldError):
    """Dependency installation failed after any fallback was tried."""

    stage = "install"

    def __init__(self, message: str, failures: dict[str, str] | None = None) -> None:
        self.failures = failures or {}
        super().__init__(message)


class ReferenceResolutionWarning(UserWarning):
    """The latest template release could not be determined."""
