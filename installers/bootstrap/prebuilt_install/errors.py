"""Installer failure taxonomy; every error is terminal for the run."""

from __future__ import annotations

from pathlib import Path


class InstallError(RuntimeError):
    """Base class for failures surfaced to the user by the CLI."""

    exit_code = 1


class GlobalInstallUnsupported(InstallError):
    def __init__(self) -> None:
        super().__init__(
            "Installing as a global module is not supported. "
            "Add the package as a project dependency instead."
        )


class UnsupportedPlatform(InstallError):
    def __init__(self, system: str, machine: str) -> None:
        self.system = system
        self.machine = machine
        super().__init__(f"Installation is not supported for {system} {machine}")


class ManifestNotFound(InstallError):
    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Package manifest not found: {path}")


class ManifestMalformed(InstallError):
    def __init__(self, path: Path, detail: str) -> None:
        self.path = path
        self.detail = detail
        super().__init__(f"Package manifest {path} is not valid: {detail}")


class ManifestIncomplete(InstallError):
    def __init__(self, path: Path, missing: tuple[str, ...]) -> None:
        self.path = path
        self.missing = missing
        super().__init__(f"Package manifest {path} is missing: {', '.join(missing)}")


class DownloadFailed(InstallError):
    def __init__(self, url: str, status: int | None, reason: str) -> None:
        self.url = url
        self.status = status
        self.reason = reason
        if status is None:
            message = f"Failed to download binary from {url}: {reason}"
        else:
            message = f"Failed to download binary: {status} {reason}"
        super().__init__(message)


class ExtractionFailed(InstallError):
    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(f"Failed to extract binary archive: {cause}")


class LinkFailed(InstallError):
    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(f"Failed to link binary: {cause}")
