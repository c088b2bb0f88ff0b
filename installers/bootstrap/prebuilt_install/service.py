"""Install pipeline shared by the CLI and the package manager hook."""

from __future__ import annotations

import platform
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Callable

from .config import InstallConfig
from .errors import ExtractionFailed, GlobalInstallUnsupported, LinkFailed
from .fetcher import build_ssl_context, fetch_and_extract
from .locator import DownloadDescriptor, locate
from .linker import link_bins
from .logging_setup import get_logger
from .manifest import PackageManifest, load_manifest
from .resolver import PlatformKey, resolve_platform


ProgressCallback = Callable[[str], None]
Fetcher = Callable[..., object]
Linker = Callable[[Path, PackageManifest], list[Path]]

logger = get_logger()


@dataclass(frozen=True)
class InstallResult:
    package: str
    version: str
    platform: PlatformKey
    descriptor: DownloadDescriptor
    executable: Path
    links: tuple[Path, ...]


def ensure_local_install(config: InstallConfig) -> None:
    if config.global_install:
        raise GlobalInstallUnsupported()


def install(
    root: Path,
    config: InstallConfig,
    *,
    system: str | None = None,
    machine: str | None = None,
    fetch: Fetcher = fetch_and_extract,
    linker: Linker = link_bins,
    progress: ProgressCallback | None = None,
) -> InstallResult:
    """Download, unpack and link the release binary declared in ``root``'s manifest.

    Every step runs only after the previous one succeeded; any failure is an
    InstallError and leaves nothing reported as installed.
    """
    progress = progress or (lambda _msg: None)

    ensure_local_install(config)

    progress("Resolving platform")
    key = resolve_platform(system or platform.system(), machine or platform.machine())
    logger.debug("resolved platform %s/%s", key.os_name, key.arch, extra={"event": "platform_resolved"})

    root = root.resolve()
    manifest = load_manifest(root)
    logger.info(
        "Installing %s %s for %s-%s",
        manifest.name,
        manifest.version,
        key.os_name,
        key.arch,
        extra={"event": "install_started"},
    )

    adjusted, descriptor = locate(manifest, key, root, host=config.host)
    try:
        descriptor.target_directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ExtractionFailed(exc) from exc

    progress(f"Downloading {descriptor.url}")
    fetch(
        descriptor,
        timeout_s=config.timeout_s,
        ssl_context=build_ssl_context(config.ca_bundle, config.allow_insecure_tls),
    )

    executable = root / descriptor.executable_relative_path
    if not executable.is_file():
        raise ExtractionFailed(
            FileNotFoundError(f"archive did not contain {descriptor.executable_relative_path}")
        )

    links: list[Path] = []
    if config.skip_link:
        logger.info("Skipping bin linking for %s", manifest.name)
    else:
        progress("Linking executable")
        single = replace(adjusted, bin={adjusted.name: descriptor.executable_relative_path})
        try:
            links = list(linker(root, single))
        except Exception as exc:
            raise LinkFailed(exc) from exc
        logger.info("Linked %s -> %s", manifest.name, executable, extra={"event": "bin_linked"})

    logger.info("Installed %s successfully", manifest.name, extra={"event": "install_completed"})
    return InstallResult(
        package=manifest.name,
        version=manifest.version,
        platform=key,
        descriptor=descriptor,
        executable=executable,
        links=tuple(links),
    )
