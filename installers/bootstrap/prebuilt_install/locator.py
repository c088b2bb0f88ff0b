"""Download URL and target path computation for a release binary."""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path, PurePosixPath

from .manifest import PackageManifest
from .resolver import PlatformKey, executable_suffix


DEFAULT_HOST = "github.com"


@dataclass(frozen=True)
class DownloadDescriptor:
    url: str
    target_directory: Path
    executable_relative_path: str


def build_download_url(manifest: PackageManifest, key: PlatformKey, host: str = DEFAULT_HOST) -> str:
    host = host.rstrip("/")
    if "://" not in host:
        host = f"https://{host}"
    name = manifest.name
    version = manifest.version
    return (
        f"{host}/{manifest.repository}/releases/download/v{version}/"
        f"{name}-{key.os_name}-{key.arch}-{version}.tar.gz"
    )


def adjust_for_platform(manifest: PackageManifest, key: PlatformKey) -> PackageManifest:
    """Return a copy whose executable path carries the platform suffix.

    The manifest on disk is left untouched.
    """
    suffix = executable_suffix(key)
    current = manifest.executable_path
    if not suffix or current.lower().endswith(suffix):
        return manifest
    bins = dict(manifest.bin)
    bins[manifest.name] = current + suffix
    return replace(manifest, bin=bins)


def locate(
    manifest: PackageManifest,
    key: PlatformKey,
    root: Path,
    host: str = DEFAULT_HOST,
) -> tuple[PackageManifest, DownloadDescriptor]:
    adjusted = adjust_for_platform(manifest, key)
    rel_path = adjusted.executable_path
    target_dir = root / PurePosixPath(rel_path).parent
    descriptor = DownloadDescriptor(
        url=build_download_url(manifest, key, host),
        target_directory=target_dir,
        executable_relative_path=rel_path,
    )
    return adjusted, descriptor
