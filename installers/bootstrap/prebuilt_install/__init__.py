"""Fetch, unpack and link prebuilt release binaries for npm packages."""

from .config import InstallConfig
from .errors import (
    DownloadFailed,
    ExtractionFailed,
    GlobalInstallUnsupported,
    InstallError,
    LinkFailed,
    ManifestIncomplete,
    ManifestMalformed,
    ManifestNotFound,
    UnsupportedPlatform,
)
from .fetcher import fetch_and_extract
from .linker import link_bins
from .locator import DownloadDescriptor, build_download_url, locate
from .manifest import PackageManifest, load_manifest
from .resolver import PlatformKey, resolve_platform
from .service import InstallResult, install

__all__ = [
    "DownloadDescriptor",
    "DownloadFailed",
    "ExtractionFailed",
    "GlobalInstallUnsupported",
    "InstallConfig",
    "InstallError",
    "InstallResult",
    "LinkFailed",
    "ManifestIncomplete",
    "ManifestMalformed",
    "ManifestNotFound",
    "PackageManifest",
    "PlatformKey",
    "build_download_url",
    "fetch_and_extract",
    "install",
    "link_bins",
    "load_manifest",
    "locate",
    "resolve_platform",
]
