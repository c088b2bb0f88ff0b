"""Platform resolution onto the release asset naming scheme."""

from __future__ import annotations

from dataclasses import dataclass

from .errors import UnsupportedPlatform


ARCH_MAPPING = {
    "x86_64": "x86_64",
    "amd64": "x86_64",
    "x64": "x86_64",
    "aarch64": "aarch64",
    "arm64": "aarch64",
}

OS_MAPPING = {
    "darwin": "darwin",
    "linux": "linux",
    "windows": "windows",
    "win32": "windows",
}

WINDOWS_EXE_SUFFIX = ".exe"


@dataclass(frozen=True)
class PlatformKey:
    arch: str
    os_name: str


def resolve_platform(system: str, machine: str) -> PlatformKey:
    """Map ``platform.system()``/``platform.machine()`` values to release tokens.

    Raises UnsupportedPlatform when either value has no entry in the tables.
    """
    arch = ARCH_MAPPING.get(machine.strip().lower())
    os_name = OS_MAPPING.get(system.strip().lower())
    if arch is None or os_name is None:
        raise UnsupportedPlatform(system, machine)
    return PlatformKey(arch=arch, os_name=os_name)


def executable_suffix(key: PlatformKey) -> str:
    if key.os_name == "windows":
        return WINDOWS_EXE_SUFFIX
    return ""
