"""Expose installed executables as commands in ``node_modules/.bin``."""

from __future__ import annotations

import os
import platform
import stat
from pathlib import Path

from .manifest import PackageManifest


def bin_dir_for(root: Path) -> Path:
    """Nearest ``node_modules/.bin`` above ``root``, else one inside it."""
    root = root.resolve()
    for parent in root.parents:
        if parent.name == "node_modules":
            return parent / ".bin"
    return root / "node_modules" / ".bin"


def make_executable(path: Path) -> None:
    mode = path.stat().st_mode
    # Grant execute wherever read is granted.
    exec_bits = (mode & (stat.S_IRUSR | stat.S_IRGRP | stat.S_IROTH)) >> 2
    path.chmod(mode | exec_bits | stat.S_IXUSR)


def _remove_existing(link: Path) -> None:
    if link.is_symlink() or link.is_file():
        link.unlink()


def _write_cmd_shim(link: Path, target: Path) -> Path:
    shim = link.with_name(link.name + ".cmd")
    rel = os.path.relpath(target, shim.parent)
    shim.write_text(f'@ECHO off\r\n"%~dp0\\{rel}" %*\r\n', encoding="utf-8")
    return shim


def link_bins(root: Path, manifest: PackageManifest) -> list[Path]:
    """Make every bin target executable and link it under its command name."""
    windows = platform.system().lower().startswith("win")
    link_dir = bin_dir_for(root)
    link_dir.mkdir(parents=True, exist_ok=True)

    created: list[Path] = []
    for command, rel_path in manifest.bin.items():
        target = (root / rel_path).resolve()
        make_executable(target)

        link = link_dir / command
        if windows:
            created.append(_write_cmd_shim(link, target))
            continue

        _remove_existing(link)
        link.symlink_to(os.path.relpath(target, link_dir))
        created.append(link)
    return created
