"""Run configuration resolved once from the package manager environment."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .locator import DEFAULT_HOST


DEFAULT_TIMEOUT_S = 180

_FALSY = ("", "false", "0", "no")

logger = logging.getLogger("prebuilt_install.config")


@dataclass(frozen=True)
class InstallConfig:
    global_install: bool = False
    host: str = DEFAULT_HOST
    timeout_s: int = DEFAULT_TIMEOUT_S
    ca_bundle: str | None = None
    allow_insecure_tls: bool = False
    log_file: Path | None = None
    skip_link: bool = False

    @classmethod
    def from_env(cls, environ: Mapping[str, str]) -> "InstallConfig":
        log_file = environ.get("PREBUILT_INSTALL_LOG_FILE", "").strip()
        return cls(
            global_install=_global_requested(environ),
            host=environ.get("PREBUILT_INSTALL_HOST", "").strip() or DEFAULT_HOST,
            timeout_s=_parse_timeout(environ.get("PREBUILT_INSTALL_TIMEOUT")),
            ca_bundle=environ.get("PREBUILT_INSTALL_CA_BUNDLE", "").strip() or None,
            allow_insecure_tls=environ.get("PREBUILT_INSTALL_ALLOW_INSECURE_TLS", "").strip() == "1",
            log_file=Path(log_file).expanduser() if log_file else None,
            skip_link=environ.get("PREBUILT_INSTALL_SKIP_LINK", "").strip() == "1",
        )


def _parse_timeout(value: str | None) -> int:
    if not value:
        return DEFAULT_TIMEOUT_S
    try:
        timeout = int(value.strip())
    except ValueError:
        logger.debug("ignoring invalid PREBUILT_INSTALL_TIMEOUT=%r", value)
        return DEFAULT_TIMEOUT_S
    return timeout if timeout > 0 else DEFAULT_TIMEOUT_S


def _original_argv(raw: str) -> list[Any]:
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError:
        logger.debug("ignoring malformed npm_config_argv")
        return []
    if not isinstance(payload, dict):
        return []
    original = payload.get("original")
    return original if isinstance(original, list) else []


def _global_requested(environ: Mapping[str, str]) -> bool:
    # npm exports npm_config_global; yarn v1 only records the original argv.
    if environ.get("npm_config_global", "").strip().lower() not in _FALSY:
        return True
    raw = environ.get("npm_config_argv", "").strip()
    if not raw:
        return False
    return any(isinstance(arg, str) and "global" in arg for arg in _original_argv(raw))
