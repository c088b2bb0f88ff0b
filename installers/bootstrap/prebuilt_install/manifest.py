"""Package manifest (package.json) loading and validation."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .errors import ManifestIncomplete, ManifestMalformed, ManifestNotFound


MANIFEST_NAME = "package.json"

_GITHUB_URL_RE = re.compile(
    r"^(?:git\+)?(?:https?|git|ssh)://(?:git@)?github\.com[/:](?P<slug>[^/]+/[^/]+?)(?:\.git)?/?$"
)


@dataclass(frozen=True)
class PackageManifest:
    name: str
    version: str
    repository: str
    bin: dict[str, str] = field(default_factory=dict)

    @property
    def executable_path(self) -> str:
        return self.bin[self.name]


def normalize_repository(value: Any) -> str | None:
    """Reduce the npm ``repository`` field forms to an ``owner/repo`` slug."""
    if isinstance(value, dict):
        value = value.get("url")
    if not isinstance(value, str):
        return None
    value = value.strip()
    if not value:
        return None
    if value.startswith("github:"):
        return value[len("github:"):].strip("/") or None
    match = _GITHUB_URL_RE.match(value)
    if match:
        return match.group("slug")
    return value.strip("/")


def _normalize_bin(name: str | None, value: Any) -> dict[str, str]:
    if isinstance(value, str) and name:
        return {name: value}
    if isinstance(value, dict):
        return {str(k): str(v) for k, v in value.items() if isinstance(v, str) and v}
    return {}


def parse_manifest(raw: dict[str, Any], path: Path) -> PackageManifest:
    name = raw.get("name")
    version = raw.get("version")
    name = name.strip() if isinstance(name, str) else ""
    version = version.strip() if isinstance(version, str) else ""
    repository = normalize_repository(raw.get("repository"))
    bins = _normalize_bin(name, raw.get("bin"))

    missing: list[str] = []
    if not name:
        missing.append("name")
    if not version:
        missing.append("version")
    if not repository:
        missing.append("repository")
    if not name or name not in bins:
        missing.append(f"bin.{name or '<name>'}")
    if missing:
        raise ManifestIncomplete(path, tuple(missing))

    return PackageManifest(name=name, version=version, repository=repository, bin=bins)


def load_manifest(root: Path) -> PackageManifest:
    path = root / MANIFEST_NAME
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ManifestNotFound(path) from exc

    try:
        raw = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ManifestMalformed(path, str(exc)) from exc
    if not isinstance(raw, dict):
        raise ManifestMalformed(path, "top level must be a JSON object")

    return parse_manifest(raw, path)
