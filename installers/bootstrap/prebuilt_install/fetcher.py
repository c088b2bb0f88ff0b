"""Streaming download of release archives straight into the bin directory."""

from __future__ import annotations

import http.client
import ntpath
import posixpath
import ssl
import tarfile
import urllib.error
import urllib.request
import zlib
from pathlib import Path
from typing import IO

import certifi

from .config import DEFAULT_TIMEOUT_S
from .errors import DownloadFailed, ExtractionFailed
from .locator import DownloadDescriptor
from .logging_setup import get_logger


USER_AGENT = "prebuilt-install/0.1"

logger = get_logger()


def build_ssl_context(ca_bundle: str | None = None, allow_insecure: bool = False) -> ssl.SSLContext:
    """Create TLS context for release downloads with explicit CA handling."""
    if allow_insecure:
        return ssl._create_unverified_context()

    if ca_bundle:
        return ssl.create_default_context(cafile=ca_bundle)

    return ssl.create_default_context(cafile=certifi.where())


def _urlopen(url: str, timeout: int, context: ssl.SSLContext | None = None):
    request = urllib.request.Request(
        url,
        headers={
            "User-Agent": USER_AGENT,
            "Accept": "application/octet-stream",
        },
    )
    return urllib.request.urlopen(request, timeout=timeout, context=context)


def _reason(reason: object) -> str:
    if isinstance(reason, TimeoutError):
        return "timed out"
    return str(reason)


def extract_stream(stream: IO[bytes], target_dir: Path) -> list[str]:
    """Gunzip and untar ``stream`` into ``target_dir`` without seeking.

    Owner execute bits are kept. Absolute member names, and members or links
    resolving outside ``target_dir``, raise a ``tarfile.FilterError``.
    """
    with tarfile.open(fileobj=stream, mode="r|gz") as archive:
        names: list[str] = []
        for member in archive:
            # The data filter would silently strip a leading slash.
            if posixpath.isabs(member.name) or ntpath.isabs(member.name):
                raise tarfile.AbsolutePathError(member)
            archive.extract(member, path=target_dir, filter="data")
            names.append(member.name)
    return names


def fetch_and_extract(
    descriptor: DownloadDescriptor,
    *,
    timeout_s: int = DEFAULT_TIMEOUT_S,
    ssl_context: ssl.SSLContext | None = None,
) -> list[str]:
    url = descriptor.url
    logger.info("Downloading %s", url, extra={"event": "download_started"})
    try:
        response = _urlopen(url, timeout=timeout_s, context=ssl_context)
    except urllib.error.HTTPError as exc:
        exc.close()
        raise DownloadFailed(url, exc.code, str(exc.reason)) from exc
    except urllib.error.URLError as exc:
        raise DownloadFailed(url, None, _reason(exc.reason)) from exc
    except TimeoutError as exc:
        raise DownloadFailed(url, None, "timed out") from exc

    with response:
        status = getattr(response, "status", 200)
        if not 200 <= status < 300:
            raise DownloadFailed(url, status, getattr(response, "reason", "") or "")

        try:
            names = extract_stream(response, descriptor.target_directory)
        except TimeoutError as exc:
            raise DownloadFailed(url, None, "timed out") from exc
        except http.client.HTTPException as exc:
            raise DownloadFailed(url, None, str(exc) or type(exc).__name__) from exc
        except (tarfile.TarError, zlib.error, EOFError, OSError) as exc:
            raise ExtractionFailed(exc) from exc

    logger.info(
        "Extracted %d entries into %s",
        len(names),
        descriptor.target_directory,
        extra={"event": "extract_completed"},
    )
    return names
