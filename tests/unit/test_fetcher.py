from __future__ import annotations

import http.client
import io
import os
import sys
import tarfile
import urllib.error
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "installers" / "bootstrap"))

import prebuilt_install.fetcher as fetcher
from prebuilt_install.errors import DownloadFailed, ExtractionFailed
from prebuilt_install.locator import DownloadDescriptor


URL = "https://github.com/org/pkg/releases/download/v1.2.3/pkg-linux-x86_64-1.2.3.tar.gz"


def _tar_gz(files: dict[str, tuple[bytes, int]]) -> bytes:
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as archive:
        for name, (data, mode) in files.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = mode
            archive.addfile(info, io.BytesIO(data))
    return buf.getvalue()


def _tar_gz_link(name: str, target: str) -> bytes:
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as archive:
        info = tarfile.TarInfo(name)
        info.type = tarfile.SYMTYPE
        info.linkname = target
        archive.addfile(info)
    return buf.getvalue()


class _FakeResponse(io.BytesIO):
    def __init__(self, payload: bytes, status: int = 200, reason: str = "OK"):
        super().__init__(payload)
        self.status = status
        self.reason = reason


def _descriptor(tmp_path: Path) -> DownloadDescriptor:
    return DownloadDescriptor(url=URL, target_directory=tmp_path / "bin", executable_relative_path="bin/pkg")


def _serve(monkeypatch, response) -> list[str]:
    calls: list[str] = []

    def fake_urlopen(url, timeout, context=None):
        calls.append(url)
        if isinstance(response, BaseException):
            raise response
        return response

    monkeypatch.setattr(fetcher, "_urlopen", fake_urlopen)
    return calls


def test_extracts_single_executable(monkeypatch, tmp_path) -> None:
    payload = _tar_gz({"pkg": (b"#!/bin/sh\necho hi\n", 0o755)})
    calls = _serve(monkeypatch, _FakeResponse(payload))
    descriptor = _descriptor(tmp_path)
    descriptor.target_directory.mkdir()

    names = fetcher.fetch_and_extract(descriptor, timeout_s=5)

    assert calls == [URL]
    assert names == ["pkg"]
    extracted = tmp_path / "bin" / "pkg"
    assert extracted.read_bytes() == b"#!/bin/sh\necho hi\n"
    if os.name == "posix":
        assert extracted.stat().st_mode & 0o777 == 0o755


def test_overwrites_existing_file(monkeypatch, tmp_path) -> None:
    descriptor = _descriptor(tmp_path)
    descriptor.target_directory.mkdir()
    (descriptor.target_directory / "pkg").write_bytes(b"old")

    _serve(monkeypatch, _FakeResponse(_tar_gz({"pkg": (b"new", 0o755)})))
    fetcher.fetch_and_extract(descriptor)

    assert (descriptor.target_directory / "pkg").read_bytes() == b"new"


def test_http_404_writes_nothing(monkeypatch, tmp_path) -> None:
    error = urllib.error.HTTPError(URL, 404, "Not Found", hdrs={}, fp=io.BytesIO(b""))
    _serve(monkeypatch, error)
    descriptor = _descriptor(tmp_path)
    descriptor.target_directory.mkdir()

    with pytest.raises(DownloadFailed) as info:
        fetcher.fetch_and_extract(descriptor)

    assert info.value.status == 404
    assert info.value.reason == "Not Found"
    assert list(descriptor.target_directory.iterdir()) == []


def test_non_success_status_is_rejected(monkeypatch, tmp_path) -> None:
    _serve(monkeypatch, _FakeResponse(b"", status=304, reason="Not Modified"))
    descriptor = _descriptor(tmp_path)
    descriptor.target_directory.mkdir()

    with pytest.raises(DownloadFailed) as info:
        fetcher.fetch_and_extract(descriptor)
    assert info.value.status == 304


def test_timeout_is_a_download_failure(monkeypatch, tmp_path) -> None:
    _serve(monkeypatch, urllib.error.URLError(TimeoutError("timed out")))

    with pytest.raises(DownloadFailed) as info:
        fetcher.fetch_and_extract(_descriptor(tmp_path), timeout_s=1)
    assert info.value.status is None
    assert info.value.reason == "timed out"


def test_corrupt_body_is_an_extraction_failure(monkeypatch, tmp_path) -> None:
    _serve(monkeypatch, _FakeResponse(b"this is not gzip data"))
    descriptor = _descriptor(tmp_path)
    descriptor.target_directory.mkdir()

    with pytest.raises(ExtractionFailed) as info:
        fetcher.fetch_and_extract(descriptor)
    assert isinstance(info.value.cause, tarfile.TarError)


def test_rejects_members_outside_target(monkeypatch, tmp_path) -> None:
    _serve(monkeypatch, _FakeResponse(_tar_gz({"../escape": (b"x", 0o644)})))
    descriptor = _descriptor(tmp_path)
    descriptor.target_directory.mkdir()

    with pytest.raises(ExtractionFailed):
        fetcher.fetch_and_extract(descriptor)
    assert not (tmp_path / "escape").exists()


def test_response_closed_after_extraction(monkeypatch, tmp_path) -> None:
    response = _FakeResponse(_tar_gz({"pkg": (b"bin", 0o755)}))
    _serve(monkeypatch, response)
    descriptor = _descriptor(tmp_path)
    descriptor.target_directory.mkdir()

    fetcher.fetch_and_extract(descriptor)
    assert response.closed


def test_rejects_absolute_symlink(monkeypatch, tmp_path) -> None:
    _serve(monkeypatch, _FakeResponse(_tar_gz_link("evil", "/etc/passwd")))
    descriptor = _descriptor(tmp_path)
    descriptor.target_directory.mkdir()

    with pytest.raises(ExtractionFailed) as info:
        fetcher.fetch_and_extract(descriptor)
    assert isinstance(info.value.cause, tarfile.FilterError)
    assert not (descriptor.target_directory / "evil").is_symlink()


def test_rejects_symlink_leaving_target(monkeypatch, tmp_path) -> None:
    _serve(monkeypatch, _FakeResponse(_tar_gz_link("evil", "../../outside")))
    descriptor = _descriptor(tmp_path)
    descriptor.target_directory.mkdir()

    with pytest.raises(ExtractionFailed) as info:
        fetcher.fetch_and_extract(descriptor)
    assert isinstance(info.value.cause, tarfile.FilterError)
    assert not (descriptor.target_directory / "evil").is_symlink()


def test_rejects_absolute_member_name(monkeypatch, tmp_path) -> None:
    absolute = str(tmp_path / "abs")
    _serve(monkeypatch, _FakeResponse(_tar_gz({absolute: (b"x", 0o644)})))
    descriptor = _descriptor(tmp_path)
    descriptor.target_directory.mkdir()

    with pytest.raises(ExtractionFailed) as info:
        fetcher.fetch_and_extract(descriptor)
    assert isinstance(info.value.cause, tarfile.AbsolutePathError)
    assert not (tmp_path / "abs").exists()
    assert list(descriptor.target_directory.iterdir()) == []


def test_connection_drop_mid_body_is_a_download_failure(monkeypatch, tmp_path) -> None:
    payload = _tar_gz({"pkg": (os.urandom(4096), 0o755)})

    class _DroppingResponse(_FakeResponse):
        def read(self, size=-1):
            if self.tell() >= 64:
                raise http.client.IncompleteRead(b"", 100)
            return super().read(min(size, 64) if size and size > 0 else 64)

    _serve(monkeypatch, _DroppingResponse(payload))
    descriptor = _descriptor(tmp_path)
    descriptor.target_directory.mkdir()

    with pytest.raises(DownloadFailed) as info:
        fetcher.fetch_and_extract(descriptor)
    assert info.value.status is None
    assert "IncompleteRead" in info.value.reason
    assert isinstance(info.value.__cause__, http.client.IncompleteRead)
