"""Shared fixtures for building small index archives."""

from __future__ import annotations

import hashlib
import io
import json
import os
import tarfile
from pathlib import Path
from typing import Callable, List, Optional, Tuple

import pytest

BASE_TIME = 1_600_000_000


class IndexBuilder:
    """Collects entries and writes them as an uncompressed tar archive."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.entries: List[Tuple[str, Optional[bytes], int]] = []

    def add(self, name: str, contents: bytes, time: Optional[int] = None) -> "IndexBuilder":
        self.entries.append((name, contents, BASE_TIME + len(self.entries) if time is None else time))
        return self

    def add_dir(self, name: str) -> "IndexBuilder":
        self.entries.append((name, None, BASE_TIME))
        return self

    def add_release(
        self,
        package: str,
        version: str,
        cabal: Optional[bytes] = None,
        tarball: Optional[bytes] = None,
    ) -> "IndexBuilder":
        self.add(f"{package}/{version}/{package}.cabal", cabal or cabal_file(package, version))
        self.add(
            f"{package}/{version}/package.json",
            package_json(package, version, tarball or tarball_bytes(package, version)),
        )
        return self

    def write(self) -> Path:
        with tarfile.open(self.path, "w", format=tarfile.USTAR_FORMAT) as tar:
            for name, contents, time in self.entries:
                info = tarfile.TarInfo(name)
                info.mtime = time
                info.uname = "hackage"
                info.gname = "hackage"
                if contents is None:
                    info.type = tarfile.DIRTYPE
                    info.mode = 0o755
                    tar.addfile(info)
                else:
                    info.size = len(contents)
                    info.mode = 0o644
                    tar.addfile(info, io.BytesIO(contents))
        return self.path


def cabal_file(package: str, version: str, revision: int = 0) -> bytes:
    text = f"name: {package}\nversion: {version}\n"
    if revision:
        text += f"x-revision: {revision}\n"
    return text.encode("utf-8")


def tarball_bytes(package: str, version: str) -> bytes:
    return f"tarball of {package}-{version}".encode("utf-8")


def package_json(
    package: str,
    version: str,
    tarball: bytes,
    key: Optional[str] = None,
    **signed_overrides: object,
) -> bytes:
    target = key or f"<repo>/package/{package}-{version}.tar.gz"
    signed = {
        "_type": "Targets",
        "expires": None,
        "targets": {
            target: {
                "hashes": {
                    "md5": hashlib.md5(tarball).hexdigest(),
                    "sha256": hashlib.sha256(tarball).hexdigest(),
                },
                "length": len(tarball),
            }
        },
        "version": 0,
    }
    signed.update(signed_overrides)
    return json.dumps({"signatures": [], "signed": signed}).encode("utf-8")


@pytest.fixture
def index_builder(tmp_path: Path) -> Callable[[str], IndexBuilder]:
    def _make(name: str = "01-index.tar") -> IndexBuilder:
        return IndexBuilder(tmp_path / name)

    return _make


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    d = tmp_path / "cache"
    d.mkdir()
    return d


def set_mtime(path: Path, seconds: int) -> None:
    os.utime(path, (seconds, seconds))
