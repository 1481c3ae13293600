"""
Binary encoding of the metadata cache file.

Layout (all integers big-endian)::

    int64   magic (0xFEDCBA09)
    int64   size of the index file in bytes
    int64   modification time of the index file, POSIX seconds
    uint32  package count, then per package (sorted by name):
        str     package name
        range   preferred version range
        uint32  version count, then per version (sorted):
            uint32 + uint64*n   version components
            uint64              revision
            bytes               SHA256 of the .cabal file
            bytes               SHA256 of the tarball

``str`` and ``bytes`` are a uint32 length followed by the data. A range is a
tag byte (index into ``RANGE_OPS``) followed by a version for comparison
operators or two nested ranges for ``||``/``&&``.

The magic number is checked before anything else so that a format change
fails early instead of being misread.
"""
from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import List, Tuple

from hackage_index.domain.hashes import SHA256
from hackage_index.domain.models import HackageMetadata, PackageInfo, ReleaseInfo
from hackage_index.domain.versions import RANGE_OPS, Version, VersionRange

MAGIC = 0xFEDCBA09

_HEADER = struct.Struct(">qqq")
_U8 = struct.Struct(">B")
_U32 = struct.Struct(">I")
_U64 = struct.Struct(">Q")


class CacheDecodeError(ValueError):
    """The cache file is truncated, garbled or from another format version."""


@dataclass
class CacheRecord:
    size: int
    time: int
    data: HackageMetadata


def encode_cache(record: CacheRecord) -> bytes:
    out: List[bytes] = [_HEADER.pack(MAGIC, record.size, record.time)]
    out.append(_U32.pack(len(record.data)))
    for pn in sorted(record.data):
        pi = record.data[pn]
        _put_str(out, pn)
        _put_range(out, pi.preferred)
        out.append(_U32.pack(len(pi.versions)))
        for ver in sorted(pi.versions):
            ri = pi.versions[ver]
            _put_version(out, ver)
            out.append(_U64.pack(ri.revision))
            _put_bytes(out, ri.cabal_hash.digest)
            _put_bytes(out, ri.tarball_hash.digest)
    return b"".join(out)


def decode_cache(data: bytes) -> CacheRecord:
    """
    Decode a cache file, raising CacheDecodeError on any problem.
    """
    reader = _Reader(data)
    magic, size, time = reader.unpack(_HEADER)
    if magic != MAGIC:
        raise CacheDecodeError(f"Got wrong magic number {magic:#x}")

    meta: HackageMetadata = {}
    (package_count,) = reader.unpack(_U32)
    for _ in range(package_count):
        pn = reader.read_str()
        preferred = reader.read_range()
        versions = {}
        (version_count,) = reader.unpack(_U32)
        for _ in range(version_count):
            ver = reader.read_version()
            (revision,) = reader.unpack(_U64)
            cabal_hash = reader.read_sha256()
            tarball_hash = reader.read_sha256()
            versions[ver] = ReleaseInfo(
                revision=revision, cabal_hash=cabal_hash, tarball_hash=tarball_hash
            )
        meta[pn] = PackageInfo(versions=versions, preferred=preferred)

    if reader.pos != len(data):
        raise CacheDecodeError(f"{len(data) - reader.pos} trailing bytes in cache file")
    return CacheRecord(size=size, time=time, data=meta)


def _put_bytes(out: List[bytes], value: bytes) -> None:
    out.append(_U32.pack(len(value)))
    out.append(value)


def _put_str(out: List[bytes], value: str) -> None:
    _put_bytes(out, value.encode("utf-8"))


def _put_version(out: List[bytes], version: Version) -> None:
    out.append(_U32.pack(len(version.parts)))
    out.extend(_U64.pack(p) for p in version.parts)


def _put_range(out: List[bytes], vr: VersionRange) -> None:
    out.append(_U8.pack(RANGE_OPS.index(vr.op)))
    if vr.op in ("||", "&&"):
        _put_range(out, vr.left)
        _put_range(out, vr.right)
    elif vr.version is not None:
        _put_version(out, vr.version)


class _Reader:
    def __init__(self, data: bytes):
        self.data = data
        self.pos = 0

    def take(self, n: int) -> bytes:
        end = self.pos + n
        if end > len(self.data):
            raise CacheDecodeError(f"Unexpected end of cache file at offset {self.pos}")
        chunk = self.data[self.pos:end]
        self.pos = end
        return chunk

    def unpack(self, fmt: struct.Struct) -> Tuple:
        return fmt.unpack(self.take(fmt.size))

    def read_bytes(self) -> bytes:
        (n,) = self.unpack(_U32)
        return self.take(n)

    def read_str(self) -> str:
        try:
            return self.read_bytes().decode("utf-8")
        except UnicodeDecodeError as e:
            raise CacheDecodeError(f"Invalid package name: {e}") from e

    def read_sha256(self) -> SHA256:
        try:
            return SHA256.from_bytes(self.read_bytes())
        except ValueError as e:
            raise CacheDecodeError(str(e)) from e

    def read_version(self) -> Version:
        (n,) = self.unpack(_U32)
        if n == 0:
            raise CacheDecodeError("Empty version in cache file")
        return Version(tuple(self.unpack(_U64)[0] for _ in range(n)))

    def read_range(self) -> VersionRange:
        (tag,) = self.unpack(_U8)
        if tag >= len(RANGE_OPS):
            raise CacheDecodeError(f"Unknown version range tag {tag}")
        op = RANGE_OPS[tag]
        if op in ("any", "none"):
            return VersionRange(op)
        if op in ("||", "&&"):
            left = self.read_range()
            return VersionRange(op, left=left, right=self.read_range())
        return VersionRange(op, self.read_version())
