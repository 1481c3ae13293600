"""
Fold an index archive into per-package release metadata.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from hackage_index.data.index_reader import fold_index
from hackage_index.domain.errors import InvalidHash, RangeParseError
from hackage_index.domain.hashes import EMPTY_SHA256, SHA256, sha256
from hackage_index.domain.models import (
    HackageMetadata,
    IndexEntry,
    ManifestFile,
    PackageInfo,
    PreferredVersions,
    ReleaseInfo,
    SignedTargets,
)
from hackage_index.domain.package_json import tarball_sha256
from hackage_index.domain.versions import Version, parse_preferred_versions

logger = logging.getLogger(__name__)


def build_metadata(index_path: Path, cutoff: Optional[int] = None) -> HackageMetadata:
    """
    Read the index archive and return metadata about every package.

    Args:
        index_path: Location of the ``01-index.tar`` file.
        cutoff: Optional POSIX timestamp; entries newer than it are ignored,
            which reconstructs the index as it was at that time.

    Scanning the full Hackage index takes several seconds. Consider using
    ``MetadataCache`` instead.
    """
    logger.info(f"Building metadata from {index_path}")

    def step(entry: IndexEntry, contents: bytes, meta: HackageMetadata) -> HackageMetadata:
        if cutoff is not None and entry.time > cutoff:
            return meta
        add_index_file(meta, entry, contents)
        return meta

    meta = fold_index(index_path, {}, step)
    logger.debug(f"Collected metadata for {len(meta)} packages")
    return meta


def add_index_file(meta: HackageMetadata, entry: IndexEntry, contents: bytes) -> None:
    """
    Merge one index file into ``meta`` in place.
    """
    index_type = entry.type

    if isinstance(index_type, ManifestFile):
        _add_cabal_file(meta, index_type.package, index_type.version, sha256(contents))

    elif isinstance(index_type, SignedTargets):
        tarball = tarball_sha256(contents, index_type.package, index_type.version, entry.path)
        _add_tarball_hash(meta, index_type.package, index_type.version, tarball)

    elif isinstance(index_type, PreferredVersions):
        if not contents:
            return
        pn = index_type.package
        try:
            preferred = parse_preferred_versions(pn, contents.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            raise RangeParseError(entry.path, str(e)) from e
        _package(meta, pn).preferred = preferred


def _package(meta: HackageMetadata, pn: str) -> PackageInfo:
    pi = meta.get(pn)
    if pi is None:
        pi = meta[pn] = PackageInfo()
    return pi


def _add_cabal_file(meta: HackageMetadata, pn: str, ver: Version, cabal_hash: SHA256) -> None:
    versions = _package(meta, pn).versions
    ri = versions.get(ver)
    if ri is None:
        versions[ver] = ReleaseInfo(revision=0, cabal_hash=cabal_hash, tarball_hash=EMPTY_SHA256)
    elif ri.revision == 0 and not ri.cabal_hash.is_valid():
        # Placeholder created by package.json; this is the first .cabal file.
        ri.cabal_hash = cabal_hash
    else:
        ri.revision += 1
        ri.cabal_hash = cabal_hash


def _add_tarball_hash(meta: HackageMetadata, pn: str, ver: Version, tarball_hash: SHA256) -> None:
    versions = _package(meta, pn).versions
    ri = versions.get(ver)
    if ri is None:
        versions[ver] = ReleaseInfo(revision=0, cabal_hash=EMPTY_SHA256, tarball_hash=tarball_hash)
    else:
        ri.tarball_hash = tarball_hash


def check_consistency(meta: HackageMetadata) -> None:
    """
    Ensure every release has both its .cabal and tarball hash.

    Raises InvalidHash for the first release missing one of them.
    """
    for pn, pi in meta.items():
        for ver, ri in pi.versions.items():
            if not ri.cabal_hash.is_valid():
                raise InvalidHash(pn, ver, "cabal")
            if not ri.tarball_hash.is_valid():
                raise InvalidHash(pn, ver, "tarball")


def index_metadata(index_path: Path, cutoff: Optional[int] = None) -> HackageMetadata:
    """
    Read the index and return consistency-checked metadata.
    """
    meta = build_metadata(index_path, cutoff)
    check_consistency(meta)
    return meta
