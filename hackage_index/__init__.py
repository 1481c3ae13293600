"""
Release metadata extracted from a package repository's ``01-index.tar``.

The index lists every revision of every ``.cabal`` file, the signed
``package.json`` with each release tarball's hashes, and each package's
``preferred-versions``. This package folds it into a map from package name
to ``PackageInfo`` and caches the result on disk.
"""
from hackage_index.data.index_file import classify
from hackage_index.data.index_reader import IndexReader, fold_index
from hackage_index.data.metadata import build_metadata, check_consistency, index_metadata
from hackage_index.domain.errors import (
    ArchiveFormatError,
    HackageIndexError,
    InvalidHash,
    InvalidIndexFile,
    ManifestJSONError,
    MetadataParseError,
    NoRepositoryConfigured,
    RangeParseError,
)
from hackage_index.domain.hashes import MD5, SHA256, sha256
from hackage_index.domain.models import (
    HackageMetadata,
    IndexEntry,
    ManifestFile,
    PackageInfo,
    PreferredVersions,
    ReleaseInfo,
    SignedTargets,
)
from hackage_index.domain.versions import Version, VersionRange, parse_package_name
from hackage_index.services.caching import MetadataCache, cached_hackage_metadata, refresh_hackage_metadata
from hackage_index.services.index_downloader import download_index, update_repository_index

__all__ = [
    "ArchiveFormatError",
    "HackageIndexError",
    "HackageMetadata",
    "IndexEntry",
    "IndexReader",
    "InvalidHash",
    "InvalidIndexFile",
    "MD5",
    "ManifestFile",
    "ManifestJSONError",
    "MetadataCache",
    "MetadataParseError",
    "NoRepositoryConfigured",
    "PackageInfo",
    "PreferredVersions",
    "RangeParseError",
    "ReleaseInfo",
    "SHA256",
    "SignedTargets",
    "Version",
    "VersionRange",
    "build_metadata",
    "cached_hackage_metadata",
    "check_consistency",
    "classify",
    "download_index",
    "fold_index",
    "index_metadata",
    "parse_package_name",
    "refresh_hackage_metadata",
    "sha256",
    "update_repository_index",
]
