"""
Exceptions raised while reading the index and building metadata.
"""
from __future__ import annotations

from typing import Sequence


class HackageIndexError(Exception):
    """Base class for all index metadata errors."""


class InvalidIndexFile(HackageIndexError):
    """
    Raised when an index entry is not a ``.cabal``, ``package.json`` or
    ``preferred-versions`` file.
    """

    def __init__(self, path: str, segments: Sequence[str]):
        self.path = path
        self.segments = list(segments)
        super().__init__(f"Unrecognised index file {path!r}: {self.segments}")


class ArchiveFormatError(HackageIndexError):
    """Raised when the index archive is truncated or corrupt."""

    def __init__(self, path: str, message: str):
        self.path = path
        self.message = message
        super().__init__(f"Malformed index archive {path}: {message}")


class MetadataParseError(HackageIndexError):
    """Raised when a ``package.json`` or ``preferred-versions`` file cannot be parsed."""

    def __init__(self, path: str, message: str):
        self.path = path
        self.message = message
        super().__init__(f"{path}: {message}")


class ManifestJSONError(MetadataParseError):
    pass


class RangeParseError(MetadataParseError):
    pass


class InvalidHash(HackageIndexError):
    """
    Raised by the consistency check when a release is missing the hash of
    its ``.cabal`` file or of its tarball.
    """

    def __init__(self, package: str, version: object, kind: str):
        self.package = package
        self.version = version
        self.kind = kind
        super().__init__(f"Invalid {kind} hash for {package}-{version}")


class NoRepositoryConfigured(HackageIndexError):
    def __init__(self, repository: str):
        self.repository = repository
        super().__init__(f"Repository {repository!r} is not configured")
