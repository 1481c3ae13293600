"""
Classify paths of the index archive into the kinds of files it contains.
"""
from __future__ import annotations

from pathlib import PurePosixPath

from hackage_index.domain.errors import InvalidIndexFile
from hackage_index.domain.models import (
    IndexFileType,
    ManifestFile,
    PreferredVersions,
    SignedTargets,
)
from hackage_index.domain.versions import Version, is_package_name


def classify(path: str) -> IndexFileType:
    """
    Map an archive path to its index file type.

    Raises InvalidIndexFile for anything that is not
    ``<pkg>/<ver>/<pkg>.cabal``, ``<pkg>/<ver>/package.json`` or
    ``<pkg>/preferred-versions``.
    """
    segments = PurePosixPath(path).parts

    if len(segments) == 3:
        pn, ver, filename = segments
        version = Version.try_parse(ver)
        if is_package_name(pn) and version is not None:
            if filename == pn + ".cabal":
                return ManifestFile(package=pn, version=version)
            if filename == "package.json":
                return SignedTargets(package=pn, version=version)

    elif len(segments) == 2:
        pn, filename = segments
        if is_package_name(pn) and filename == "preferred-versions":
            return PreferredVersions(package=pn)

    raise InvalidIndexFile(path, segments)
