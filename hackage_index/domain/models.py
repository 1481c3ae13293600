from __future__ import annotations

from typing import Dict, Union

from pydantic import BaseModel, ConfigDict, Field

from hackage_index.domain.hashes import EMPTY_SHA256, SHA256
from hackage_index.domain.versions import ANY_VERSION, Version, VersionRange


class ReleaseInfo(BaseModel):
    """
    What the index says about one release of a package.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    revision: int = Field(default=0, ge=0, description="Revision number of the .cabal file.")
    cabal_hash: SHA256 = Field(
        default=EMPTY_SHA256,
        description="Hash of the last revision of the .cabal file.",
    )
    tarball_hash: SHA256 = Field(
        default=EMPTY_SHA256,
        description="Hash of the source .tar.gz, taken from package.json.",
    )


class PackageInfo(BaseModel):
    """
    All releases of a single package plus its preferred version range.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    versions: Dict[Version, ReleaseInfo] = Field(default_factory=dict)
    preferred: VersionRange = Field(
        default=ANY_VERSION,
        description="Range from the package's preferred-versions file.",
    )

    def preferred_versions(self) -> Dict[Version, ReleaseInfo]:
        """
        Like ``versions``, but only the releases within ``preferred``.
        """
        return {v: ri for v, ri in self.versions.items() if self.preferred.contains(v)}


# ---------------------------------------------------------------------------
# Index files
# ---------------------------------------------------------------------------

class ManifestFile(BaseModel):
    """``<pkg>/<ver>/<pkg>.cabal``"""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    package: str
    version: Version


class SignedTargets(BaseModel):
    """``<pkg>/<ver>/package.json``"""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    package: str
    version: Version


class PreferredVersions(BaseModel):
    """``<pkg>/preferred-versions``"""

    model_config = ConfigDict(frozen=True)

    package: str


IndexFileType = Union[ManifestFile, SignedTargets, PreferredVersions]


class Ownership(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_name: str = ""
    group_name: str = ""
    user_id: int = 0
    group_id: int = 0


class IndexEntry(BaseModel):
    """
    Metadata of one regular file in the index archive.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    path: str
    type: IndexFileType
    permissions: int = 0o644
    ownership: Ownership = Field(default_factory=Ownership)
    time: int = Field(description="Modification time in POSIX seconds.")


HackageMetadata = Dict[str, PackageInfo]
