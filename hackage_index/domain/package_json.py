"""
Models for the ``package.json`` files of the index (signed TUF targets).

Example document::

    {
      "signatures": [],
      "signed": {
        "_type": "Targets",
        "expires": null,
        "targets": {
          "<repo>/package/gruff-0.2.1.tar.gz": {
            "hashes": {
              "md5": "f551ecaf18e8ec807a9f0f5b69c7ed5a",
              "sha256": "727408b14173594bbe88dad4240cb884063a784b74afaeaad5fb56c9f042afbd"
            },
            "length": 75691
          }
        },
        "version": 0
      }
    }
"""
from __future__ import annotations

from typing import Any, Dict, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from hackage_index.domain.errors import ManifestJSONError
from hackage_index.domain.hashes import MD5, SHA256
from hackage_index.domain.versions import Version


class Hashes(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    md5: MD5
    sha256: SHA256

    @field_validator("md5", mode="before")
    @classmethod
    def _decode_md5(cls, value: Any) -> MD5:
        if isinstance(value, MD5):
            return value
        return MD5.from_hex(value)

    @field_validator("sha256", mode="before")
    @classmethod
    def _decode_sha256(cls, value: Any) -> SHA256:
        if isinstance(value, SHA256):
            return value
        return SHA256.from_hex(value)


class Target(BaseModel):
    length: int = Field(ge=0)
    hashes: Hashes


class Targets(BaseModel):
    type: Literal["Targets"] = Field(alias="_type")
    # Index targets never expire; anything other than an explicit null is rejected.
    expires: None
    targets: Dict[str, Target]


class PackageJson(BaseModel):
    signed: Targets


def target_key(package: str, version: Version) -> str:
    return f"<repo>/package/{package}-{version}.tar.gz"


def tarball_sha256(content: bytes, package: str, version: Version, path: str) -> SHA256:
    """
    Decode a ``package.json`` file and return the SHA256 of the release
    tarball it signs.

    Raises ManifestJSONError if the document is malformed or does not list
    the tarball of ``package``-``version``.
    """
    try:
        document = PackageJson.model_validate_json(content)
    except ValidationError as e:
        raise ManifestJSONError(path, str(e)) from e

    key = target_key(package, version)
    target = document.signed.targets.get(key)
    if target is None:
        raise ManifestJSONError(
            path,
            f"Invalid targets in {path}: expected {key!r}, "
            f"found {sorted(document.signed.targets)}",
        )
    return target.hashes.sha256
