from __future__ import annotations

from typing import Dict
import logging

from fastapi import APIRouter, Depends, HTTPException

from hackage_index.core.dependencies import get_metadata
from hackage_index.domain.models import HackageMetadata, PackageInfo, ReleaseInfo
from hackage_index.domain.versions import Version, parse_package_name

logger = logging.getLogger(__name__)
router = APIRouter()


def _release_to_dict(version: Version, ri: ReleaseInfo, preferred: bool) -> dict:
    return {
        "version": str(version),
        "revision": ri.revision,
        "cabal_sha256": ri.cabal_hash.hex(),
        "tarball_sha256": ri.tarball_hash.hex(),
        "preferred": preferred,
    }


def _package_to_dict(name: str, pi: PackageInfo, releases: Dict[Version, ReleaseInfo]) -> dict:
    return {
        "name": name,
        "preferred": str(pi.preferred),
        "versions": [
            _release_to_dict(v, releases[v], pi.preferred.contains(v))
            for v in sorted(releases)
        ],
    }


def _lookup(meta: HackageMetadata, name: str) -> PackageInfo:
    try:
        name = parse_package_name(name)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    pi = meta.get(name)
    if pi is None:
        raise HTTPException(status_code=404, detail="Package not found")
    return pi


# ---------------------------------------------------------------------------
# 1. GET /packages
# ---------------------------------------------------------------------------

@router.get("/packages")
async def list_packages(meta: HackageMetadata = Depends(get_metadata)) -> dict:
    """
    Names of all packages in the index.
    """
    return {"packages": sorted(meta)}


# ---------------------------------------------------------------------------
# 2. GET /packages/{name}
# ---------------------------------------------------------------------------

@router.get("/packages/{name}")
async def get_package(name: str, meta: HackageMetadata = Depends(get_metadata)) -> dict:
    """
    Every release of a package with its revision and hashes.
    """
    pi = _lookup(meta, name)
    return _package_to_dict(name, pi, pi.versions)


# ---------------------------------------------------------------------------
# 3. GET /packages/{name}/preferred
# ---------------------------------------------------------------------------

@router.get("/packages/{name}/preferred")
async def get_preferred_versions(name: str, meta: HackageMetadata = Depends(get_metadata)) -> dict:
    """
    Only the releases within the package's preferred version range.
    """
    pi = _lookup(meta, name)
    return _package_to_dict(name, pi, pi.preferred_versions())
