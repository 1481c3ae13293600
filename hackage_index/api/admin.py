from __future__ import annotations

import logging

import httpx
from fastapi import APIRouter, Depends, HTTPException

from hackage_index.core.config import IndexConfig
from hackage_index.core.dependencies import get_config, get_metadata_cache, get_repository_name
from hackage_index.services.caching import MetadataCache, refresh_hackage_metadata

logger = logging.getLogger(__name__)
router = APIRouter()


# ---------------------------------------------------------------------------
# POST /admin/refresh
# ---------------------------------------------------------------------------

@router.post("/admin/refresh")
async def refresh_index(
    repository: str = Depends(get_repository_name),
    config: IndexConfig = Depends(get_config),
    cache: MetadataCache = Depends(get_metadata_cache),
) -> dict:
    """
    Download the repository index again and rebuild the metadata cache.
    """
    try:
        meta = await refresh_hackage_metadata(
            repository, config, cache_dir=cache.cache_dir, locker=cache.locker
        )
    except httpx.HTTPError as e:
        logger.error(f"Index refresh for {repository} failed: {e}")
        raise HTTPException(status_code=502, detail=f"Could not download index: {e}")
    logger.info(f"Refreshed {repository}: {len(meta)} packages")
    return {"repository": repository, "packages": len(meta)}
