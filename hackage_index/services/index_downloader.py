"""
Download a repository's ``01-index.tar``.
"""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

import aiofiles
import httpx

from hackage_index.core.config import HACKAGE_HASKELL_ORG, INDEX_FILE_NAME, IndexConfig, load_config
from hackage_index.domain.errors import NoRepositoryConfigured

logger = logging.getLogger(__name__)

DOWNLOAD_ATTEMPTS = 3


def index_url(repository_url: str) -> str:
    return f"{repository_url.rstrip('/')}/{INDEX_FILE_NAME}"


async def download_index(
    url: str,
    destination: Path,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    retry_delay: float = 1.0,
) -> Path:
    """
    Download the index archive at ``url`` to ``destination``.

    Args:
        url: URL of the ``01-index.tar`` file
        destination: Where the archive should end up
        transport: Optional httpx transport (used by tests)
        retry_delay: Base delay between attempts, multiplied by the attempt number

    Returns:
        Path to the downloaded index
    """
    destination = Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = destination.with_name(destination.name + ".tmp")

    for attempt in range(1, DOWNLOAD_ATTEMPTS + 1):
        try:
            logger.info(f"Downloading {url}...")
            async with httpx.AsyncClient(
                follow_redirects=True, timeout=60.0, transport=transport
            ) as client:
                async with client.stream("GET", url) as response:
                    response.raise_for_status()

                    total_size = int(response.headers.get("content-length", 0))
                    downloaded = 0

                    async with aiofiles.open(tmp_path, "wb") as f:
                        async for chunk in response.aiter_bytes():
                            await f.write(chunk)
                            downloaded += len(chunk)
                            if total_size > 0:
                                percent = (downloaded / total_size) * 100
                                logger.debug(f"Progress: {percent:.1f}%")
            break
        except httpx.HTTPError as e:
            tmp_path.unlink(missing_ok=True)
            if attempt < DOWNLOAD_ATTEMPTS:
                logger.warning(f"Download failed (attempt {attempt}/{DOWNLOAD_ATTEMPTS}): {e}. Retrying...")
                await asyncio.sleep(retry_delay * attempt)
            else:
                logger.error(f"Failed to download {url}: {e}")
                raise

    # Only replace the index once the whole file has arrived.
    tmp_path.replace(destination)
    logger.info(f"Index downloaded to: {destination}")
    return destination


async def update_repository_index(
    repository: str = HACKAGE_HASKELL_ORG,
    config: Optional[IndexConfig] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Path:
    """
    Refresh the local index of a configured repository.
    """
    config = config or load_config()
    repo = config.get_repository(repository)
    destination = config.repo_index(repository)
    if repo is None or destination is None:
        raise NoRepositoryConfigured(repository)
    return await download_index(index_url(repo.url), destination, transport=transport)
