"""
Disk cache for index metadata.

Scanning a full index takes seconds; the cache file lets repeated calls skip
the scan as long as the index file keeps the same size and modification time.

This service handles:
- Checking the cache file against the current index file
- Rebuilding and consistency-checking metadata when the cache is stale
- Replacing the cache file without exposing half-written data
- Serialising refreshes between processes with a lock in the cache directory
- Downloading a fresh index and rebuilding the cache from it
"""
from __future__ import annotations

import asyncio
import logging
import tempfile
from pathlib import Path
from typing import Callable, Optional, Tuple

import httpx

from hackage_index.core.config import (
    CACHE_FILE_NAME,
    HACKAGE_HASKELL_ORG,
    IndexConfig,
    get_cache_dir,
    load_config,
)
from hackage_index.data.metadata import build_metadata, check_consistency
from hackage_index.domain.errors import HackageIndexError, NoRepositoryConfigured
from hackage_index.domain.models import HackageMetadata
from hackage_index.services.index_downloader import update_repository_index
from hackage_index.storage.cache_file import (
    CacheDecodeError,
    CacheRecord,
    decode_cache,
    encode_cache,
)
from hackage_index.storage.locking import Locker, default_locker

logger = logging.getLogger(__name__)

MetadataBuilder = Callable[[Path], HackageMetadata]


class MetadataCache:
    """
    Metadata of one index file, cached in ``cache_dir``.
    """

    def __init__(
        self,
        cache_dir: Path,
        locker: Optional[Locker] = None,
        builder: MetadataBuilder = build_metadata,
    ):
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.cache_file = self.cache_dir / CACHE_FILE_NAME
        self.locker = locker if locker is not None else default_locker()
        self.builder = builder

    def get_metadata(self, index_path: Path) -> HackageMetadata:
        """
        Return metadata for ``index_path``, from the cache when it is fresh.

        The lock is held for the whole check-rebuild-write sequence, which may
        include a full scan of the index.
        """
        index_path = Path(index_path)
        with self.locker.hold(self.cache_dir):
            size, time = self._stat(index_path)

            record = self._read_cache()
            if record is not None and record.size == size and record.time == time:
                logger.info(f"Using cached metadata from {self.cache_file}")
                return record.data

            logger.info(f"Cache for {index_path} is missing or stale, rebuilding")
            try:
                meta = self.builder(index_path)
                check_consistency(meta)
            except HackageIndexError as e:
                logger.error(f"Failed to build metadata from {index_path}: {e}", exc_info=True)
                raise

            self._write_cache(CacheRecord(size=size, time=time, data=meta))
            return meta

    def _stat(self, index_path: Path) -> Tuple[int, int]:
        st = index_path.stat()
        return st.st_size, int(st.st_mtime)

    def _read_cache(self) -> Optional[CacheRecord]:
        try:
            data = self.cache_file.read_bytes()
        except FileNotFoundError:
            logger.debug(f"No cache file at {self.cache_file}")
            return None
        except OSError as e:
            logger.warning(f"Could not read cache file {self.cache_file}: {e}")
            return None

        try:
            return decode_cache(data)
        except CacheDecodeError as e:
            logger.warning(f"Ignoring unusable cache file {self.cache_file}: {e}")
            return None

    def _write_cache(self, record: CacheRecord) -> None:
        # Readers only ever see a complete file; each writer has its own temp file.
        data = encode_cache(record)
        with tempfile.NamedTemporaryFile(
            dir=self.cache_dir, prefix=self.cache_file.name + ".", suffix=".tmp", delete=False
        ) as f:
            tmp_path = Path(f.name)
        try:
            tmp_path.write_bytes(data)
            tmp_path.replace(self.cache_file)
        except Exception:
            tmp_path.unlink(missing_ok=True)
            raise
        logger.debug(f"Wrote cache file {self.cache_file}")


def cached_hackage_metadata(
    repository: str = HACKAGE_HASKELL_ORG,
    config: Optional[IndexConfig] = None,
    cache_dir: Optional[Path] = None,
    locker: Optional[Locker] = None,
) -> HackageMetadata:
    """
    Read the configuration and then the repository's index metadata.

    The result is cached in the ``cabal-parsers`` user cache directory.
    """
    config = config or load_config()
    index_path = config.repo_index(repository)
    if index_path is None:
        raise NoRepositoryConfigured(repository)

    cache = MetadataCache(cache_dir or get_cache_dir(), locker=locker)
    return cache.get_metadata(index_path)


async def refresh_hackage_metadata(
    repository: str = HACKAGE_HASKELL_ORG,
    config: Optional[IndexConfig] = None,
    cache_dir: Optional[Path] = None,
    locker: Optional[Locker] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> HackageMetadata:
    """
    Download the repository's index again and rebuild its cached metadata.

    The index file only changes once the download is complete, so a failed
    download leaves both the old index and its cache in place.
    """
    config = config or load_config()
    index_path = await update_repository_index(repository, config, transport=transport)
    cache = MetadataCache(cache_dir or get_cache_dir(), locker=locker)
    return await asyncio.to_thread(cache.get_metadata, index_path)
