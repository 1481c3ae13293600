import os
from typing import Optional

from hackage_index.core.config import HACKAGE_HASKELL_ORG, IndexConfig, get_cache_dir, load_config
from hackage_index.domain.errors import NoRepositoryConfigured
from hackage_index.domain.models import HackageMetadata
from hackage_index.services.caching import MetadataCache

REPOSITORY_ENV_VAR = "HACKAGE_INDEX_REPOSITORY"

_config: Optional[IndexConfig] = None
_metadata_cache: Optional[MetadataCache] = None

def get_repository_name() -> str:
    return os.environ.get(REPOSITORY_ENV_VAR) or HACKAGE_HASKELL_ORG

def get_config() -> IndexConfig:
    global _config
    if _config is None:
        _config = load_config()
    return _config

def get_metadata_cache() -> MetadataCache:
    global _metadata_cache
    if _metadata_cache is None:
        _metadata_cache = MetadataCache(get_cache_dir())
    return _metadata_cache

def get_metadata() -> HackageMetadata:
    repository = get_repository_name()
    index_path = get_config().repo_index(repository)
    if index_path is None:
        raise NoRepositoryConfigured(repository)
    return get_metadata_cache().get_metadata(index_path)
