"""
Configuration: where repository indexes live and where the cache is kept.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional

import platformdirs
import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

APP_NAME = "cabal-parsers"
HACKAGE_HASKELL_ORG = "hackage.haskell.org"
INDEX_FILE_NAME = "01-index.tar"
CACHE_FILE_NAME = "hackage.binary"

CONFIG_ENV_VAR = "HACKAGE_INDEX_CONFIG"
CACHE_DIR_ENV_VAR = "HACKAGE_INDEX_CACHE_DIR"


class RepositoryEntry(BaseModel):
    name: str
    url: str


class IndexConfig(BaseModel):
    """
    Repositories known to this machine and their local index cache.
    Persisted at: <user config dir>/cabal-parsers/config.yaml
    """

    remote_repo_cache: Path = Field(
        default_factory=lambda: Path.home() / ".cabal" / "packages",
        description="Directory holding one subdirectory per downloaded repository.",
    )
    repositories: List[RepositoryEntry] = Field(
        default_factory=lambda: [
            RepositoryEntry(name=HACKAGE_HASKELL_ORG, url="https://hackage.haskell.org/")
        ],
        description="Configured package repositories.",
    )

    def get_repository(self, name: str) -> Optional[RepositoryEntry]:
        for repo in self.repositories:
            if repo.name == name:
                return repo
        return None

    def repo_index(self, name: str) -> Optional[Path]:
        """
        Path of the ``01-index.tar`` of repository ``name``, or None if that
        repository is not configured.
        """
        if self.get_repository(name) is None:
            return None
        return Path(self.remote_repo_cache).expanduser() / name / INDEX_FILE_NAME


def get_config_path() -> Path:
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()
    return Path(platformdirs.user_config_dir(APP_NAME)) / "config.yaml"


def load_config(path: Optional[Path] = None) -> IndexConfig:
    """
    Load the YAML configuration, falling back to defaults if it does not exist.
    """
    config_path = path or get_config_path()
    if not config_path.exists():
        logger.debug(f"No configuration at {config_path}, using defaults")
        return IndexConfig()

    logger.debug(f"Loading configuration from {config_path}")
    data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    return IndexConfig.model_validate(data)


def get_cache_dir() -> Path:
    """
    Determine the cache directory.

    Priority:
    1. Environment variable HACKAGE_INDEX_CACHE_DIR
    2. The platform cache directory (XDG_CACHE_HOME on Linux)
    """
    env_path = os.environ.get(CACHE_DIR_ENV_VAR)
    if env_path:
        d = Path(env_path).expanduser()
    else:
        d = Path(platformdirs.user_cache_dir(APP_NAME))
    d.mkdir(parents=True, exist_ok=True)
    return d
