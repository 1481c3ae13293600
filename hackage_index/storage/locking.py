"""
Cross-process locking of the cache directory.

A locker is chosen once (``default_locker``) and handed to the cache
service. ``FileLocker`` takes an OS advisory lock through :mod:`filelock`,
which the kernel drops if the holder dies. Where only filelock's soft
(marker file) lock is available a crashed holder would leave the lock
behind, so ``NullLocker`` is used instead and concurrent rebuilds race:
the last writer wins.
"""
from __future__ import annotations

import contextlib
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import ContextManager, Iterator, Optional

from filelock import FileLock, SoftFileLock

logger = logging.getLogger(__name__)
logging.getLogger("filelock").setLevel(logging.INFO)

LOCK_FILE_NAME = "lock"


class Locker(ABC):
    """
    Serialises cache refreshes between processes sharing ``cache_dir``.
    """

    supported: bool = False

    @abstractmethod
    def hold(self, cache_dir: Path) -> ContextManager[None]:
        """Hold the lock of ``cache_dir`` for the duration of the ``with`` block."""
        pass


class FileLocker(Locker):
    supported = True

    def __init__(self, timeout: Optional[float] = None):
        # None waits indefinitely; a rebuild can hold the lock for a full scan.
        self.timeout = -1 if timeout is None else timeout

    @contextlib.contextmanager
    def hold(self, cache_dir: Path) -> Iterator[None]:
        lock_path = Path(cache_dir) / LOCK_FILE_NAME
        logger.debug(f"Acquiring cache lock {lock_path}")
        with FileLock(str(lock_path), timeout=self.timeout):
            yield
        logger.debug(f"Released cache lock {lock_path}")


class NullLocker(Locker):
    @contextlib.contextmanager
    def hold(self, cache_dir: Path) -> Iterator[None]:
        yield


def default_locker() -> Locker:
    """
    Pick the locker for this platform.
    """
    if FileLock is SoftFileLock:
        logger.warning(
            "File locking is not supported on this platform; "
            "concurrent cache refreshes will not be serialised"
        )
        return NullLocker()
    return FileLocker()
