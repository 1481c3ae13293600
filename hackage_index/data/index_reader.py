"""
Sequential reader for a repository ``01-index.tar`` archive.
"""
from __future__ import annotations

import logging
import tarfile
from pathlib import Path
from typing import Callable, Iterator, Optional, Tuple, TypeVar

from hackage_index.data.index_file import classify
from hackage_index.domain.errors import ArchiveFormatError
from hackage_index.domain.models import IndexEntry, Ownership

logger = logging.getLogger(__name__)

A = TypeVar("A")


class IndexReader:
    """
    Streams the regular files of an index archive in archive order.

    The archive is read in a single pass; directories and other entry kinds
    (links, devices) are skipped.
    """

    def __init__(self, index_path: Path):
        self.index_path = Path(index_path)
        self.tar: Optional[tarfile.TarFile] = None

    def open(self):
        """Open the archive for streaming."""
        if self.tar is None:
            logger.debug(f"Opening index archive: {self.index_path}")
            try:
                self.tar = tarfile.open(self.index_path, mode="r|")
            except tarfile.TarError as e:
                raise ArchiveFormatError(str(self.index_path), str(e)) from e

    def close(self):
        if self.tar:
            self.tar.close()
            self.tar = None

    def entries(self) -> Iterator[Tuple[IndexEntry, bytes]]:
        """
        Yield each regular file as an ``IndexEntry`` with its contents.

        Raises ArchiveFormatError on a corrupt or truncated archive and
        InvalidIndexFile on a path that is not a known index file.
        """
        self.open()
        count = 0
        try:
            for member in self.tar:
                if not member.isfile():
                    continue
                index_type = classify(member.name)
                fileobj = self.tar.extractfile(member)
                contents = fileobj.read() if fileobj is not None else b""
                entry = IndexEntry(
                    path=member.name,
                    type=index_type,
                    permissions=member.mode,
                    ownership=Ownership(
                        user_name=member.uname,
                        group_name=member.gname,
                        user_id=member.uid,
                        group_id=member.gid,
                    ),
                    time=int(member.mtime),
                )
                count += 1
                yield entry, contents
        except tarfile.TarError as e:
            raise ArchiveFormatError(str(self.index_path), str(e)) from e
        # In stream mode tarfile stops quietly at any unreadable header after
        # the first one, so the end-of-archive marker is checked by hand.
        self._check_end_of_archive(self.tar.offset)
        logger.debug(f"Read {count} index files from {self.index_path}")

    def _check_end_of_archive(self, offset: int) -> None:
        """
        Require only zero blocks, at least two of them, from ``offset`` on.
        """
        trailer = 0
        with open(self.index_path, "rb") as f:
            f.seek(offset)
            while True:
                chunk = f.read(tarfile.RECORDSIZE)
                if not chunk:
                    break
                if chunk.strip(b"\0"):
                    raise ArchiveFormatError(
                        str(self.index_path),
                        f"invalid or corrupt header at offset {offset + trailer}",
                    )
                trailer += len(chunk)
        if trailer < 2 * tarfile.BLOCKSIZE:
            raise ArchiveFormatError(
                str(self.index_path),
                f"archive is truncated at offset {offset}, no end-of-archive marker",
            )

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def fold_index(
    index_path: Path,
    initial: A,
    step: Callable[[IndexEntry, bytes, A], A],
) -> A:
    """
    Fold ``step`` over every index file of the archive.

    The first error raised by the archive, the classifier or ``step`` aborts
    the fold; no partial result is returned.
    """
    acc = initial
    with IndexReader(index_path) as reader:
        for entry, contents in reader.entries():
            acc = step(entry, contents, acc)
    return acc
