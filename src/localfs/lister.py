"""Lazy enumeration of directory children."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterator

from localfs.bridge import BlockingBridge, BridgedIterator
from localfs.errors import map_os_error
from localfs.metadata import metadata_from_stat
from localfs.paths import PathResolver
from localfs.types import ListEntry

logger = logging.getLogger(__name__)

__all__ = ["DirLister", "EntryStream"]


class DirLister:
    """Blocking, single-pass enumeration of one directory.

    Owns the native directory handle. Each step stats one child so that the
    reported metadata reflects the entry at the time it is produced.
    """

    def __init__(self, path: Path, resolver: PathResolver, entries: Iterator[os.DirEntry]) -> None:
        self.path = path
        self._resolver = resolver
        self._entries = entries
        self._closed = False

    @classmethod
    def open(cls, path: Path, resolver: PathResolver) -> DirLister:
        """Open a directory for enumeration.

        Raises:
            StorageError: NOT_FOUND if absent, NOT_A_DIRECTORY for files.
        """
        with map_os_error("list", path):
            entries = os.scandir(path)
        return cls(path, resolver, entries)

    @property
    def closed(self) -> bool:
        return self._closed

    def next_entry(self) -> ListEntry | None:
        """Produce the next child, or None once the directory is exhausted."""
        while not self._closed:
            with map_os_error("list", self.path):
                dir_entry = next(self._entries, None)
            if dir_entry is None:
                self.close()
                return None
            entry = self._to_entry(dir_entry)
            if entry is not None:
                return entry
        return None

    def _to_entry(self, dir_entry: os.DirEntry) -> ListEntry | None:
        with map_os_error("list", dir_entry.path):
            try:
                st = dir_entry.stat()
            except FileNotFoundError:
                # Dangling symlink, or the child vanished after enumeration.
                try:
                    st = dir_entry.stat(follow_symlinks=False)
                except FileNotFoundError:
                    logger.debug("Skipping vanished entry %s", dir_entry.path)
                    return None

        metadata = metadata_from_stat(st)
        path = self._resolver.relative(Path(dir_entry.path), is_dir=metadata.is_dir)
        return ListEntry(path=path, metadata=metadata)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        close = getattr(self._entries, "close", None)
        if close is not None:
            close()

    def entries(self) -> Iterator[ListEntry]:
        """Yield remaining children, closing the handle on every exit path."""
        try:
            while True:
                entry = self.next_entry()
                if entry is None:
                    return
                yield entry
        finally:
            self.close()

    def __enter__(self) -> DirLister:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class EntryStream(BridgedIterator[ListEntry]):
    """Async stream of directory entries produced through the blocking bridge."""

    def __init__(self, lister: DirLister, bridge: BlockingBridge) -> None:
        super().__init__(bridge, lister.next_entry, lister.close)
        self.path = lister.path

    async def collect(self) -> list[ListEntry]:
        """Consume the stream into a list."""
        return [entry async for entry in self]
