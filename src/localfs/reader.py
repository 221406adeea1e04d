"""Streamed reads of local files."""

from __future__ import annotations

import os
import stat as stat_mod
from pathlib import Path
from typing import BinaryIO, Iterator

from localfs.bridge import BlockingBridge, BridgedIterator
from localfs.errors import ErrorKind, StorageError, map_os_error
from localfs.types import ReadRange

__all__ = ["ByteStream", "FileReader"]


class FileReader:
    """Blocking reader over an open file, limited to an optional range.

    Owns the file handle. Use ``open`` to construct.
    """

    def __init__(
        self,
        path: Path,
        handle: BinaryIO,
        remaining: int | None,
        chunk_size: int,
    ) -> None:
        self.path = path
        self._handle = handle
        self._remaining = remaining
        self._chunk_size = chunk_size

    @classmethod
    def open(
        cls,
        path: Path,
        byte_range: ReadRange | None = None,
        chunk_size: int = 64 * 1024,
    ) -> FileReader:
        """Open a file for reading and position it at the range start.

        Args:
            path: Resolved native path.
            byte_range: Optional range. None reads the whole file.
            chunk_size: Maximum size of each chunk.

        Returns:
            FileReader owning the open handle.

        Raises:
            StorageError: NOT_FOUND if absent, IS_A_DIRECTORY for directories,
                or the mapped native error.
        """
        byte_range = byte_range or ReadRange()
        with map_os_error("read", path):
            handle = open(path, "rb")
        try:
            with map_os_error("read", path):
                if stat_mod.S_ISDIR(os.fstat(handle.fileno()).st_mode):
                    raise StorageError(
                        ErrorKind.IS_A_DIRECTORY, "read", path, "cannot read a directory"
                    )
                if byte_range.offset:
                    handle.seek(byte_range.offset)
        except BaseException:
            handle.close()
            raise
        return cls(path, handle, byte_range.length, chunk_size)

    @property
    def closed(self) -> bool:
        return self._handle.closed

    def read_chunk(self) -> bytes | None:
        """Read the next chunk.

        Returns:
            Up to chunk_size bytes, or None at end of range or end of file.
        """
        if self._handle.closed:
            return None
        size = self._chunk_size
        if self._remaining is not None:
            if self._remaining <= 0:
                return None
            size = min(size, self._remaining)

        with map_os_error("read", self.path):
            data = self._handle.read(size)
        if not data:
            return None
        if self._remaining is not None:
            self._remaining -= len(data)
        return data

    def close(self) -> None:
        self._handle.close()

    def chunks(self) -> Iterator[bytes]:
        """Yield remaining chunks, closing the file on every exit path."""
        try:
            while True:
                chunk = self.read_chunk()
                if chunk is None:
                    return
                yield chunk
        finally:
            self.close()

    def __enter__(self) -> FileReader:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class ByteStream(BridgedIterator[bytes]):
    """Async stream of byte chunks read through the blocking bridge."""

    def __init__(self, reader: FileReader, bridge: BlockingBridge) -> None:
        super().__init__(bridge, reader.read_chunk, reader.close)
        self.path = reader.path

    async def read_all(self) -> bytes:
        """Consume the stream and return the remaining bytes."""
        parts = [chunk async for chunk in self]
        return b"".join(parts)
