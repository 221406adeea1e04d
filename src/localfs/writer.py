"""Streamed writes and appends to local files."""

from __future__ import annotations

import logging
import os
import uuid
from pathlib import Path
from typing import AsyncIterable, AsyncIterator, BinaryIO, Iterable, Iterator, Union

from localfs.errors import ErrorKind, StorageError, from_os_error, map_os_error

logger = logging.getLogger(__name__)

__all__ = [
    "ByteSource",
    "FileWriter",
    "aiter_chunks",
    "check_source",
    "iter_chunks",
    "make_parents",
    "staging_name",
]

# Accepted write payloads
ByteSource = Union[bytes, bytearray, memoryview, Iterable[bytes], AsyncIterable[bytes]]


def staging_name(target: Path) -> str:
    """Unique temporary file name for a staged write of target."""
    return f"{target.name}.{uuid.uuid4()}"


def make_parents(target: Path, operation: str) -> None:
    """Create the missing ancestors of target.

    Raises:
        StorageError: NOT_A_DIRECTORY if an ancestor exists but is not a
            directory, or the mapped native error.
    """
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
    except FileExistsError as e:
        raise StorageError(
            ErrorKind.NOT_A_DIRECTORY, operation, target, "an ancestor is not a directory"
        ) from e
    except OSError as e:
        raise from_os_error(e, operation, target) from e


class FileWriter:
    """Blocking writer owning one open file handle.

    In staged mode the bytes go to a temporary file which replaces the
    target on close; a failed or aborted write removes it and leaves the
    target untouched. Otherwise the target is written in place and a failure
    leaves whatever was written so far.
    """

    def __init__(
        self,
        target: Path,
        handle: BinaryIO,
        operation: str,
        tmp_path: Path | None = None,
    ) -> None:
        self.target = target
        self.operation = operation
        self.tmp_path = tmp_path
        self._handle = handle

    @classmethod
    def open(
        cls,
        target: Path,
        append: bool = False,
        create_parents: bool = False,
        staging_dir: Path | None = None,
    ) -> FileWriter:
        """Open a target for writing or appending.

        Args:
            target: Resolved native path.
            append: Open in append mode. Appends are never staged.
            create_parents: Create missing ancestor directories.
            staging_dir: Directory for staged writes, or None.

        Returns:
            FileWriter owning the open handle.

        Raises:
            StorageError: IS_A_DIRECTORY if the target is a directory, or the
                mapped native error.
        """
        operation = "append" if append else "write"
        if target.is_dir():
            raise StorageError(
                ErrorKind.IS_A_DIRECTORY, operation, target, "target is a directory"
            )

        if create_parents:
            make_parents(target, operation)

        with map_os_error(operation, target):
            if append:
                return cls(target, open(target, "ab"), operation)

            if staging_dir is None:
                return cls(target, open(target, "wb"), operation)

            # Fail on a missing parent now rather than at the final replace.
            os.stat(target.parent)
            tmp_path = staging_dir / staging_name(target)
            return cls(target, open(tmp_path, "wb"), operation, tmp_path)

    @property
    def closed(self) -> bool:
        return self._handle.closed

    def write(self, data: bytes) -> int:
        """Write one chunk completely.

        Returns:
            Number of bytes written.
        """
        with map_os_error(self.operation, self.target):
            self._handle.write(data)
        return len(data)

    def close(self) -> None:
        """Flush, sync and release the handle, then publish a staged file."""
        if self._handle.closed:
            return
        try:
            with map_os_error(self.operation, self.target):
                try:
                    self._handle.flush()
                    os.fsync(self._handle.fileno())
                finally:
                    self._handle.close()
                if self.tmp_path is not None:
                    os.replace(self.tmp_path, self.target)
        except StorageError:
            self._discard_tmp()
            raise

    def abort(self) -> None:
        """Release the handle without publishing. Staged bytes are removed."""
        if not self._handle.closed:
            self._handle.close()
        self._discard_tmp()

    def _discard_tmp(self) -> None:
        if self.tmp_path is None:
            return
        try:
            self.tmp_path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Failed to remove staged file %s: %s", self.tmp_path, e)
        else:
            logger.debug("Removed staged file %s", self.tmp_path)


def check_source(data: object, allow_async: bool = True) -> None:
    """Reject payloads that are not byte sources before any file is touched.

    Raises:
        TypeError: For str payloads, or async iterables when not allowed.
    """
    if isinstance(data, str):
        raise TypeError("write data must be bytes, not str")
    if not allow_async and hasattr(data, "__aiter__"):
        raise TypeError("async iterables require the async backend")


def iter_chunks(data: ByteSource) -> Iterator[bytes]:
    """Iterate a blocking byte source as non-empty chunks.

    Raises:
        TypeError: For str payloads or async iterables.
    """
    check_source(data, allow_async=False)
    if isinstance(data, (bytes, bytearray, memoryview)):
        if data:
            yield bytes(data)
        return
    for chunk in data:
        if chunk:
            yield bytes(chunk)


async def aiter_chunks(data: ByteSource) -> AsyncIterator[bytes]:
    """Iterate any supported byte source as non-empty chunks."""
    check_source(data)
    if hasattr(data, "__aiter__"):
        async for chunk in data:
            if chunk:
                yield bytes(chunk)
        return
    for chunk in iter_chunks(data):
        yield chunk
