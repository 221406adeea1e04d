"""Protocol definitions for the uniform storage call surface.

A dispatch layer that manages several storage backends depends on these
interfaces only. Concrete backends satisfy them structurally (duck typing),
so test doubles can be injected without inheritance.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, AsyncIterator, Iterator, Protocol, runtime_checkable

from localfs.types import AdapterInfo, CapabilitySet, ListEntry, Metadata, ReadRange

if TYPE_CHECKING:
    from localfs.writer import ByteSource


@runtime_checkable
class StorageBackend(Protocol):
    """Protocol for non-blocking storage backends.

    Every method is a coroutine. Failures are raised as StorageError.
    """

    @property
    def capabilities(self) -> CapabilitySet:
        """Operations this backend supports."""
        ...

    def info(self) -> AdapterInfo:
        """Describe the configured backend."""
        ...

    async def stat(self, path: str) -> Metadata:
        """Get metadata of a file or directory.

        Args:
            path: Logical path.

        Returns:
            Fresh Metadata.

        Raises:
            StorageError: NOT_FOUND if the path does not exist.
        """
        ...

    async def read(self, path: str, byte_range: ReadRange | None = None) -> AsyncIterator[bytes]:
        """Open a file for a streamed read.

        Args:
            path: Logical path of a file.
            byte_range: Optional byte interval.

        Returns:
            Single-pass async iterator of byte chunks.
        """
        ...

    async def write(self, path: str, data: ByteSource, create_parents: bool = False) -> None:
        """Create or truncate a file and write data to it.

        Args:
            path: Logical path of the file.
            data: Bytes, or a sync or async iterable of byte chunks.
            create_parents: Create missing ancestor directories.
        """
        ...

    async def append(self, path: str, data: ByteSource) -> None:
        """Append data to a file, creating it when missing.

        Args:
            path: Logical path of the file.
            data: Bytes, or a sync or async iterable of byte chunks.
        """
        ...

    async def create_dir(self, path: str) -> None:
        """Create a directory and missing ancestors."""
        ...

    async def delete(self, path: str) -> None:
        """Delete a file or directory tree. Missing paths are not an error."""
        ...

    async def copy(self, src: str, dst: str) -> None:
        """Copy a file, replacing the destination."""
        ...

    async def rename(self, src: str, dst: str) -> None:
        """Move a file or directory, replacing the destination."""
        ...

    async def list(self, path: str) -> AsyncIterator[ListEntry]:
        """Open a directory for a lazy listing of its direct children."""
        ...


@runtime_checkable
class BlockingStorageBackend(Protocol):
    """Protocol for blocking storage backends.

    Same operations and semantics as StorageBackend, executed inline.
    """

    @property
    def capabilities(self) -> CapabilitySet:
        ...

    def info(self) -> AdapterInfo:
        ...

    def stat(self, path: str) -> Metadata:
        ...

    def read(self, path: str, byte_range: ReadRange | None = None) -> Iterator[bytes]:
        ...

    def write(self, path: str, data: ByteSource, create_parents: bool = False) -> None:
        ...

    def append(self, path: str, data: ByteSource) -> None:
        ...

    def create_dir(self, path: str) -> None:
        ...

    def delete(self, path: str) -> None:
        ...

    def copy(self, src: str, dst: str) -> None:
        ...

    def rename(self, src: str, dst: str) -> None:
        ...

    def list(self, path: str) -> Iterator[ListEntry]:
        ...
