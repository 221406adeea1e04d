"""Local filesystem storage backends.

FsBackend serves the uniform storage operations to asyncio callers and runs
every blocking native call on a bounded worker pool. BlockingFsBackend serves
the same operations inline for callers without an event loop. Both share path
resolution, native primitives and error mapping.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Iterator, TypeVar

from localfs.bridge import BlockingBridge, BridgeClosedError
from localfs.config import FsConfig
from localfs.errors import ConfigError, ErrorKind, StorageError
from localfs.filesystem import NativeFileSystem
from localfs.lister import DirLister, EntryStream
from localfs.paths import PathResolver
from localfs.reader import ByteStream, FileReader
from localfs.types import AdapterInfo, CapabilitySet, ListEntry, Metadata, ReadRange
from localfs.writer import ByteSource, FileWriter, aiter_chunks, check_source, iter_chunks

logger = logging.getLogger(__name__)

T = TypeVar("T")
B = TypeVar("B", bound="_FsBackendBase")

__all__ = ["SCHEME", "BlockingFsBackend", "FsBackend", "prepare_directory"]

# Scheme reported to dispatchers
SCHEME = "fs"

# Every uniform operation is implemented by this adapter.
CAPABILITIES = CapabilitySet.all()


def prepare_directory(path: Path, name: str) -> Path:
    """Create a configured directory if missing and canonicalize it.

    Args:
        path: Absolute directory path from configuration.
        name: Configuration key, used in error messages.

    Returns:
        Canonical (symlink-free) absolute path.

    Raises:
        ConfigError: If the directory cannot be created or is not a directory.
    """
    if not path.exists():
        logger.debug("Creating %s directory %s", name, path)
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ConfigError(f"create {name} dir failed: {path}: {e}") from e

    if not path.is_dir():
        raise ConfigError(f"{name} is not a directory: {path}")

    try:
        return path.resolve(strict=True)
    except OSError as e:
        raise ConfigError(f"canonicalize of {name} directory failed: {path}: {e}") from e


class _FsBackendBase:
    """Construction, capabilities and path handling shared by both backends."""

    def __init__(self, config: FsConfig) -> None:
        """Initialize the backend, creating the root if needed.

        Args:
            config: Validated configuration.

        Raises:
            ConfigError: If the root or staging directory is unusable.
        """
        logger.debug("backend build started: %r", config)
        root = prepare_directory(config.root, "root")
        staging_dir = None
        if config.atomic_write_dir is not None:
            staging_dir = prepare_directory(config.atomic_write_dir, "atomic_write_dir")

        self.config = config
        self.resolver = PathResolver(root)
        self.fs = NativeFileSystem(self.resolver, staging_dir, config.chunk_size)
        logger.debug("backend use root %s", root)

    @classmethod
    def create(cls: type[B], config: FsConfig) -> B:
        """Create a backend from a configuration."""
        return cls(config)

    @classmethod
    def from_root(cls: type[B], root: Path | str, **options: Any) -> B:
        """Create a backend for a root directory.

        Args:
            root: Absolute root directory.
            **options: Other FsConfig fields.

        Raises:
            ConfigError: If the configuration or root is invalid.
        """
        return cls(FsConfig.from_map({"root": root, **options}))

    @classmethod
    def from_map(cls: type[B], mapping: dict[str, Any]) -> B:
        """Create a backend from a flat configuration map."""
        return cls(FsConfig.from_map(mapping))

    @property
    def root(self) -> Path:
        return self.resolver.root

    @property
    def capabilities(self) -> CapabilitySet:
        return CAPABILITIES

    def info(self) -> AdapterInfo:
        """Describe this backend for dispatchers."""
        return AdapterInfo(scheme=SCHEME, root=self.root, capabilities=CAPABILITIES)

    def _resolve(self, path: str, operation: str, allow_root: bool = True) -> Path:
        return self.resolver.resolve(path, operation, allow_root=allow_root)

    def _resolve_file(self, path: str, operation: str) -> Path:
        resolved = self._resolve(path, operation, allow_root=False)
        if path.endswith("/"):
            raise StorageError(
                ErrorKind.IS_A_DIRECTORY, operation, resolved, "path denotes a directory"
            )
        return resolved

    @staticmethod
    def _check_dir_marker(path: str, metadata: Metadata, resolved: Path) -> Metadata:
        # "name/" promises a directory.
        if path.endswith("/") and path != "/" and not metadata.is_dir:
            raise StorageError(
                ErrorKind.NOT_A_DIRECTORY, "stat", resolved, "path denotes a directory"
            )
        return metadata


class FsBackend(_FsBackendBase):
    """Non-blocking local filesystem backend.

    Satisfies the StorageBackend protocol structurally. Use the factory
    methods or pass an FsConfig; call ``close`` when done to stop the
    worker threads.
    """

    def __init__(self, config: FsConfig, bridge: BlockingBridge | None = None) -> None:
        """Initialize the backend.

        Args:
            config: Validated configuration.
            bridge: Worker pool to use. Created from the configuration when
                not provided.
        """
        super().__init__(config)
        self.bridge = bridge or BlockingBridge(config.max_workers, config.max_pending)

    async def _run(
        self,
        operation: str,
        path: Path,
        func: Callable[..., T],
        *args: Any,
        release: Callable[[T], None] | None = None,
    ) -> T:
        try:
            return await self.bridge.run(func, *args, release=release)
        except BridgeClosedError as e:
            raise StorageError(ErrorKind.CANCELLED, operation, path, "backend is closed") from e

    async def stat(self, path: str) -> Metadata:
        resolved = self._resolve(path, "stat")
        metadata = await self._run("stat", resolved, self.fs.stat, resolved)
        return self._check_dir_marker(path, metadata, resolved)

    async def read(self, path: str, byte_range: ReadRange | None = None) -> ByteStream:
        """Open a file for a streamed read.

        The file is opened before this coroutine returns, so missing files
        and directories fail here rather than on first iteration.

        Args:
            path: Logical path of a file.
            byte_range: Optional byte interval; reads stop early at EOF.

        Returns:
            ByteStream yielding chunks. Consume it fully, or close it with
            ``aclose`` or ``async with``, to release the handle promptly.
        """
        resolved = self._resolve_file(path, "read")
        reader = await self._run(
            "read", resolved, self.fs.open_reader, resolved, byte_range, release=FileReader.close
        )
        return ByteStream(reader, self.bridge)

    async def write(self, path: str, data: ByteSource, create_parents: bool = False) -> None:
        """Create or truncate a file and write data to it.

        Without a staging directory a failure part way through leaves the
        file with partial content; there is no rollback.
        """
        check_source(data)
        resolved = self._resolve_file(path, "write")
        writer = await self._run(
            "write",
            resolved,
            self.fs.open_writer,
            resolved,
            create_parents,
            release=FileWriter.abort,
        )
        await self._drain(writer, data)

    async def append(self, path: str, data: ByteSource) -> None:
        check_source(data)
        resolved = self._resolve_file(path, "append")
        writer = await self._run(
            "append", resolved, self.fs.open_appender, resolved, release=FileWriter.abort
        )
        await self._drain(writer, data)

    async def _drain(self, writer: FileWriter, data: ByteSource) -> None:
        try:
            async for chunk in aiter_chunks(data):
                await self._run(writer.operation, writer.target, writer.write, chunk)
        except BaseException:
            await self._abort(writer)
            raise
        await self._run(writer.operation, writer.target, writer.close)

    async def _abort(self, writer: FileWriter) -> None:
        try:
            await self.bridge.run(writer.abort)
        except BridgeClosedError:
            writer.abort()

    async def create_dir(self, path: str) -> None:
        resolved = self._resolve(path, "create_dir")
        await self._run("create_dir", resolved, self.fs.create_dir, resolved)

    async def delete(self, path: str) -> None:
        resolved = self._resolve(path, "delete", allow_root=False)
        await self._run("delete", resolved, self.fs.delete, resolved)

    async def copy(self, src: str, dst: str) -> None:
        src_path = self._resolve(src, "copy", allow_root=False)
        dst_path = self._resolve_file(dst, "copy")
        await self._run("copy", src_path, self.fs.copy, src_path, dst_path)

    async def rename(self, src: str, dst: str) -> None:
        src_path = self._resolve(src, "rename", allow_root=False)
        dst_path = self._resolve(dst, "rename", allow_root=False)
        await self._run("rename", src_path, self.fs.rename, src_path, dst_path)

    async def list(self, path: str) -> EntryStream:
        """Open a directory for a lazy listing of its direct children.

        Returns:
            EntryStream yielding ListEntry objects in unspecified order.
        """
        resolved = self._resolve(path, "list")
        lister = await self._run(
            "list", resolved, self.fs.open_lister, resolved, release=DirLister.close
        )
        return EntryStream(lister, self.bridge)

    def close(self, wait: bool = True) -> None:
        """Stop the worker pool. Later operations fail with CANCELLED."""
        self.bridge.shutdown(wait=wait)

    async def __aenter__(self) -> FsBackend:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close(wait=False)


class BlockingFsBackend(_FsBackendBase):
    """Blocking local filesystem backend.

    Same operations and semantics as FsBackend without a worker pool.
    Satisfies the BlockingStorageBackend protocol structurally.
    """

    def stat(self, path: str) -> Metadata:
        resolved = self._resolve(path, "stat")
        return self._check_dir_marker(path, self.fs.stat(resolved), resolved)

    def read(self, path: str, byte_range: ReadRange | None = None) -> Iterator[bytes]:
        """Open a file and return an iterator over its chunks.

        The file is opened eagerly; the iterator closes it when exhausted
        or closed.
        """
        resolved = self._resolve_file(path, "read")
        return self.fs.open_reader(resolved, byte_range).chunks()

    def read_bytes(self, path: str, byte_range: ReadRange | None = None) -> bytes:
        """Read a whole file, or a range of it, into memory."""
        return b"".join(self.read(path, byte_range))

    def write(self, path: str, data: ByteSource, create_parents: bool = False) -> None:
        check_source(data, allow_async=False)
        resolved = self._resolve_file(path, "write")
        self._drain(self.fs.open_writer(resolved, create_parents), data)

    def append(self, path: str, data: ByteSource) -> None:
        check_source(data, allow_async=False)
        resolved = self._resolve_file(path, "append")
        self._drain(self.fs.open_appender(resolved), data)

    @staticmethod
    def _drain(writer: FileWriter, data: ByteSource) -> None:
        try:
            for chunk in iter_chunks(data):
                writer.write(chunk)
        except BaseException:
            writer.abort()
            raise
        writer.close()

    def create_dir(self, path: str) -> None:
        self.fs.create_dir(self._resolve(path, "create_dir"))

    def delete(self, path: str) -> None:
        self.fs.delete(self._resolve(path, "delete", allow_root=False))

    def copy(self, src: str, dst: str) -> None:
        self.fs.copy(
            self._resolve(src, "copy", allow_root=False),
            self._resolve_file(dst, "copy"),
        )

    def rename(self, src: str, dst: str) -> None:
        self.fs.rename(
            self._resolve(src, "rename", allow_root=False),
            self._resolve(dst, "rename", allow_root=False),
        )

    def list(self, path: str) -> Iterator[ListEntry]:
        """Open a directory and return a lazy iterator over its children."""
        resolved = self._resolve(path, "list")
        return self.fs.open_lister(resolved).entries()

    def close(self) -> None:
        """Nothing to release; present for interface parity."""
        return None
