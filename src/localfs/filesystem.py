"""Blocking native filesystem primitives.

This module wraps os and shutil calls on resolved paths and reports failures
as StorageError. Nothing here knows about logical paths or event loops; the
backends decide whether a primitive runs inline or on the worker pool.
"""

from __future__ import annotations

import logging
import os
import shutil
import stat as stat_mod
from pathlib import Path

from localfs.errors import ErrorKind, StorageError, map_os_error
from localfs.lister import DirLister
from localfs.metadata import metadata_from_stat
from localfs.paths import PathResolver
from localfs.reader import FileReader
from localfs.types import Metadata, ReadRange
from localfs.writer import FileWriter, make_parents

logger = logging.getLogger(__name__)


class NativeFileSystem:
    """Production filesystem primitives for one adapter.

    Every method blocks. Every method raises StorageError, never OSError.
    """

    def __init__(
        self,
        resolver: PathResolver,
        staging_dir: Path | None = None,
        chunk_size: int = 64 * 1024,
    ) -> None:
        """Initialize the primitives.

        Args:
            resolver: Resolver of the adapter root, used to label listings.
            staging_dir: Directory for staged whole-file writes, or None.
            chunk_size: Chunk size for readers.
        """
        self.resolver = resolver
        self.staging_dir = staging_dir
        self.chunk_size = chunk_size

    def stat(self, path: Path) -> Metadata:
        """Read metadata of a file or directory, following symlinks."""
        with map_os_error("stat", path):
            return metadata_from_stat(os.stat(path))

    def create_dir(self, path: Path) -> None:
        """Create a directory and its missing ancestors.

        Succeeds if the directory already exists.
        """
        with map_os_error("create_dir", path):
            path.mkdir(parents=True, exist_ok=True)

    def delete(self, path: Path) -> bool:
        """Remove a file, symlink or directory tree.

        Symlinks are unlinked, never followed.

        Returns:
            True if something was removed, False if nothing existed.
        """
        with map_os_error("delete", path):
            try:
                st = os.lstat(path)
                if stat_mod.S_ISDIR(st.st_mode):
                    shutil.rmtree(path)
                else:
                    os.unlink(path)
            except FileNotFoundError:
                logger.debug("Nothing to delete at %s", path)
                return False
        return True

    def copy(self, src: Path, dst: Path) -> None:
        """Copy file content from src to dst, replacing dst.

        Raises:
            StorageError: NOT_FOUND if src is absent, IS_A_DIRECTORY if src
                is a directory.
        """
        with map_os_error("copy", src):
            st = os.stat(src)
        if stat_mod.S_ISDIR(st.st_mode):
            raise StorageError(ErrorKind.IS_A_DIRECTORY, "copy", src, "cannot copy a directory")

        make_parents(dst, "copy")
        with map_os_error("copy", dst):
            try:
                shutil.copyfile(src, dst)
            except shutil.SameFileError:
                logger.debug("Copy source and target are the same file: %s", src)

    def rename(self, src: Path, dst: Path) -> None:
        """Move src to dst, replacing dst.

        Raises:
            StorageError: NOT_FOUND if src is absent, UNSUPPORTED if the move
                crosses a volume boundary.
        """
        with map_os_error("rename", src):
            os.lstat(src)
        make_parents(dst, "rename")
        with map_os_error("rename", dst):
            os.replace(src, dst)

    def open_reader(self, path: Path, byte_range: ReadRange | None = None) -> FileReader:
        """Open a file for a streamed read."""
        return FileReader.open(path, byte_range, self.chunk_size)

    def open_writer(self, path: Path, create_parents: bool = False) -> FileWriter:
        """Open a file for a streamed write, staged when configured."""
        return FileWriter.open(
            path,
            append=False,
            create_parents=create_parents,
            staging_dir=self.staging_dir,
        )

    def open_appender(self, path: Path) -> FileWriter:
        """Open a file for appending. Appends are written in place."""
        return FileWriter.open(path, append=True)

    def open_lister(self, path: Path) -> DirLister:
        """Open a directory for enumeration."""
        return DirLister.open(path, self.resolver)
