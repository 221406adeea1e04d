"""Logical path resolution confined to the adapter root.

Resolution is purely lexical. Symlinks inside the root that point outside of
it are followed, not detected.
"""

from __future__ import annotations

import os
from pathlib import Path

from localfs.errors import ErrorKind, StorageError

__all__ = ["PathResolver", "normalize_segments"]

_FORBIDDEN_CHARS = ("\x00", "\\")


def normalize_segments(logical: str) -> list[str]:
    """Split a logical path into normalized segments.

    Args:
        logical: Slash-separated path relative to the root.

    Returns:
        Segments with "." dropped and ".." applied. An empty list denotes
        the root.

    Raises:
        ValueError: If the path is malformed or climbs above the root.
    """
    if logical in ("", "/"):
        return []

    body = logical[:-1] if logical.endswith("/") else logical
    segments: list[str] = []
    for segment in body.split("/"):
        if not segment:
            raise ValueError("empty path segment")
        if any(ch in segment for ch in _FORBIDDEN_CHARS):
            raise ValueError(f"forbidden character in segment '{segment}'")
        if segment == ".":
            continue
        if segment == "..":
            if not segments:
                raise ValueError("path escapes root")
            segments.pop()
            continue
        segments.append(segment)
    return segments


class PathResolver:
    """Maps logical paths to native paths under a fixed root."""

    def __init__(self, root: Path) -> None:
        """Initialize the resolver.

        Args:
            root: Absolute, canonical root directory.
        """
        if not root.is_absolute():
            raise ValueError(f"root must be absolute: {root}")
        self._root = root

    @property
    def root(self) -> Path:
        return self._root

    def resolve(self, logical: str, operation: str, allow_root: bool = True) -> Path:
        """Resolve a logical path to a native path inside the root.

        Args:
            logical: Slash-separated path relative to the root.
            operation: Operation name, recorded on errors.
            allow_root: Whether the root itself is an acceptable result.

        Returns:
            Absolute native path equal to or below the root.

        Raises:
            StorageError: INVALID_PATH if the path is malformed, escapes the
                root, or names the root when that is not allowed.
        """
        try:
            segments = normalize_segments(logical)
        except ValueError as e:
            raise StorageError(ErrorKind.INVALID_PATH, operation, logical, str(e)) from e

        if not segments and not allow_root:
            raise StorageError(
                ErrorKind.INVALID_PATH, operation, logical, "operation not allowed on root"
            )

        resolved = self._root.joinpath(*segments)
        if not self.contains(resolved):
            raise StorageError(ErrorKind.INVALID_PATH, operation, logical, "path escapes root")
        return resolved

    def contains(self, native: Path) -> bool:
        """Check that a native path is the root or lies below it."""
        try:
            return os.path.commonpath([self._root, native]) == str(self._root)
        except ValueError:
            # Different drives on Windows
            return False

    def relative(self, native: Path, is_dir: bool = False) -> str:
        """Convert a native path under the root back into a logical path.

        Args:
            native: Path equal to or below the root.
            is_dir: Append a trailing "/" to mark a directory.

        Returns:
            Logical path. The root itself maps to "/" when is_dir, else "".
        """
        rel = native.relative_to(self._root).as_posix()
        if rel == ".":
            rel = ""
        if is_dir:
            return f"{rel}/" if rel else "/"
        return rel
