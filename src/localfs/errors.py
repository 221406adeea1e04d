"""Error taxonomy and native error mapping.

Every failure surfaced by the adapter is a StorageError carrying one
ErrorKind, the name of the attempted operation and the path involved.
Native OSError instances are translated by errno and kept as __cause__.
"""

from __future__ import annotations

import errno
from collections.abc import Iterator
from contextlib import contextmanager
from enum import Enum
from pathlib import Path

__all__ = [
    "ConfigError",
    "ErrorKind",
    "StorageError",
    "from_os_error",
    "map_os_error",
]


class ErrorKind(str, Enum):
    """Uniform error kinds shared by all storage backends."""

    INVALID_PATH = "invalid_path"
    NOT_FOUND = "not_found"
    ALREADY_EXISTS = "already_exists"
    PERMISSION_DENIED = "permission_denied"
    NOT_A_DIRECTORY = "not_a_directory"
    IS_A_DIRECTORY = "is_a_directory"
    UNSUPPORTED = "unsupported"
    RESOURCE_EXHAUSTED = "resource_exhausted"
    IO = "io"
    CANCELLED = "cancelled"


class ConfigError(Exception):
    """Invalid configuration or unusable root at construction."""

    pass


class StorageError(Exception):
    """Failure of a storage operation.

    Attributes:
        kind: Uniform error kind.
        operation: Name of the attempted operation.
        path: Resolved native path, or the raw logical path when it could not
            be resolved.
        message: Human readable detail.
    """

    def __init__(
        self,
        kind: ErrorKind,
        operation: str,
        path: str | Path,
        message: str = "",
    ) -> None:
        self.kind = kind
        self.operation = operation
        self.path = str(path)
        self.message = message
        super().__init__(str(self))

    def __str__(self) -> str:
        text = f"{self.kind.value} during {self.operation} on '{self.path}'"
        if self.message:
            text = f"{text}: {self.message}"
        return text

    def __repr__(self) -> str:
        return (
            f"StorageError(kind={self.kind.value!r}, operation={self.operation!r}, "
            f"path={self.path!r}, message={self.message!r})"
        )


_ERRNO_KINDS: dict[int, ErrorKind] = {
    errno.ENOENT: ErrorKind.NOT_FOUND,
    errno.EEXIST: ErrorKind.ALREADY_EXISTS,
    errno.ENOTEMPTY: ErrorKind.ALREADY_EXISTS,
    errno.EACCES: ErrorKind.PERMISSION_DENIED,
    errno.EPERM: ErrorKind.PERMISSION_DENIED,
    errno.EROFS: ErrorKind.PERMISSION_DENIED,
    errno.ENOTDIR: ErrorKind.NOT_A_DIRECTORY,
    errno.EISDIR: ErrorKind.IS_A_DIRECTORY,
    errno.EXDEV: ErrorKind.UNSUPPORTED,
    errno.ENOSPC: ErrorKind.RESOURCE_EXHAUSTED,
    errno.EMFILE: ErrorKind.RESOURCE_EXHAUSTED,
    errno.ENFILE: ErrorKind.RESOURCE_EXHAUSTED,
    errno.ENOMEM: ErrorKind.RESOURCE_EXHAUSTED,
    errno.EFBIG: ErrorKind.RESOURCE_EXHAUSTED,
    errno.ENAMETOOLONG: ErrorKind.INVALID_PATH,
    errno.EINVAL: ErrorKind.INVALID_PATH,
    errno.ELOOP: ErrorKind.INVALID_PATH,
}

# Not every platform defines these.
for _name, _kind in (
    ("EDQUOT", ErrorKind.RESOURCE_EXHAUSTED),
    ("ENOTSUP", ErrorKind.UNSUPPORTED),
    ("EOPNOTSUPP", ErrorKind.UNSUPPORTED),
):
    if hasattr(errno, _name):
        _ERRNO_KINDS[getattr(errno, _name)] = _kind


def kind_for_errno(code: int | None) -> ErrorKind:
    """Map an errno value to an error kind.

    Args:
        code: errno value, possibly None for synthetic OSErrors.

    Returns:
        The matching kind, or ErrorKind.IO when the errno is unknown.
        EINTR maps to IO.
    """
    if code is None:
        return ErrorKind.IO
    return _ERRNO_KINDS.get(code, ErrorKind.IO)


def from_os_error(err: OSError, operation: str, path: str | Path) -> StorageError:
    """Translate a native OSError into a StorageError.

    Args:
        err: The native error.
        operation: Name of the attempted operation.
        path: Resolved path the operation targeted.

    Returns:
        StorageError with the mapped kind. The caller is expected to raise it
        ``from err``.
    """
    kind = kind_for_errno(err.errno)
    message = err.strerror or str(err)
    return StorageError(kind, operation, path, message)


@contextmanager
def map_os_error(operation: str, path: str | Path) -> Iterator[None]:
    """Context manager translating OSError raised inside the block.

    Args:
        operation: Name of the attempted operation.
        path: Resolved path the operation targets.

    Raises:
        StorageError: For any OSError raised in the block.
    """
    try:
        yield
    except OSError as e:
        raise from_os_error(e, operation, path) from e
