"""Shared data types for the local filesystem adapter."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Iterable, Iterator

__all__ = [
    "AdapterInfo",
    "Capability",
    "CapabilitySet",
    "EntryKind",
    "ListEntry",
    "Metadata",
    "ReadRange",
]


class EntryKind(str, Enum):
    """Kind of a filesystem entry."""

    FILE = "file"
    DIR = "dir"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Metadata:
    """Uniform metadata for a file or directory.

    Attributes:
        kind: Entry kind.
        size: Content length in bytes (0 for directories).
        last_modified: Modification time, timezone-aware UTC.
        content_type: MIME type. This adapter never sniffs content, so it
            stays None.
    """

    kind: EntryKind
    size: int
    last_modified: datetime
    content_type: str | None = None

    def __post_init__(self) -> None:
        """Validate invariants."""
        if self.size < 0:
            raise ValueError(f"size cannot be negative: {self.size}")

    @property
    def is_file(self) -> bool:
        return self.kind is EntryKind.FILE

    @property
    def is_dir(self) -> bool:
        return self.kind is EntryKind.DIR


@dataclass(frozen=True)
class ReadRange:
    """Byte interval of a read.

    Attributes:
        offset: First byte to read.
        length: Maximum number of bytes to read. None reads to end of file.
    """

    offset: int = 0
    length: int | None = None

    def __post_init__(self) -> None:
        """Validate invariants."""
        if self.offset < 0:
            raise ValueError(f"offset cannot be negative: {self.offset}")
        if self.length is not None and self.length < 0:
            raise ValueError(f"length cannot be negative: {self.length}")


@dataclass(frozen=True)
class ListEntry:
    """A direct child produced by a directory listing.

    Attributes:
        path: Logical path of the child relative to the root. Directory
            paths end with "/".
        metadata: Metadata of the child at enumeration time.
    """

    path: str
    metadata: Metadata

    @property
    def name(self) -> str:
        """Bare child name without parent segments or trailing slash."""
        return self.path.rstrip("/").rsplit("/", 1)[-1]


class Capability(str, Enum):
    """Operations of the uniform storage call surface."""

    STAT = "stat"
    READ = "read"
    WRITE = "write"
    APPEND = "append"
    CREATE_DIR = "create_dir"
    DELETE = "delete"
    COPY = "copy"
    RENAME = "rename"
    LIST = "list"


@dataclass(frozen=True)
class CapabilitySet:
    """Immutable set of operations a backend supports.

    Dispatchers query it before invoking an operation instead of relying on
    the backend to reject unsupported calls.
    """

    operations: frozenset[Capability] = field(default_factory=frozenset)

    @classmethod
    def of(cls, operations: Iterable[Capability | str]) -> CapabilitySet:
        """Build a capability set from enum members or their string values."""
        return cls(frozenset(Capability(op) for op in operations))

    @classmethod
    def all(cls) -> CapabilitySet:
        """Capability set containing every operation."""
        return cls(frozenset(Capability))

    def supports(self, operation: Capability | str) -> bool:
        """Check whether an operation is supported.

        Args:
            operation: Capability member or its string value.

        Returns:
            True if supported. Unknown operation names are never supported.
        """
        try:
            return Capability(operation) in self.operations
        except ValueError:
            return False

    def __contains__(self, operation: object) -> bool:
        if not isinstance(operation, (Capability, str)):
            return False
        return self.supports(operation)

    def __iter__(self) -> Iterator[Capability]:
        # Declaration order keeps output stable for display.
        return (cap for cap in Capability if cap in self.operations)

    def __len__(self) -> int:
        return len(self.operations)


@dataclass(frozen=True)
class AdapterInfo:
    """Static description of a configured backend.

    Attributes:
        scheme: Backend scheme name.
        root: Canonical root directory.
        capabilities: Supported operations.
    """

    scheme: str
    root: Path
    capabilities: CapabilitySet
