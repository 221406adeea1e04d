"""Local filesystem adapter for a uniform, backend-agnostic storage API."""

__version__ = "0.1.0"

# Export the backends and protocol interfaces for type hints and injection
from localfs.backend import BlockingFsBackend, FsBackend
from localfs.config import FsConfig
from localfs.errors import ConfigError, ErrorKind, StorageError
from localfs.protocols import BlockingStorageBackend, StorageBackend
from localfs.types import (
    AdapterInfo,
    Capability,
    CapabilitySet,
    EntryKind,
    ListEntry,
    Metadata,
    ReadRange,
)

__all__ = [
    "__version__",
    "AdapterInfo",
    "BlockingFsBackend",
    "BlockingStorageBackend",
    "Capability",
    "CapabilitySet",
    "ConfigError",
    "EntryKind",
    "ErrorKind",
    "FsBackend",
    "FsConfig",
    "ListEntry",
    "Metadata",
    "ReadRange",
    "StorageBackend",
    "StorageError",
]
