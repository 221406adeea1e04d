"""Configuration for the local filesystem adapter."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from localfs.errors import ConfigError

# Default chunk size for streamed reads
DEFAULT_CHUNK_SIZE = 64 * 1024

# Upper bound for the default worker count
MAX_DEFAULT_WORKERS = 32


def default_max_workers() -> int:
    """Default worker pool size: twice the available CPUs, capped."""
    return min(MAX_DEFAULT_WORKERS, (os.cpu_count() or 1) * 2)


class FsConfig(BaseModel):
    """Immutable adapter configuration.

    Attributes:
        root: Absolute root directory all operations are confined to.
        atomic_write_dir: Optional absolute staging directory for whole-file
            writes.
        max_workers: Number of worker threads for blocking calls.
        queue_size: Dispatches allowed to wait for a worker before callers
            start waiting themselves. Defaults to max_workers.
        chunk_size: Size of each chunk yielded by reads.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    root: Path
    atomic_write_dir: Path | None = Field(default=None, alias="atomicWriteDir")
    max_workers: int = Field(default_factory=default_max_workers, ge=1, alias="maxWorkers")
    queue_size: int | None = Field(default=None, ge=0, alias="queueSize")
    chunk_size: int = Field(default=DEFAULT_CHUNK_SIZE, ge=1, alias="chunkSize")

    @field_validator("root", mode="before")
    @classmethod
    def _root_not_empty(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValueError("root is not specified")
        return value

    @field_validator("root", "atomic_write_dir")
    @classmethod
    def _must_be_absolute(cls, value: Path | None) -> Path | None:
        if value is not None and not value.is_absolute():
            raise ValueError(f"path must be absolute: {value}")
        return value

    @field_validator("atomic_write_dir", mode="before")
    @classmethod
    def _empty_is_unset(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def max_pending(self) -> int:
        """Maximum number of dispatches in flight (running plus queued)."""
        queue = self.max_workers if self.queue_size is None else self.queue_size
        return self.max_workers + queue

    @classmethod
    def from_map(cls, mapping: dict[str, Any]) -> FsConfig:
        """Build a configuration from a flat key/value map.

        Accepts both snake_case and camelCase keys. Values may be strings.

        Args:
            mapping: Configuration map, e.g. parsed from a URL or env.

        Returns:
            Validated FsConfig.

        Raises:
            ConfigError: If the map is invalid.
        """
        try:
            return cls.model_validate(mapping)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

    @classmethod
    def from_file(cls, path: Path) -> FsConfig:
        """Load a configuration from a YAML file.

        Args:
            path: Path to the YAML file.

        Returns:
            Validated FsConfig.

        Raises:
            ConfigError: If the file is missing, unreadable or invalid.
        """
        return cls.from_map(read_config_file(path))


def read_config_file(path: Path) -> dict[str, Any]:
    """Read the raw key/value map of a YAML configuration file.

    An empty file yields an empty map.

    Raises:
        ConfigError: If the file is missing, unreadable or not a mapping.
    """
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")

    try:
        data = yaml.safe_load(path.read_text()) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Invalid configuration file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Configuration in {path} must be a mapping")
    return data
