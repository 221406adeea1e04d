"""Application context for dependency injection.

This module separates object creation from object use, enabling testability
and reducing coupling in CLI commands.

Dependencies are typed using Protocols (abstract interfaces) rather than
concrete implementations, so commands can be exercised with test doubles.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from localfs.config import FsConfig, read_config_file
from localfs.errors import ConfigError
from localfs.protocols import BlockingStorageBackend


@dataclass
class AppContext:
    """Container for the dependencies used by CLI commands.

    Attributes:
        backend: Storage backend the commands operate on.
        config: Configuration the backend was built from, if known.
    """

    backend: BlockingStorageBackend
    config: FsConfig | None = None


def load_config(root: Path | None = None, config_file: Path | None = None) -> FsConfig:
    """Combine a configuration file and a root override.

    Args:
        root: Root directory; overrides the file's root when both are given.
        config_file: Optional YAML configuration file.

    Returns:
        Validated FsConfig.

    Raises:
        ConfigError: If neither source provides a root, or validation fails.
    """
    data: dict[str, Any] = {}
    if config_file is not None:
        data = read_config_file(config_file)
    if root is not None:
        data["root"] = root.expanduser().absolute()
    if not data.get("root"):
        raise ConfigError("root is not specified: pass --root or a config file")
    return FsConfig.from_map(data)


def create_context(root: Path | None = None, config_file: Path | None = None) -> AppContext:
    """Factory for application dependencies.

    Creates the blocking backend with proper wiring. Use this in production
    code. For tests, construct AppContext directly with test doubles.

    Args:
        root: Root directory override.
        config_file: Optional YAML configuration file.

    Returns:
        Configured AppContext.

    Raises:
        ConfigError: If the configuration or root is invalid.
    """
    from localfs.backend import BlockingFsBackend

    config = load_config(root, config_file)
    return AppContext(backend=BlockingFsBackend.create(config), config=config)
