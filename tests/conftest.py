"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path
from typing import Iterator
from unittest.mock import MagicMock

import pytest

from localfs.backend import BlockingFsBackend, FsBackend
from localfs.config import FsConfig
from localfs.types import CapabilitySet


@pytest.fixture
def root_dir(tmp_path: Path) -> Path:
    """Create a root directory for a backend."""
    root = tmp_path / "root"
    root.mkdir()
    return root.resolve()


@pytest.fixture
def config(root_dir: Path) -> FsConfig:
    """Configuration with a small worker pool."""
    return FsConfig(root=root_dir, max_workers=2, chunk_size=4)


@pytest.fixture
def backend(config: FsConfig) -> Iterator[FsBackend]:
    """Async backend over the temporary root, shut down after the test."""
    fs = FsBackend.create(config)
    yield fs
    fs.close()


@pytest.fixture
def staged_backend(tmp_path: Path, root_dir: Path) -> Iterator[FsBackend]:
    """Async backend that stages whole-file writes."""
    fs = FsBackend.create(
        FsConfig(root=root_dir, atomic_write_dir=tmp_path / "staging", max_workers=2)
    )
    yield fs
    fs.close()


@pytest.fixture
def blocking_backend(config: FsConfig) -> BlockingFsBackend:
    """Blocking backend over the temporary root."""
    return BlockingFsBackend.create(config)


# ============================================================================
# Mock Backend Fixture
# ============================================================================


@pytest.fixture
def mock_backend() -> MagicMock:
    """Create a mock blocking backend for CLI tests.

    The mock records calls without touching real files.
    """
    backend = MagicMock()
    backend.capabilities = CapabilitySet.all()
    backend.list.return_value = iter([])
    backend.read.return_value = iter([])
    return backend
