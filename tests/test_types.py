"""Tests for shared data types."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from localfs.types import (
    Capability,
    CapabilitySet,
    EntryKind,
    ListEntry,
    Metadata,
    ReadRange,
)

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


class TestMetadata:
    """Tests for Metadata."""

    def test_file_flags(self) -> None:
        """Test kind helpers for a file."""
        metadata = Metadata(kind=EntryKind.FILE, size=10, last_modified=NOW)

        assert metadata.is_file
        assert not metadata.is_dir
        assert metadata.content_type is None

    def test_negative_size_rejected(self) -> None:
        """Test size cannot be negative."""
        with pytest.raises(ValueError, match="negative"):
            Metadata(kind=EntryKind.FILE, size=-1, last_modified=NOW)

    def test_unknown_kind_is_neither(self) -> None:
        """Test unknown entries are neither files nor directories."""
        metadata = Metadata(kind=EntryKind.UNKNOWN, size=0, last_modified=NOW)

        assert not metadata.is_file
        assert not metadata.is_dir


class TestReadRange:
    """Tests for ReadRange."""

    def test_defaults_read_everything(self) -> None:
        """Test the default range is open-ended from the start."""
        byte_range = ReadRange()

        assert byte_range.offset == 0
        assert byte_range.length is None

    @pytest.mark.parametrize("offset,length", [(-1, None), (0, -1)])
    def test_negative_values_rejected(self, offset: int, length: int | None) -> None:
        """Test negative offsets and lengths are refused."""
        with pytest.raises(ValueError):
            ReadRange(offset, length)


class TestListEntry:
    """Tests for ListEntry."""

    def test_name_of_file(self) -> None:
        """Test name is the last path segment."""
        entry = ListEntry("a/b/c.txt", Metadata(EntryKind.FILE, 1, NOW))
        assert entry.name == "c.txt"

    def test_name_of_directory(self) -> None:
        """Test the trailing slash is not part of the name."""
        entry = ListEntry("a/sub/", Metadata(EntryKind.DIR, 0, NOW))
        assert entry.name == "sub"


class TestCapabilitySet:
    """Tests for CapabilitySet."""

    def test_all_supports_everything(self) -> None:
        """Test the full set supports every operation."""
        caps = CapabilitySet.all()

        assert len(caps) == len(Capability)
        assert all(caps.supports(cap) for cap in Capability)

    def test_of_accepts_strings(self) -> None:
        """Test sets can be built from operation names."""
        caps = CapabilitySet.of(["read", Capability.STAT])

        assert caps.supports("read")
        assert Capability.STAT in caps
        assert not caps.supports(Capability.WRITE)

    def test_unknown_operation_not_supported(self) -> None:
        """Test unknown operation names are reported unsupported."""
        caps = CapabilitySet.all()

        assert caps.supports("presign") is False
        assert "presign" not in caps
        assert 42 not in caps

    def test_of_rejects_unknown_names(self) -> None:
        """Test unknown names cannot be declared."""
        with pytest.raises(ValueError):
            CapabilitySet.of(["teleport"])

    def test_iteration_order(self) -> None:
        """Test iteration follows declaration order."""
        caps = CapabilitySet.of([Capability.LIST, Capability.STAT])
        assert list(caps) == [Capability.STAT, Capability.LIST]

    def test_empty_set(self) -> None:
        """Test the default set is empty."""
        caps = CapabilitySet()

        assert len(caps) == 0
        assert not caps.supports(Capability.READ)
