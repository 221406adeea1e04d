"""Tests for logical path resolution."""

from __future__ import annotations

from pathlib import Path

import pytest

from localfs.errors import ErrorKind, StorageError
from localfs.paths import PathResolver, normalize_segments


@pytest.fixture
def resolver(root_dir: Path) -> PathResolver:
    """Resolver over the temporary root."""
    return PathResolver(root_dir)


class TestNormalizeSegments:
    """Tests for normalize_segments."""

    @pytest.mark.parametrize("logical", ["", "/"])
    def test_root_forms(self, logical: str) -> None:
        """Test empty string and lone slash denote the root."""
        assert normalize_segments(logical) == []

    def test_simple_path(self) -> None:
        """Test a nested path splits into segments."""
        assert normalize_segments("a/b/c.txt") == ["a", "b", "c.txt"]

    def test_trailing_slash_allowed(self) -> None:
        """Test a single trailing slash marks a directory."""
        assert normalize_segments("a/b/") == ["a", "b"]

    def test_dot_segments_dropped(self) -> None:
        """Test '.' segments are ignored."""
        assert normalize_segments("./a/./b") == ["a", "b"]

    def test_dotdot_pops_segment(self) -> None:
        """Test '..' climbs one level inside the root."""
        assert normalize_segments("a/b/../c") == ["a", "c"]

    def test_dotdot_back_to_root(self) -> None:
        """Test climbing back exactly to the root is allowed."""
        assert normalize_segments("a/..") == []

    @pytest.mark.parametrize(
        "logical",
        ["..", "../x", "a/../..", "a/b/../../../etc/passwd"],
    )
    def test_escape_rejected(self, logical: str) -> None:
        """Test paths climbing above the root are rejected."""
        with pytest.raises(ValueError, match="escapes root"):
            normalize_segments(logical)

    @pytest.mark.parametrize("logical", ["/a", "a//b", "a//", "//"])
    def test_empty_segment_rejected(self, logical: str) -> None:
        """Test empty segments other than the root forms are rejected."""
        with pytest.raises(ValueError, match="empty path segment"):
            normalize_segments(logical)

    @pytest.mark.parametrize("logical", ["a\\b", "a/b\x00c"])
    def test_forbidden_characters(self, logical: str) -> None:
        """Test backslashes and NUL are malformed."""
        with pytest.raises(ValueError, match="forbidden character"):
            normalize_segments(logical)


class TestPathResolver:
    """Tests for PathResolver."""

    def test_requires_absolute_root(self) -> None:
        """Test a relative root is refused."""
        with pytest.raises(ValueError):
            PathResolver(Path("relative/root"))

    def test_resolve_root(self, resolver: PathResolver, root_dir: Path) -> None:
        """Test the empty path resolves to the root."""
        assert resolver.resolve("", "list") == root_dir

    def test_resolve_nested(self, resolver: PathResolver, root_dir: Path) -> None:
        """Test a nested path resolves below the root."""
        assert resolver.resolve("a/b.txt", "stat") == root_dir / "a" / "b.txt"

    def test_resolve_escape_raises_invalid_path(self, resolver: PathResolver) -> None:
        """Test escaping paths fail with INVALID_PATH and keep context."""
        with pytest.raises(StorageError) as exc_info:
            resolver.resolve("../outside", "read")

        assert exc_info.value.kind is ErrorKind.INVALID_PATH
        assert exc_info.value.operation == "read"
        assert exc_info.value.path == "../outside"

    def test_root_refused_when_not_allowed(self, resolver: PathResolver) -> None:
        """Test destructive operations cannot target the root."""
        with pytest.raises(StorageError) as exc_info:
            resolver.resolve("/", "delete", allow_root=False)
        assert exc_info.value.kind is ErrorKind.INVALID_PATH

    @pytest.mark.parametrize(
        "logical",
        ["", "a", "a/b/c", "a/../b", "./x/", "..", "../..", "a/../../b", "x/y/../../..", "/a"],
    )
    def test_resolved_path_never_leaves_root(
        self, resolver: PathResolver, root_dir: Path, logical: str
    ) -> None:
        """Test every path either fails INVALID_PATH or stays under the root."""
        try:
            resolved = resolver.resolve(logical, "stat")
        except StorageError as e:
            assert e.kind is ErrorKind.INVALID_PATH
            return
        assert resolved == root_dir or root_dir in resolved.parents

    def test_contains(self, resolver: PathResolver, root_dir: Path) -> None:
        """Test containment checks against the root."""
        assert resolver.contains(root_dir)
        assert resolver.contains(root_dir / "a")
        assert not resolver.contains(root_dir.parent)
        assert not resolver.contains(root_dir.parent / "rootsibling")

    def test_relative_file(self, resolver: PathResolver, root_dir: Path) -> None:
        """Test native file paths map back to logical paths."""
        assert resolver.relative(root_dir / "a" / "b.txt") == "a/b.txt"

    def test_relative_directory(self, resolver: PathResolver, root_dir: Path) -> None:
        """Test directories get a trailing slash."""
        assert resolver.relative(root_dir / "a", is_dir=True) == "a/"
        assert resolver.relative(root_dir, is_dir=True) == "/"
