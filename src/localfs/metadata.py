"""Translation of native stat results into uniform metadata."""

from __future__ import annotations

import os
import stat as stat_mod
from datetime import datetime, timezone

from localfs.types import EntryKind, Metadata

__all__ = ["kind_from_mode", "metadata_from_stat"]


def kind_from_mode(mode: int) -> EntryKind:
    """Derive the entry kind from an st_mode value."""
    if stat_mod.S_ISREG(mode):
        return EntryKind.FILE
    if stat_mod.S_ISDIR(mode):
        return EntryKind.DIR
    return EntryKind.UNKNOWN


def metadata_from_stat(st: os.stat_result) -> Metadata:
    """Build Metadata from a native stat result.

    Directories report a size of 0 since their st_size is a filesystem
    detail, not content length. No content type is inferred.

    Args:
        st: Result of os.stat, os.lstat or DirEntry.stat.

    Returns:
        Fresh Metadata instance.
    """
    kind = kind_from_mode(st.st_mode)
    size = st.st_size if kind is EntryKind.FILE else 0
    return Metadata(
        kind=kind,
        size=size,
        last_modified=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
    )
