"""Filesystem abstraction for testability.

This module provides a filesystem abstraction that enables testing
without real I/O operations. The RealFileSystem implementation
wraps standard library operations.
"""

from __future__ import annotations

import shutil
from pathlib import Path, PureWindowsPath


def is_network_path(path: Path | str) -> bool:
    """Check whether path points at a UNC/network share."""
    return PureWindowsPath(str(path)).drive.startswith("\\\\")


def volume_root(path: Path) -> Path | None:
    """Nearest existing ancestor of path, used to query its volume."""
    candidate = path.absolute()
    for parent in (candidate, *candidate.parents):
        if parent.exists():
            return parent
    return None


class RealFileSystem:
    """Production filesystem implementation.

    Wraps standard library Path and shutil operations.
    Satisfies the FileSystem protocol structurally.
    """

    def exists(self, path: Path) -> bool:
        """Check if a path exists."""
        return path.exists()

    def mkdir(self, path: Path, parents: bool = False, exist_ok: bool = False) -> None:
        """Create a directory."""
        path.mkdir(parents=parents, exist_ok=exist_ok)

    def rmdir(self, path: Path) -> None:
        """Remove an empty directory."""
        path.rmdir()

    def write_bytes(self, path: Path, data: bytes) -> None:
        """Write binary content to a file."""
        path.write_bytes(data)

    def unlink(self, path: Path) -> None:
        """Remove a file."""
        path.unlink()

    def free_bytes(self, path: Path) -> int | None:
        """Free space of the volume backing path, None if unknown."""
        root = volume_root(path)
        if root is None:
            return None
        return shutil.disk_usage(root).free
