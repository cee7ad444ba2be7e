"""Protocol definitions for the installer's external collaborators.

The orchestrator and its steps depend only on these interfaces. Each has a
default implementation in this package, and tests substitute doubles
structurally (duck typing) without inheritance.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Protocol, Sequence, runtime_checkable

from spv3_installer.types import InstallationProgress

ProgressSink = Callable[[InstallationProgress], None]


@runtime_checkable
class FileSystem(Protocol):
    """Protocol for filesystem operations.

    Abstracts filesystem access so validation and provisioning can be
    tested against simulated failures.
    """

    def exists(self, path: Path) -> bool:
        """Check if a path exists."""
        ...

    def mkdir(self, path: Path, parents: bool = False, exist_ok: bool = False) -> None:
        """Create a directory."""
        ...

    def rmdir(self, path: Path) -> None:
        """Remove an empty directory."""
        ...

    def write_bytes(self, path: Path, data: bytes) -> None:
        """Write binary content to a file."""
        ...

    def unlink(self, path: Path) -> None:
        """Remove a file."""
        ...

    def free_bytes(self, path: Path) -> int | None:
        """Free space of the volume backing path.

        Returns:
            Free bytes, or None when the volume cannot be determined.

        Raises:
            OSError: If the volume exists but cannot be queried.
        """
        ...


@runtime_checkable
class BulkInstaller(Protocol):
    """Protocol for the payload installation engine."""

    def install(
        self,
        source_dir: Path,
        target_dir: Path,
        progress: ProgressSink,
        compress: bool,
    ) -> None:
        """Install the payload from source_dir into target_dir.

        Args:
            source_dir: Directory holding the payload.
            target_dir: Install target.
            progress: Receives non-decreasing snapshots ending at current == total.
            compress: Whether the engine may store assets compressed.
        """
        ...


@runtime_checkable
class PrerequisiteProbe(Protocol):
    """Protocol for OS-level prerequisite lookups."""

    def library_path(self, launcher: Path) -> Path:
        """Derive the expected library artifact path from a launcher path."""
        ...

    def locate_library(self, launcher: Path) -> Path | None:
        """Search alternative install roots for the library artifact.

        Raises:
            DetectionFailure: If the search itself cannot be performed.
        """
        ...

    def legacy_install_path(self) -> Path | None:
        """Install path recorded by the legacy registry entry, if any."""
        ...


@runtime_checkable
class CommandRunner(Protocol):
    """Protocol for running external commands."""

    def run(self, args: Sequence[str], cwd: Path | None = None, elevated: bool = False) -> int:
        """Run a command to completion.

        Args:
            args: Program and arguments.
            cwd: Working directory.
            elevated: Request administrative privileges.

        Returns:
            Process exit code.
        """
        ...

    def spawn(self, args: Sequence[str], cwd: Path | None = None) -> None:
        """Start a command without waiting for it."""
        ...


@runtime_checkable
class ShortcutFactory(Protocol):
    """Protocol for creating launch shortcuts."""

    def create(self, target: Path, folder: Path, name: str, description: str) -> Path:
        """Create a shortcut named `name` in folder pointing at target.

        Returns:
            Path of the created shortcut.
        """
        ...


@runtime_checkable
class AddonInstaller(Protocol):
    """Protocol for the optional add-on installer."""

    def execute(self, path: Path) -> None:
        """Run the add-on installer located at path."""
        ...
