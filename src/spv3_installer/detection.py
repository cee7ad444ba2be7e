"""Prerequisite detection.

The prerequisite is located through the launcher the user points us at:
first by deriving the well-known install root next to the launcher, then by
asking the probe to search the other library folders it knows about. A
separate legacy lookup reads the install path recorded by the original
retail/custom edition installer.
"""

from __future__ import annotations

import logging
import re
import sys
from pathlib import Path

from spv3_installer.errors import DetectionFailure
from spv3_installer.filesystem import RealFileSystem
from spv3_installer.protocols import FileSystem, PrerequisiteProbe
from spv3_installer.types import DetectionReport, PrerequisiteLocation, Provenance

logger = logging.getLogger(__name__)

LIBRARY_RELATIVE_PATH = Path(
    "steamapps", "common", "Halo The Master Chief Collection", "halo1", "halo1.dll"
)
LIBRARY_FOLDERS_FILE = Path("steamapps", "libraryfolders.vdf")
LEGACY_REGISTRY_KEYS = (
    r"SOFTWARE\Microsoft\Microsoft Games\Halo CE",
    r"SOFTWARE\WOW6432Node\Microsoft\Microsoft Games\Halo CE",
)
LEGACY_REGISTRY_VALUE = "EXE Path"

LOCATOR_FOUND = "Steam located!"
LOCATOR_MISSING = "Find Steam.exe or a Steam shortcut and we'll do the rest!"
LIBRARY_LOCATED = (
    "Halo CEA Located.\r\nNote: You will need administrative permissions to activate Halo via MCC."
)

_VDF_PATH = re.compile(r'"path"\s+"((?:[^"\\]|\\.)*)"', re.IGNORECASE)


def parse_library_folders(content: str) -> list[Path]:
    """Extract library root paths from a Steam libraryfolders.vdf file.

    Args:
        content: Raw VDF text.

    Returns:
        Library roots in file order.
    """
    return [Path(m.group(1).replace("\\\\", "\\")) for m in _VDF_PATH.finditer(content)]


class SteamPrerequisiteProbe:
    """Locates the MCC copy of Halo CE through a Steam installation.

    Satisfies the PrerequisiteProbe protocol structurally.
    """

    def steam_root(self, launcher: Path) -> Path:
        """Directory of the Steam client the launcher belongs to."""
        return launcher.parent

    def library_path(self, launcher: Path) -> Path:
        """Expected library artifact inside the launcher's own library."""
        return self.steam_root(launcher) / LIBRARY_RELATIVE_PATH

    def locate_library(self, launcher: Path) -> Path | None:
        """Search every Steam library folder for the library artifact.

        Raises:
            DetectionFailure: If the library folder list cannot be read.
        """
        folders_file = self.steam_root(launcher) / LIBRARY_FOLDERS_FILE
        try:
            content = folders_file.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            raise DetectionFailure(f"Could not read Steam library folders: {e}") from e

        for root in parse_library_folders(content):
            candidate = root / LIBRARY_RELATIVE_PATH
            logger.debug("Checking Steam library %s", candidate)
            if candidate.exists():
                return candidate
        return None

    def legacy_install_path(self) -> Path | None:
        """Install path from the legacy registry entry (Windows only)."""
        if sys.platform != "win32":
            return None

        import winreg

        for key_path in LEGACY_REGISTRY_KEYS:
            try:
                with winreg.OpenKey(winreg.HKEY_LOCAL_MACHINE, key_path) as key:
                    value, _ = winreg.QueryValueEx(key, LEGACY_REGISTRY_VALUE)
            except OSError:
                logger.debug("Legacy registry key %s not present", key_path)
                continue
            if value:
                return Path(value)
        return None


class PrerequisiteDetector:
    """Detects the prerequisite installation.

    Follows Separate Use from Creation: constructor requires all dependencies.
    Use factory method `create()` for production instantiation with defaults.
    """

    def __init__(self, probe: PrerequisiteProbe, filesystem: FileSystem) -> None:
        """Initialize detector with required dependencies.

        Args:
            probe: OS-level lookup implementation (required).
            filesystem: Filesystem abstraction (required).
        """
        self.probe = probe
        self.fs = filesystem

    @classmethod
    def create(
        cls,
        probe: PrerequisiteProbe | None = None,
        filesystem: FileSystem | None = None,
    ) -> PrerequisiteDetector:
        """Factory method for production instantiation."""
        return cls(
            probe=probe or SteamPrerequisiteProbe(),
            filesystem=filesystem or RealFileSystem(),
        )

    def detect(self, locator: Path) -> DetectionReport:
        """Detect the prerequisite from a launcher path.

        Detection failures are reported in the returned status, never raised.

        Args:
            locator: Launcher executable or shortcut supplied by the user.

        Returns:
            DetectionReport with the located library, if any.
        """
        if not self.fs.exists(locator):
            return DetectionReport(
                location=PrerequisiteLocation.not_found(),
                locator_status=LOCATOR_MISSING,
            )

        library = self.probe.library_path(locator)
        if self.fs.exists(library):
            logger.debug("Prerequisite library found next to launcher: %s", library)
            return DetectionReport(
                location=PrerequisiteLocation(library, Provenance.DIRECT_PROBE),
                locator_status=LOCATOR_FOUND,
            )

        try:
            located = self.probe.locate_library(locator)
        except Exception as e:
            logger.warning("Prerequisite lookup failed for %s: %s", locator, e)
            return DetectionReport(
                location=PrerequisiteLocation.not_found(),
                locator_status=LOCATOR_FOUND,
                status=str(e).lower(),
            )

        if located is None or not self.fs.exists(located):
            return DetectionReport(
                location=PrerequisiteLocation.not_found(),
                locator_status=LOCATOR_FOUND,
            )

        return DetectionReport(
            location=PrerequisiteLocation(located, Provenance.PACKAGE_MANAGER_LOOKUP),
            locator_status=LOCATOR_FOUND,
            status=LIBRARY_LOCATED,
        )

    def detect_legacy(self) -> PrerequisiteLocation:
        """Detect a legacy registry-recorded installation.

        Returns:
            Location of the recorded install, or not-found.
        """
        try:
            path = self.probe.legacy_install_path()
        except Exception:
            logger.exception("Legacy prerequisite lookup failed")
            return PrerequisiteLocation.not_found()

        if path is None:
            return PrerequisiteLocation.not_found()
        return PrerequisiteLocation(path, Provenance.PACKAGE_MANAGER_LOOKUP)
