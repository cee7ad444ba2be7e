"""Post-install provisioning: launch shortcuts and the add-on installer."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

from spv3_installer.config import (
    ADDON_EXECUTABLE,
    PRODUCT_EXECUTABLE,
    SHORTCUT_DESCRIPTION,
    SHORTCUT_NAME,
    START_MENU_FOLDER,
)
from spv3_installer.errors import ProvisioningFailure
from spv3_installer.filesystem import RealFileSystem
from spv3_installer.protocols import AddonInstaller, CommandRunner, FileSystem, ShortcutFactory

logger = logging.getLogger(__name__)


def desktop_dir() -> Path:
    """The current user's desktop folder."""
    return Path.home() / "Desktop"


def start_menu_dir(platform: str | None = None) -> Path:
    """Product folder inside the current user's start menu."""
    platform = platform or sys.platform
    if platform == "win32":
        appdata = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
        return appdata / "Microsoft" / "Windows" / "Start Menu" / "Programs" / START_MENU_FOLDER
    data_home = Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local" / "share"))
    return data_home / "applications" / START_MENU_FOLDER


class SystemShortcutFactory:
    """Creates .lnk shortcuts on Windows and desktop entries elsewhere.

    Satisfies the ShortcutFactory protocol structurally.
    """

    def __init__(self, platform: str | None = None) -> None:
        self.platform = platform or sys.platform

    def create(self, target: Path, folder: Path, name: str, description: str) -> Path:
        if self.platform == "win32":
            return self._create_lnk(target, folder, name, description)
        return self._create_desktop_entry(target, folder, name, description)

    def _create_lnk(self, target: Path, folder: Path, name: str, description: str) -> Path:
        import win32com.client

        path = folder / f"{name}.lnk"
        shell = win32com.client.Dispatch("WScript.Shell")
        shortcut = shell.CreateShortCut(str(path))
        shortcut.Description = description
        shortcut.TargetPath = str(target)
        shortcut.WorkingDirectory = str(target.parent)
        shortcut.save()
        return path

    def _create_desktop_entry(
        self, target: Path, folder: Path, name: str, description: str
    ) -> Path:
        path = folder / f"{name}.desktop"
        path.write_text(
            "[Desktop Entry]\n"
            "Type=Application\n"
            f"Name={name}\n"
            f"Comment={description}\n"
            f'Exec="{target}"\n'
            f"Path={target.parent}\n"
        )
        path.chmod(0o755)
        return path


class ExecutableAddonInstaller:
    """Runs the add-on installer executable and waits for it.

    Satisfies the AddonInstaller protocol structurally.
    """

    def __init__(self, runner: CommandRunner) -> None:
        self.runner = runner

    def execute(self, path: Path) -> None:
        if not path.exists():
            raise ProvisioningFailure(f"Could not find add-on installer at {path}")
        code = self.runner.run([str(path)], cwd=path.parent)
        if code != 0:
            raise ProvisioningFailure(f"Add-on installer exited with code {code}")


class ProvisioningStep:
    """Creates launch shortcuts and runs the optional add-on installer.

    Each piece fails independently; failures are returned as messages so the
    caller decides how to surface them.
    """

    def __init__(
        self,
        shortcuts: ShortcutFactory,
        addon: AddonInstaller,
        filesystem: FileSystem | None = None,
        desktop: Path | None = None,
        start_menu: Path | None = None,
    ) -> None:
        """Initialize provisioning.

        Args:
            shortcuts: Shortcut creation primitive.
            addon: Add-on installer.
            filesystem: Filesystem abstraction.
            desktop: Desktop folder. Defaults to the user's desktop.
            start_menu: Product start menu folder, created when missing.
        """
        self.shortcuts = shortcuts
        self.addon = addon
        self.fs = filesystem or RealFileSystem()
        self.desktop = desktop or desktop_dir()
        self.start_menu = start_menu or start_menu_dir()

    def create_shortcuts(self, target: Path) -> list[str]:
        """Create the desktop and start menu shortcuts.

        Args:
            target: Install directory holding the product executable.

        Returns:
            One error message per shortcut that could not be created.
        """
        executable = target / PRODUCT_EXECUTABLE
        errors = []

        try:
            self.fs.mkdir(self.start_menu, parents=True, exist_ok=True)
        except OSError as e:
            logger.warning("Could not create start menu folder %s: %s", self.start_menu, e)
            errors.append(f"Shortcut error: {e}")

        for folder in (self.desktop, self.start_menu):
            try:
                created = self.shortcuts.create(
                    executable, folder, SHORTCUT_NAME, SHORTCUT_DESCRIPTION
                )
                logger.debug("Created shortcut %s", created)
            except Exception as e:
                logger.warning("Shortcut creation failed in %s: %s", folder, e)
                errors.append(f"Shortcut error: {e}")
        return errors

    def run_addon(self, target: Path) -> None:
        """Run the add-on installer shipped with the payload.

        Raises:
            Exception: Whatever the add-on installer raised.
        """
        self.addon.execute(target / ADDON_EXECUTABLE)
