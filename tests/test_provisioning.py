"""Tests for shortcut and add-on provisioning."""

from __future__ import annotations

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from spv3_installer.errors import ProvisioningFailure
from spv3_installer.filesystem import RealFileSystem
from spv3_installer.protocols import AddonInstaller, ShortcutFactory
from spv3_installer.provisioning import (
    ExecutableAddonInstaller,
    ProvisioningStep,
    SystemShortcutFactory,
    start_menu_dir,
)


@pytest.fixture
def folders(tmp_path: Path) -> tuple[Path, Path]:
    desktop = tmp_path / "Desktop"
    desktop.mkdir()
    return desktop, tmp_path / "Programs" / "Single Player Version 3"


class TestStartMenuDir:
    """Tests for start_menu_dir()."""

    def test_windows_uses_appdata(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        monkeypatch.setenv("APPDATA", str(tmp_path))

        path = start_menu_dir("win32")

        assert path == (
            tmp_path / "Microsoft" / "Windows" / "Start Menu" / "Programs"
            / "Single Player Version 3"
        )

    def test_elsewhere_uses_xdg(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path))

        assert start_menu_dir("linux") == tmp_path / "applications" / "Single Player Version 3"


class TestSystemShortcutFactory:
    """Tests for SystemShortcutFactory."""

    def test_satisfies_protocol(self) -> None:
        assert isinstance(SystemShortcutFactory(), ShortcutFactory)

    @pytest.mark.skipif(sys.platform == "win32", reason="desktop entries are not used on Windows")
    def test_desktop_entry(self, tmp_path: Path) -> None:
        target = tmp_path / "Halo SPV3" / "spv3.exe"

        path = SystemShortcutFactory("linux").create(
            target, tmp_path, "SPV3", "Single Player Version 3"
        )

        assert path == tmp_path / "SPV3.desktop"
        content = path.read_text()
        assert "Name=SPV3" in content
        assert f'Exec="{target}"' in content
        assert f"Path={target.parent}" in content


class TestExecutableAddonInstaller:
    """Tests for ExecutableAddonInstaller."""

    def test_satisfies_protocol(self) -> None:
        assert isinstance(ExecutableAddonInstaller(MagicMock()), AddonInstaller)

    def test_missing_executable(self, tmp_path: Path) -> None:
        runner = MagicMock()

        with pytest.raises(ProvisioningFailure, match="Could not find add-on installer"):
            ExecutableAddonInstaller(runner).execute(tmp_path / "amaisosu.exe")
        runner.run.assert_not_called()

    def test_runs_in_its_folder(self, tmp_path: Path) -> None:
        addon = tmp_path / "amaisosu.exe"
        addon.write_bytes(b"")
        runner = MagicMock()
        runner.run.return_value = 0

        ExecutableAddonInstaller(runner).execute(addon)

        runner.run.assert_called_once_with([str(addon)], cwd=tmp_path)

    def test_non_zero_exit(self, tmp_path: Path) -> None:
        addon = tmp_path / "amaisosu.exe"
        addon.write_bytes(b"")
        runner = MagicMock()
        runner.run.return_value = 2

        with pytest.raises(ProvisioningFailure, match="exited with code 2"):
            ExecutableAddonInstaller(runner).execute(addon)


class TestProvisioningStep:
    """Tests for ProvisioningStep."""

    def test_creates_both_shortcuts(self, folders: tuple[Path, Path], tmp_path: Path) -> None:
        desktop, start_menu = folders
        shortcuts = MagicMock()
        step = ProvisioningStep(
            shortcuts, MagicMock(), RealFileSystem(), desktop=desktop, start_menu=start_menu
        )

        errors = step.create_shortcuts(tmp_path / "Halo SPV3")

        assert errors == []
        assert start_menu.is_dir()
        executable = tmp_path / "Halo SPV3" / "spv3.exe"
        folders_used = [c.args[1] for c in shortcuts.create.call_args_list]
        assert folders_used == [desktop, start_menu]
        for call in shortcuts.create.call_args_list:
            assert call.args[0] == executable
            assert call.args[2] == "SPV3"
            assert call.args[3] == "Single Player Version 3"

    def test_failures_are_independent(self, folders: tuple[Path, Path], tmp_path: Path) -> None:
        """Test that a failing desktop shortcut does not stop the start menu one."""
        desktop, start_menu = folders
        shortcuts = MagicMock()
        shortcuts.create.side_effect = [PermissionError("access denied"), start_menu / "SPV3.lnk"]
        step = ProvisioningStep(
            shortcuts, MagicMock(), RealFileSystem(), desktop=desktop, start_menu=start_menu
        )

        errors = step.create_shortcuts(tmp_path)

        assert errors == ["Shortcut error: access denied"]
        assert shortcuts.create.call_count == 2

    def test_start_menu_folder_failure_reported(
        self, mock_filesystem: MagicMock, folders: tuple[Path, Path], tmp_path: Path
    ) -> None:
        desktop, start_menu = folders
        mock_filesystem.mkdir.side_effect = OSError("read-only")
        shortcuts = MagicMock()
        shortcuts.create.side_effect = [desktop / "SPV3.lnk", FileNotFoundError("no folder")]
        step = ProvisioningStep(
            shortcuts, MagicMock(), mock_filesystem, desktop=desktop, start_menu=start_menu
        )

        errors = step.create_shortcuts(tmp_path)

        assert errors == ["Shortcut error: read-only", "Shortcut error: no folder"]

    def test_run_addon(self, tmp_path: Path) -> None:
        addon = MagicMock()
        step = ProvisioningStep(MagicMock(), addon, desktop=tmp_path, start_menu=tmp_path)

        step.run_addon(tmp_path / "Halo SPV3")

        addon.execute.assert_called_once_with(tmp_path / "Halo SPV3" / "amaisosu.exe")

    def test_run_addon_propagates(self, tmp_path: Path) -> None:
        addon = MagicMock()
        addon.execute.side_effect = FileNotFoundError("missing")
        step = ProvisioningStep(MagicMock(), addon, desktop=tmp_path, start_menu=tmp_path)

        with pytest.raises(FileNotFoundError):
            step.run_addon(tmp_path)
