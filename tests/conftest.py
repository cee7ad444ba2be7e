"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace
from typing import Any, Callable
from unittest.mock import MagicMock

import pytest

from spv3_installer.activation import ActivationStep
from spv3_installer.config import InstallerConfig
from spv3_installer.detection import PrerequisiteDetector
from spv3_installer.filesystem import RealFileSystem
from spv3_installer.operation import CopyTreeInstaller
from spv3_installer.orchestrator import InstallOrchestrator
from spv3_installer.provisioning import ExecutableAddonInstaller, ProvisioningStep
from spv3_installer.registry import RegistrationStore
from spv3_installer.validation import PathValidator

GIB = 1024**3


@pytest.fixture
def temp_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Override home directory for testing."""
    monkeypatch.setattr(Path, "home", lambda: tmp_path)
    return tmp_path


# ============================================================================
# Mock FileSystem Fixture
# ============================================================================


@pytest.fixture
def mock_filesystem() -> MagicMock:
    """Create a mock FileSystem for testing.

    The mock tracks all filesystem operations without touching real files.
    """
    fs = MagicMock()
    fs.exists.return_value = False
    fs.free_bytes.return_value = 20 * GIB
    return fs


# ============================================================================
# Collaborator Doubles
# ============================================================================


class FakeRunner:
    """CommandRunner double recording every command."""

    def __init__(self, code: int = 0) -> None:
        self.code = code
        self.calls: list[tuple[list[str], Path | None, bool]] = []
        self.spawned: list[tuple[list[str], Path | None]] = []

    def run(self, args, cwd=None, elevated=False) -> int:
        self.calls.append((list(args), cwd, elevated))
        return self.code

    def spawn(self, args, cwd=None) -> None:
        self.spawned.append((list(args), cwd))


class FakeProbe:
    """PrerequisiteProbe double; the library sits next to the launcher."""

    def __init__(self, located: Path | None = None, legacy: Path | None = None) -> None:
        self.located = located
        self.legacy = legacy
        self.error: Exception | None = None

    def library_path(self, launcher: Path) -> Path:
        return launcher.parent / "halo1.dll"

    def locate_library(self, launcher: Path) -> Path | None:
        if self.error is not None:
            raise self.error
        return self.located

    def legacy_install_path(self) -> Path | None:
        return self.legacy


class RecordingShortcuts:
    """ShortcutFactory double writing placeholder shortcut files."""

    def __init__(self, log: list[str] | None = None) -> None:
        self.created: list[Path] = []
        self.fail_in: set[Path] = set()
        self.log = log if log is not None else []

    def create(self, target: Path, folder: Path, name: str, description: str) -> Path:
        self.log.append(f"shortcut:{folder.name}")
        if folder in self.fail_in:
            raise OSError("access denied")
        path = folder / f"{name}.lnk"
        path.write_text(str(target))
        self.created.append(path)
        return path


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def fake_probe(tmp_path: Path) -> FakeProbe:
    """Probe reporting a legacy install, so initialise() leaves the gate open."""
    return FakeProbe(legacy=tmp_path / "halo")


@pytest.fixture
def shortcuts() -> RecordingShortcuts:
    return RecordingShortcuts()


@pytest.fixture
def workspace(tmp_path: Path) -> SimpleNamespace:
    """Payload, target, launcher and provisioning folders under tmp_path."""
    source = tmp_path / "data"
    (source / "maps").mkdir(parents=True)
    (source / "manifest.bin").write_bytes(b"manifest")
    (source / "spv3.exe").write_bytes(b"loader")
    (source / "maps" / "a10.map").write_bytes(b"map data")
    (source / "maps" / "b30.map").write_bytes(b"more map data")

    steam_dir = tmp_path / "steam"
    steam_dir.mkdir()
    steam = steam_dir / "steam.exe"
    steam.write_bytes(b"steam")

    desktop = tmp_path / "desktop"
    desktop.mkdir()

    return SimpleNamespace(
        root=tmp_path,
        source=source,
        target=tmp_path / "target",
        steam=steam,
        library=steam_dir / "halo1.dll",
        store=tmp_path / "store",
        export=tmp_path / "export",
        desktop=desktop,
        start_menu=tmp_path / "start" / "Single Player Version 3",
    )


@pytest.fixture
def make_orchestrator(
    workspace: SimpleNamespace,
    fake_runner: FakeRunner,
    fake_probe: FakeProbe,
    shortcuts: RecordingShortcuts,
) -> Callable[..., InstallOrchestrator]:
    """Factory wiring an orchestrator against the workspace.

    Real validation, activation store and copy engine; the probe, command
    runner and shortcut factory are doubles shared with the fixtures of the
    same name.
    """

    def factory(runner: Any = None, **config_overrides: Any) -> InstallOrchestrator:
        runner = runner or fake_runner
        fs = RealFileSystem()
        settings = {
            "source_dir": workspace.source,
            "target_dir": workspace.target,
            "store_dir": workspace.store,
            "steam_exe": workspace.steam,
            "required_free_bytes": 0,
        }
        settings.update(config_overrides)
        config = InstallerConfig(**settings)
        return InstallOrchestrator(
            config=config,
            validator=PathValidator(fs, required_free_bytes=config.required_free_bytes),
            detector=PrerequisiteDetector(fake_probe, fs),
            activation=ActivationStep(
                RegistrationStore(workspace.store, export_dir=workspace.export), runner
            ),
            provisioning=ProvisioningStep(
                shortcuts,
                ExecutableAddonInstaller(runner),
                filesystem=fs,
                desktop=workspace.desktop,
                start_menu=workspace.start_menu,
            ),
            engine=CopyTreeInstaller(),
            filesystem=fs,
            runner=runner,
            exit_process=MagicMock(),
        )

    return factory
