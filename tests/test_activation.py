"""Tests for the activation step."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from spv3_installer.activation import IMPORT_PROGRAM, ActivationStep
from spv3_installer.errors import ActivationFailure
from spv3_installer.registry import RegistrationRecord, RegistrationStore


@pytest.fixture
def store(tmp_path: Path) -> RegistrationStore:
    return RegistrationStore(store_dir=tmp_path / "store", export_dir=tmp_path / "export")


@pytest.fixture
def runner() -> MagicMock:
    runner = MagicMock()
    runner.run.return_value = 0
    return runner


class TestActivationStep:
    """Tests for ActivationStep.activate()."""

    def test_writes_record_and_imports(
        self, store: RegistrationStore, runner: MagicMock, tmp_path: Path
    ) -> None:
        target = tmp_path / "Halo SPV3"

        record = ActivationStep(store, runner).activate(target)

        assert record.version == "1.10"
        assert record.exe_path == str(target)
        reg_file = tmp_path / "export" / "Custom.reg"
        runner.run.assert_called_once_with(
            [IMPORT_PROGRAM, "/s", str(reg_file)], cwd=reg_file.parent, elevated=True
        )

    def test_second_activation_keeps_install_path(
        self, store: RegistrationStore, runner: MagicMock, tmp_path: Path
    ) -> None:
        """Test that re-activating keeps the record but imports again."""
        step = ActivationStep(store, runner)
        step.activate(tmp_path / "first")

        record = step.activate(tmp_path / "second")

        assert record.exe_path == str(tmp_path / "first")
        assert store.get("Custom").exe_path == str(tmp_path / "first")
        assert runner.run.call_count == 2

    def test_existing_record_from_other_source_kept(
        self, store: RegistrationStore, runner: MagicMock, tmp_path: Path
    ) -> None:
        store.put("Custom", RegistrationRecord(version="1.08", exe_path="D:\\Halo CE"))

        record = ActivationStep(store, runner).activate(tmp_path / "Halo SPV3")

        assert record.version == "1.08"
        assert record.exe_path == "D:\\Halo CE"
        runner.run.assert_called_once()

    def test_import_failure(
        self, store: RegistrationStore, runner: MagicMock, tmp_path: Path
    ) -> None:
        runner.run.return_value = 1

        with pytest.raises(ActivationFailure, match="Failed to import to Registry."):
            ActivationStep(store, runner).activate(tmp_path)

    def test_import_program_missing(
        self, store: RegistrationStore, runner: MagicMock, tmp_path: Path
    ) -> None:
        runner.run.side_effect = FileNotFoundError("regedit.exe")

        with pytest.raises(ActivationFailure, match="Failed to start regedit.exe"):
            ActivationStep(store, runner).activate(tmp_path)

    def test_unknown_variant(
        self, store: RegistrationStore, runner: MagicMock, tmp_path: Path
    ) -> None:
        step = ActivationStep(store, runner, variant="Beta")

        with pytest.raises(ActivationFailure, match="Failed to write registration record"):
            step.activate(tmp_path)
        runner.run.assert_not_called()

    def test_custom_version(
        self, store: RegistrationStore, runner: MagicMock, tmp_path: Path
    ) -> None:
        record = ActivationStep(store, runner, version="1.0").activate(tmp_path)
        assert record.version == "1.0"
