"""Tests for installer configuration."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from spv3_installer.config import ConfigStore, InstallerConfig


class TestInstallerConfig:
    """Tests for InstallerConfig model."""

    def test_defaults(self, temp_home: Path) -> None:
        config = InstallerConfig()

        assert config.target_dir == temp_home / "Documents" / "My Games" / "Halo SPV3"
        assert config.compress is True
        assert config.skip_prerequisite_detection is False
        assert config.required_free_bytes == 16 * 1024**3
        assert config.registration_variant == "Custom"
        assert config.registration_version == "1.10"

    def test_derived_paths(self, tmp_path: Path) -> None:
        config = InstallerConfig(source_dir=tmp_path)

        assert config.manifest_path == tmp_path / "manifest.bin"
        assert config.prerequisite_setup == tmp_path / "setup" / "setup.exe"

    def test_populate_by_alias(self, tmp_path: Path) -> None:
        config = InstallerConfig.model_validate(
            {"sourceDir": str(tmp_path), "skipPrerequisiteDetection": True}
        )

        assert config.source_dir == tmp_path
        assert config.skip_prerequisite_detection is True


class TestConfigStore:
    """Tests for ConfigStore."""

    def test_load_without_file(self, tmp_path: Path) -> None:
        store = ConfigStore(tmp_path)
        assert store.load() == InstallerConfig()

    def test_save_uses_camel_case(self, tmp_path: Path) -> None:
        store = ConfigStore(tmp_path / "cfg")

        store.save(InstallerConfig(compress=False))

        data = json.loads((tmp_path / "cfg" / "config.json").read_text())
        assert data["compress"] is False
        assert "skipPrerequisiteDetection" in data
        assert "targetDir" in data

    def test_save_then_load(self, tmp_path: Path) -> None:
        store = ConfigStore(tmp_path)
        config = InstallerConfig(target_dir=tmp_path / "SPV3", compress=False)

        store.save(config)

        assert store.load() == config

    def test_set_value(self, tmp_path: Path) -> None:
        store = ConfigStore(tmp_path)

        updated = store.set_value("target-dir", str(tmp_path / "Games"))

        assert updated.target_dir == tmp_path / "Games"
        assert store.load().target_dir == tmp_path / "Games"

    def test_set_boolean(self, tmp_path: Path) -> None:
        store = ConfigStore(tmp_path)

        store.set_value("skip-prerequisite-detection", "true")

        assert store.load().skip_prerequisite_detection is True

    def test_set_unknown_key(self, tmp_path: Path) -> None:
        with pytest.raises(KeyError):
            ConfigStore(tmp_path).set_value("colour", "blue")

    def test_set_invalid_value(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError):
            ConfigStore(tmp_path).set_value("compress", "sometimes")
