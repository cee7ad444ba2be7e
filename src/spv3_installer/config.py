"""Installer configuration."""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

# Default configuration location
CONFIG_DIR = Path.home() / ".spv3-installer"

GIB = 1024**3
REQUIRED_FREE_BYTES = 16 * GIB

# Well-known file names
MANIFEST_NAME = "manifest.bin"
PRODUCT_EXECUTABLE = "spv3.exe"
PREREQUISITE_EXECUTABLE = "haloce.exe"
KERNEL_EXECUTABLE = "hxe.exe"
ADDON_EXECUTABLE = "amaisosu.exe"
PREREQUISITE_SETUP = Path("setup") / "setup.exe"
PROBE_FILE = "io.bin"

CONFLICT_MARKERS = (PREREQUISITE_EXECUTABLE, KERNEL_EXECUTABLE, PRODUCT_EXECUTABLE)

SHORTCUT_NAME = "SPV3"
SHORTCUT_DESCRIPTION = "Single Player Version 3"
START_MENU_FOLDER = "Single Player Version 3"


def _default_source_dir() -> Path:
    return Path.cwd() / "data"


def _default_target_dir() -> Path:
    return Path.home() / "Documents" / "My Games" / "Halo SPV3"


def _default_steam_exe() -> Path:
    return Path("C:/Program Files (x86)/Steam/steam.exe")


class InstallerConfig(BaseModel):
    """Settings for one installer run.

    Attributes:
        source_dir: Directory holding the payload and its manifest.
        target_dir: Default install target.
        store_dir: Directory for the registration record store.
        steam_exe: Default launcher path used for prerequisite detection.
        compress: Let the bulk installer store assets compressed.
        skip_prerequisite_detection: Bypass the legacy detection gate, for testing.
        required_free_bytes: Minimum free space on the target volume.
        registration_variant: Key of the registration record.
        registration_version: Version written into new registration records.
    """

    model_config = ConfigDict(populate_by_name=True)

    source_dir: Path = Field(default_factory=_default_source_dir, alias="sourceDir")
    target_dir: Path = Field(default_factory=_default_target_dir, alias="targetDir")
    store_dir: Path = Field(default_factory=lambda: CONFIG_DIR, alias="storeDir")
    steam_exe: Path = Field(default_factory=_default_steam_exe, alias="steamExe")
    compress: bool = True
    skip_prerequisite_detection: bool = Field(default=False, alias="skipPrerequisiteDetection")
    required_free_bytes: int = Field(default=REQUIRED_FREE_BYTES, alias="requiredFreeBytes")
    registration_variant: str = Field(default="Custom", alias="registrationVariant")
    registration_version: str = Field(default="1.10", alias="registrationVersion")

    @property
    def manifest_path(self) -> Path:
        return self.source_dir / MANIFEST_NAME

    @property
    def prerequisite_setup(self) -> Path:
        return self.source_dir / PREREQUISITE_SETUP


# Keys accepted by `config set`, mapped to model field names
SETTABLE_KEYS = {
    "source-dir": "source_dir",
    "target-dir": "target_dir",
    "steam-exe": "steam_exe",
    "compress": "compress",
    "skip-prerequisite-detection": "skip_prerequisite_detection",
}


class ConfigStore:
    """Loads and saves the installer configuration file."""

    def __init__(self, config_dir: Path | None = None) -> None:
        """Initialize the config store.

        Args:
            config_dir: Directory holding config.json. Defaults to ~/.spv3-installer.
        """
        self.config_dir = config_dir or CONFIG_DIR
        self.config_file = self.config_dir / "config.json"

    def load(self) -> InstallerConfig:
        """Load configuration from disk.

        Returns:
            InstallerConfig, with defaults when no file exists.
        """
        if not self.config_file.exists():
            return InstallerConfig()

        data = json.loads(self.config_file.read_text())
        return InstallerConfig.model_validate(data)

    def save(self, config: InstallerConfig) -> None:
        """Save configuration to disk.

        Args:
            config: Configuration to save.
        """
        self.config_dir.mkdir(parents=True, exist_ok=True)
        data = config.model_dump(by_alias=True, mode="json")
        self.config_file.write_text(json.dumps(data, indent=2))

    def set_value(self, key: str, value: str) -> InstallerConfig:
        """Set a single configuration value and persist it.

        Args:
            key: Dashed key from SETTABLE_KEYS.
            value: Raw string value.

        Returns:
            The updated configuration.

        Raises:
            KeyError: If key is unknown.
            ValueError: If value does not validate.
        """
        field_name = SETTABLE_KEYS[key]
        config = self.load()
        data = config.model_dump()
        data[field_name] = value
        updated = InstallerConfig.model_validate(data)
        self.save(updated)
        return updated
