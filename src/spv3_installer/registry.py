"""Registration record store used by activation."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from spv3_installer.config import CONFIG_DIR

# Registry keys per product variant, relative to HKLM
VARIANT_KEYS = {
    "Custom": r"SOFTWARE\WOW6432Node\Microsoft\Microsoft Games\Halo CE",
    "Retail": r"SOFTWARE\WOW6432Node\Microsoft\Microsoft Games\Halo",
    "Trial": r"SOFTWARE\WOW6432Node\Microsoft\Microsoft Games\Halo Trial",
}

REG_HEADER = "Windows Registry Editor Version 5.00"


class RegistrationRecord(BaseModel):
    """Registration data for one product variant."""

    model_config = ConfigDict(populate_by_name=True)

    version: str = Field(alias="Version")
    exe_path: str | None = Field(default=None, alias="EXE Path")
    written_at: datetime | None = Field(default=None, alias="writtenAt")


class RegistrationRegistry(BaseModel):
    """All registration records, keyed by variant name."""

    version: str = "1.0"
    records: dict[str, RegistrationRecord] = Field(default_factory=dict)


def _escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def render_reg_file(variant: str, record: RegistrationRecord) -> str:
    """Render a record as a Windows .reg import file.

    Args:
        variant: Product variant name.
        record: Record to render.

    Returns:
        File content.

    Raises:
        ValueError: If the variant has no known registry key.
    """
    try:
        key = VARIANT_KEYS[variant]
    except KeyError:
        raise ValueError(f"Unknown product variant '{variant}'") from None

    lines = [REG_HEADER, "", f"[HKEY_LOCAL_MACHINE\\{key}]"]
    lines.append(f'"Version"="{_escape(record.version)}"')
    if record.exe_path is not None:
        lines.append(f'"EXE Path"="{_escape(record.exe_path)}"')
    return "\r\n".join(lines) + "\r\n"


class RegistrationStore:
    """Persists registration records and renders them for import."""

    def __init__(self, store_dir: Path | None = None, export_dir: Path | None = None) -> None:
        """Initialize the store.

        Args:
            store_dir: Directory for registrations.json. Defaults to ~/.spv3-installer.
            export_dir: Directory receiving .reg files. Defaults to the working directory.
        """
        self.store_dir = store_dir or CONFIG_DIR
        self.records_file = self.store_dir / "registrations.json"
        self.export_dir = export_dir or Path.cwd()

    def load(self) -> RegistrationRegistry:
        """Load all records from disk."""
        if not self.records_file.exists():
            return RegistrationRegistry()

        data = json.loads(self.records_file.read_text())
        return RegistrationRegistry.model_validate(data)

    def save(self, registry: RegistrationRegistry) -> None:
        """Save all records to disk."""
        self.store_dir.mkdir(parents=True, exist_ok=True)
        data = registry.model_dump(by_alias=True, exclude_none=True, mode="json")
        self.records_file.write_text(json.dumps(data, indent=2))

    def exists(self, variant: str) -> bool:
        """Check whether a record exists for the variant."""
        return variant in self.load().records

    def get(self, variant: str) -> RegistrationRecord | None:
        """Get the record for a variant, if any."""
        return self.load().records.get(variant)

    def put(self, variant: str, record: RegistrationRecord) -> RegistrationRecord:
        """Store a record, replacing any previous one for the variant."""
        registry = self.load()
        record = record.model_copy(update={"written_at": datetime.now(timezone.utc)})
        registry.records[variant] = record
        self.save(registry)
        return record

    def write_reg_file(self, variant: str, record: RegistrationRecord) -> Path:
        """Write the .reg import file for a record.

        Returns:
            Path of the written file, named after the variant.
        """
        self.export_dir.mkdir(parents=True, exist_ok=True)
        path = self.export_dir / f"{variant}.reg"
        # regedit expects UTF-16 with a byte order mark for version 5.00 files
        path.write_bytes(render_reg_file(variant, record).encode("utf-16"))
        return path
