"""Installer and activator for Single Player Version 3."""

__version__ = "0.1.0"

# Export protocol interfaces for type hints and dependency injection
from spv3_installer.protocols import (
    AddonInstaller,
    BulkInstaller,
    CommandRunner,
    FileSystem,
    PrerequisiteProbe,
    ShortcutFactory,
)

__all__ = [
    "__version__",
    "AddonInstaller",
    "BulkInstaller",
    "CommandRunner",
    "FileSystem",
    "PrerequisiteProbe",
    "ShortcutFactory",
]
