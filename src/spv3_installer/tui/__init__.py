"""TUI package for spv3-installer.

This package provides both interactive (Textual-based) and non-interactive
(Rich-based) terminal user interface components.
"""

from spv3_installer.tui.app import Spv3InstallerApp
from spv3_installer.tui.console import TUI, console
from spv3_installer.tui.screens import ConfirmationScreen

__all__ = [
    # App
    "Spv3InstallerApp",
    # Console
    "TUI",
    "console",
    # Screens
    "ConfirmationScreen",
]
