"""TUI screens package."""

from spv3_installer.tui.screens.confirmation import ConfirmationScreen

__all__ = ["ConfirmationScreen"]
