"""Rich console output for non-interactive CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Confirm
from rich.table import Table

from spv3_installer import __version__

if TYPE_CHECKING:
    from spv3_installer.config import InstallerConfig
    from spv3_installer.types import DetectionReport, ValidationReport


console = Console()


def _format_bytes(value: int | None) -> str:
    if value is None:
        return "unknown"
    return f"{value / 1024**3:.1f} GiB"


class TUI:
    """Text User Interface for spv3-installer (non-interactive mode)."""

    def __init__(self) -> None:
        """Initialize TUI."""
        self.console = Console()

    def show_welcome(self) -> None:
        """Display welcome banner."""
        self.console.print(
            Panel(
                f"[bold blue]SPV3 Installer[/bold blue] v{__version__}\n"
                "Installs and activates Single Player Version 3",
                title="Welcome",
                border_style="blue",
            )
        )

    def acknowledge(self, message: str) -> None:
        """Show a message and wait for the user to continue."""
        self.console.print(Panel(escape(message), border_style="green"))
        Confirm.ask("Continue", default=True)

    def show_validation(self, report: ValidationReport) -> None:
        """Display the result of an install target validation.

        Args:
            report: Validation report.
        """
        target = report.target
        table = Table(title=f"Install Target: {target.path}")
        table.add_column("Check", style="cyan")
        table.add_column("Result")

        table.add_row("Writable", "[green]yes[/green]" if target.writable else "[red]no[/red]")
        table.add_row("Free space", _format_bytes(target.free_bytes))
        table.add_row(
            "Existing install",
            "[red]found[/red]" if target.has_conflicting_install else "[green]none[/green]",
        )
        self.console.print(table)

        if report.can_install:
            self.show_success(report.reason)
        else:
            self.show_error(report.reason)

    def show_detection(self, report: DetectionReport) -> None:
        """Display the result of a prerequisite detection.

        Args:
            report: Detection report.
        """
        self.show_info(report.locator_status)
        if report.location.found:
            self.show_success(
                f"Prerequisite found at {report.location.path} "
                f"({report.location.provenance.value})"
            )
        elif report.status:
            self.show_error(report.status)
        else:
            self.show_warning("Prerequisite not found")

    def show_config(self, config: InstallerConfig, config_file: object) -> None:
        """Display the active configuration."""
        self.console.print("\n[bold]Configuration[/bold]")
        self.console.print(f"  Config file: {config_file}")
        self.console.print(f"  Data directory: {config.source_dir}")
        self.console.print(f"  Install target: {config.target_dir}")
        self.console.print(f"  Steam executable: {config.steam_exe}")
        self.console.print(f"  Compress: {config.compress}")
        self.console.print(
            f"  Skip prerequisite detection: {config.skip_prerequisite_detection}"
        )

    def show_success(self, message: str) -> None:
        """Show success message."""
        self.console.print(f"[green]✓[/green] {escape(message)}")

    def show_error(self, message: str) -> None:
        """Show error message."""
        self.console.print(f"[red]✗[/red] {escape(message)}")

    def show_warning(self, message: str) -> None:
        """Show warning message."""
        self.console.print(f"[yellow]![/yellow] {escape(message)}")

    def show_info(self, message: str) -> None:
        """Show info message."""
        self.console.print(f"[blue]i[/blue] {escape(message)}")
