"""CLI commands using Typer."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

if TYPE_CHECKING:
    from spv3_installer.context import AppContext
    from spv3_installer.types import WorkflowState

import typer
from rich.logging import RichHandler
from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn

from spv3_installer import __version__
from spv3_installer.config import PRODUCT_EXECUTABLE
from spv3_installer.context import create_context
from spv3_installer.tui.console import TUI
from spv3_installer.types import ViewState, WorkflowPhase

app = typer.Typer(
    name="spv3-installer",
    help="Install and activate Single Player Version 3",
    no_args_is_help=True,
)

config_app = typer.Typer(help="Configuration commands")
app.add_typer(config_app, name="config")

tui = TUI()


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        tui.console.print(f"spv3-installer v{__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool) -> None:
    """Route log records through Rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=tui.console, rich_tracebacks=True)],
        force=True,
    )


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-v",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
    verbose: Annotated[bool, typer.Option("--verbose", help="Enable debug logging")] = False,
) -> None:
    """Install and activate Single Player Version 3."""
    configure_logging(verbose)


# ============================================================================
# Checks
# ============================================================================


@app.command()
def validate(
    path: Annotated[Path, typer.Argument(help="Candidate install directory")],
    _context=None,
) -> None:
    """Check whether SPV3 can be installed to a directory."""
    ctx = _context or create_context()
    report = ctx.orchestrator.set_target(path)
    tui.show_validation(report)
    if not report.can_install:
        raise typer.Exit(1)


@app.command()
def detect(
    locator: Annotated[Path, typer.Argument(help="Steam.exe or a Steam shortcut")],
    _context=None,
) -> None:
    """Locate the Halo CE prerequisite through a Steam installation."""
    ctx = _context or create_context()
    report = ctx.orchestrator.set_locator(locator)
    tui.show_detection(report)
    if not report.location.found:
        raise typer.Exit(1)


# ============================================================================
# Install Commands
# ============================================================================


def _apply_overrides(
    ctx: AppContext,
    compress: bool | None,
    skip_detection: bool | None,
) -> None:
    """Apply command line overrides to the orchestrator's configuration."""
    updates: dict[str, object] = {}
    if compress is not None:
        updates["compress"] = compress
    if skip_detection is not None:
        updates["skip_prerequisite_detection"] = skip_detection
    if updates:
        ctx.orchestrator.config = ctx.orchestrator.config.model_copy(update=updates)


def _prepare(ctx: AppContext, target: Path | None, steam: Path | None) -> None:
    """Run the checks that gate a commit.

    Raises:
        typer.Exit: If installation is not possible.
    """
    orchestrator = ctx.orchestrator
    orchestrator.initialise()
    state = orchestrator.state

    if state.phase is WorkflowPhase.MISSING_MANIFEST:
        tui.show_error(state.status)
        raise typer.Exit(1)

    if steam is not None or state.phase is WorkflowPhase.MISSING_PREREQUISITE:
        report = orchestrator.set_locator(steam or orchestrator.config.steam_exe)
        tui.show_detection(report)

    if orchestrator.state.phase is WorkflowPhase.MISSING_PREREQUISITE:
        tui.show_error(orchestrator.state.status)
        raise typer.Exit(1)

    report = orchestrator.set_target(target or orchestrator.config.target_dir)
    tui.show_validation(report)
    if not orchestrator.state.can_install:
        raise typer.Exit(1)


def _run_commit(ctx: AppContext, assume_yes: bool) -> WorkflowState:
    """Run the commit with a progress bar bound to the workflow state."""
    orchestrator = ctx.orchestrator

    def confirm(message: str) -> None:
        if assume_yes:
            tui.show_info(message)
        else:
            tui.acknowledge(message)

    with Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=tui.console,
    ) as progress:
        task = progress.add_task("Installing SPV3...", total=100)

        def on_state(state: WorkflowState) -> None:
            if state.progress is not None:
                progress.update(task, completed=state.progress.percent)

        unsubscribe = orchestrator.subscribe(on_state)
        try:
            return asyncio.run(orchestrator.commit(confirm=confirm))
        finally:
            unsubscribe()


@app.command()
def install(
    target: Annotated[
        Path | None, typer.Option("--target", "-t", help="Install directory")
    ] = None,
    steam: Annotated[
        Path | None, typer.Option("--steam", "-s", help="Steam.exe or a Steam shortcut")
    ] = None,
    compress: Annotated[
        bool | None,
        typer.Option("--compress/--no-compress", help="Keep compressed payload assets"),
    ] = None,
    skip_detection: Annotated[
        bool | None,
        typer.Option(
            "--skip-detection/--detect",
            help="Bypass the prerequisite detection gate (testing only)",
        ),
    ] = None,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Do not wait for confirmation")] = False,
    _context=None,
) -> None:
    """Install and activate SPV3."""
    ctx = _context or create_context()
    tui.show_welcome()
    _apply_overrides(ctx, compress, skip_detection)
    _prepare(ctx, target, steam)

    state = _run_commit(ctx, yes)
    if state.phase is WorkflowPhase.FAILED_BUT_RECOVERABLE:
        tui.show_error(state.status)
        raise typer.Exit(1)

    if state.view is ViewState.LOAD_READY:
        tui.show_success(state.status)
        tui.show_info("Run: spv3-installer launch")
    else:
        tui.show_warning(state.status)


@app.command("install-prerequisite")
def install_prerequisite(
    _context=None,
) -> None:
    """Run the Halo CE setup bundled with the data directory."""
    ctx = _context or create_context()
    before = ctx.orchestrator.state.status
    ctx.orchestrator.install_prerequisite()
    after = ctx.orchestrator.state.status
    if after != before:
        tui.show_error(after)
        raise typer.Exit(1)
    tui.show_success("HCE setup finished")


@app.command()
def launch(
    target: Annotated[
        Path | None, typer.Option("--target", "-t", help="Install directory")
    ] = None,
    _context=None,
) -> None:
    """Launch the installed SPV3 loader and exit."""
    ctx = _context or create_context()
    orchestrator = ctx.orchestrator
    if target is not None:
        orchestrator.target = target
    executable = orchestrator.target / PRODUCT_EXECUTABLE
    if not ctx.filesystem.exists(executable):
        tui.show_error(f"SPV3 loader not found at {executable}")
        raise typer.Exit(1)
    orchestrator.invoke_product()


# ============================================================================
# Config Commands
# ============================================================================


@config_app.command("show")
def config_show(
    _context=None,
) -> None:
    """Show current configuration."""
    ctx = _context or create_context()
    tui.show_config(ctx.config, ctx.config_store.config_file)


@config_app.command("set")
def config_set(
    key: Annotated[str, typer.Argument(help="Configuration key")],
    value: Annotated[str, typer.Argument(help="Configuration value")],
    _context=None,
) -> None:
    """Set a configuration value."""
    ctx = _context or create_context()
    try:
        ctx.config_store.set_value(key, value)
    except KeyError:
        tui.show_error(f"Unknown configuration key: {key}")
        raise typer.Exit(1) from None
    except ValueError as e:
        tui.show_error(f"Invalid value for {key}: {e}")
        raise typer.Exit(1) from e
    tui.show_success(f"Set {key} to {value}")


# ============================================================================
# Interactive Mode
# ============================================================================


@app.command("interactive")
def interactive(
    _context=None,
) -> None:
    """Run the installer in interactive TUI mode."""
    from spv3_installer.tui.app import Spv3InstallerApp

    ctx = _context or create_context()
    Spv3InstallerApp(orchestrator=ctx.orchestrator).run()


if __name__ == "__main__":
    app()
