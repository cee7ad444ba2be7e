"""Main SPV3 Installer TUI Application."""

from __future__ import annotations

import asyncio
import logging
import threading
from pathlib import Path
from typing import TYPE_CHECKING, Any

from textual import on
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, Checkbox, Footer, Input, ProgressBar, Static

from spv3_installer.tui.screens.confirmation import ConfirmationScreen
from spv3_installer.types import ViewState, WorkflowState

if TYPE_CHECKING:
    from spv3_installer.orchestrator import InstallOrchestrator

logger = logging.getLogger(__name__)

# Container id per view; exactly one is displayed at a time
PANEL_IDS = {
    ViewState.MAIN: "panel-main",
    ViewState.PREREQUISITE_INSTALL: "panel-prerequisite",
    ViewState.ALTERNATE_PLATFORM: "panel-alternate",
    ViewState.LOAD_READY: "panel-load",
}


class Spv3InstallerApp(App):
    """SPV3 Installer TUI Application.

    Renders the orchestrator's `WorkflowState` and forwards user input to it.
    The app never changes workflow state itself.
    """

    TITLE = "SPV3 Installer"

    CSS = """
    Screen {
        background: $surface;
    }

    #app-title {
        dock: top;
        height: 3;
        padding: 1 2;
        background: $primary-background;
        text-style: bold;
        color: $text;
    }

    .panel {
        height: 1fr;
        padding: 1 2;
    }

    .panel Input {
        margin: 1 0;
    }

    .panel-actions {
        height: auto;
        margin: 1 0;
    }

    .panel-actions Button {
        margin: 0 1;
    }

    #install-progress {
        margin: 1 0;
    }

    Footer {
        background: $primary-background;
    }

    #status-bar {
        dock: bottom;
        height: 1;
        padding: 0 2;
        background: $primary-background;
        color: $text-muted;
    }
    """

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit"),
        Binding("f5", "install", "Install"),
        Binding("f6", "view_alternate", "Halo MCC"),
        Binding("f7", "view_prerequisite", "Halo CE"),
        Binding("escape", "view_main", "Back", show=False),
    ]

    def __init__(self, orchestrator: InstallOrchestrator, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.orchestrator = orchestrator
        self._cancel = threading.Event()
        self._unsubscribe = None

    def compose(self) -> ComposeResult:
        yield Static("SPV3 Installer", id="app-title")

        with Vertical(id=PANEL_IDS[ViewState.MAIN], classes="panel"):
            yield Static("Install directory")
            yield Input(
                value=str(self.orchestrator.target),
                placeholder="Directory to install SPV3 to",
                id="target-input",
            )
            yield Checkbox(
                "Keep payload assets compressed",
                value=self.orchestrator.config.compress,
                id="compress",
            )
            yield ProgressBar(total=100, show_eta=False, id="install-progress")
            with Horizontal(classes="panel-actions"):
                yield Button("Install SPV3", id="install", variant="primary", disabled=True)
                yield Button("Own Halo MCC?", id="show-alternate")

        with Vertical(id=PANEL_IDS[ViewState.PREREQUISITE_INSTALL], classes="panel"):
            yield Static("Halo Custom Edition is required before installing SPV3.")
            with Horizontal(classes="panel-actions"):
                yield Button("Install HCE", id="install-prerequisite", variant="primary")
                yield Button("Own Halo MCC?", id="show-alternate-from-prerequisite")

        with Vertical(id=PANEL_IDS[ViewState.ALTERNATE_PLATFORM], classes="panel"):
            yield Static("Steam executable", id="locator-label")
            yield Input(
                value=str(self.orchestrator.locator),
                placeholder="Path to Steam.exe or its shortcut",
                id="locator-input",
            )
            yield Static(self.orchestrator.state.locator_status, id="locator-status")
            with Horizontal(classes="panel-actions"):
                yield Button("Back", id="show-main")
                yield Button("Own Halo CE?", id="show-prerequisite")

        with Vertical(id=PANEL_IDS[ViewState.LOAD_READY], classes="panel"):
            yield Static("SPV3 is installed and ready to play.")
            with Horizontal(classes="panel-actions"):
                yield Button("Load SPV3", id="launch", variant="success")

        yield Static(self.orchestrator.state.status, id="status-bar")
        yield Footer()

    def on_mount(self) -> None:
        """Bind to the orchestrator and run the startup checks."""
        self.orchestrator.exit_process = self._exit_after_launch
        self._unsubscribe = self.orchestrator.subscribe(self._render_state)
        self._render_state(self.orchestrator.state)
        self.orchestrator.initialise()

    def on_unmount(self) -> None:
        self._cancel.set()
        if self._unsubscribe is not None:
            self._unsubscribe()

    def _render_state(self, state: WorkflowState) -> None:
        """Update every widget from a workflow state."""
        self.query_one("#status-bar", Static).update(state.status)
        self.query_one("#locator-status", Static).update(state.locator_status)
        self.query_one("#install", Button).disabled = not state.can_install

        for view, visible in state.visible_panels().items():
            self.query_one(f"#{PANEL_IDS[view]}").display = visible

        if state.progress is not None:
            self.query_one("#install-progress", ProgressBar).update(
                progress=state.progress.percent
            )

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    @on(Input.Submitted, "#target-input")
    def on_target_submitted(self, event: Input.Submitted) -> None:
        if event.value.strip():
            self.orchestrator.set_target(Path(event.value.strip()))

    @on(Input.Submitted, "#locator-input")
    def on_locator_submitted(self, event: Input.Submitted) -> None:
        if event.value.strip():
            self.orchestrator.set_locator(Path(event.value.strip()))

    @on(Button.Pressed, "#install")
    def on_install_pressed(self) -> None:
        self.action_install()

    @on(Button.Pressed, "#show-alternate")
    @on(Button.Pressed, "#show-alternate-from-prerequisite")
    def on_show_alternate(self) -> None:
        self.action_view_alternate()

    @on(Button.Pressed, "#show-main")
    def on_show_main(self) -> None:
        self.action_view_main()

    @on(Button.Pressed, "#show-prerequisite")
    def on_show_prerequisite(self) -> None:
        self.action_view_prerequisite()

    @on(Checkbox.Changed, "#compress")
    def on_compress_changed(self, event: Checkbox.Changed) -> None:
        config = self.orchestrator.config
        self.orchestrator.config = config.model_copy(update={"compress": event.value})

    @on(Button.Pressed, "#install-prerequisite")
    def on_install_prerequisite(self) -> None:
        self.orchestrator.install_prerequisite()

    @on(Button.Pressed, "#launch")
    def on_launch(self) -> None:
        self.orchestrator.invoke_product()

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def action_install(self) -> None:
        """Start a commit if the gate is open."""
        if not self.orchestrator.state.can_install:
            return
        self.run_worker(self._commit(), group="commit")

    def action_view_alternate(self) -> None:
        self.orchestrator.view_alternate_platform()

    def action_view_prerequisite(self) -> None:
        self.orchestrator.view_prerequisite_install()

    def action_view_main(self) -> None:
        if self.orchestrator.state.view is ViewState.ALTERNATE_PLATFORM:
            self.orchestrator.view_main()

    async def _commit(self) -> None:
        await self.orchestrator.commit(confirm=self._acknowledge, cancel=self._cancel)

    async def _acknowledge(self, message: str) -> None:
        """Show message in a modal and wait until it is dismissed."""
        future: asyncio.Future[bool] = asyncio.get_running_loop().create_future()

        def on_dismiss(result: bool | None) -> None:
            if not future.done():
                future.set_result(bool(result))

        self.push_screen(ConfirmationScreen("SPV3", message), callback=on_dismiss)
        await future

    def _exit_after_launch(self, code: int) -> None:
        logger.debug("Exiting after launching SPV3")
        self.exit(return_code=code)
