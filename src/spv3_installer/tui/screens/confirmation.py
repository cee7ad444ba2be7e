"""Confirmation modal screen."""

from __future__ import annotations

from textual import on
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Static


class ConfirmationScreen(ModalScreen[bool]):
    """Modal screen that blocks until the user acknowledges a message.

    With `cancellable=False` only the OK button is shown and every way of
    closing the screen dismisses with True.
    """

    DEFAULT_CSS = """
    ConfirmationScreen {
        align: center middle;
        background: $background 60%;
    }
    ConfirmationScreen > Vertical {
        width: 72;
        height: auto;
        border: round $accent;
        background: $panel;
        padding: 1;
    }
    #confirm-title {
        text-style: bold;
        width: 100%;
        content-align: center middle;
    }
    #confirm-message {
        margin: 1 0;
    }
    #confirm-actions {
        height: 3;
        align-horizontal: right;
    }
    #confirm-actions Button {
        min-width: 10;
        margin-left: 1;
    }
    """

    BINDINGS = [
        Binding("enter", "confirm", "OK"),
        Binding("y", "confirm", "Yes", show=False),
        Binding("n", "cancel", "No", show=False),
        Binding("escape", "cancel", "Cancel"),
    ]

    def __init__(self, title: str, message: str, cancellable: bool = False, **kwargs) -> None:
        super().__init__(**kwargs)
        self.title_text = title
        self.message_text = message
        self.cancellable = cancellable

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Static(self.title_text, id="confirm-title")
            yield Static(self.message_text, id="confirm-message")
            with Horizontal(id="confirm-actions"):
                yield Button("OK", id="confirm-ok", variant="primary")
                if self.cancellable:
                    yield Button("Cancel", id="confirm-cancel", variant="error")

    @on(Button.Pressed, "#confirm-ok")
    def on_confirm_ok(self) -> None:
        self.dismiss(True)

    @on(Button.Pressed, "#confirm-cancel")
    def on_confirm_cancel(self) -> None:
        self.dismiss(False)

    def action_confirm(self) -> None:
        self.dismiss(True)

    def action_cancel(self) -> None:
        self.dismiss(not self.cancellable)
