"""Payment method selection modal screen."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container
from textual.events import Key
from textual.screen import ModalScreen
from textual.widgets import Static

from billdesk.models import Bill
from billdesk.rendering import format_money, method_label


class PaymentModal(ModalScreen[str | None]):
    """Ask which payment method settled the bill before recording it."""

    CSS = """
    PaymentModal {
        align: center middle;
        background: $background 60%;
    }

    #payment-dialog {
        width: 56;
        height: auto;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #payment-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    #payment-info {
        color: white;
        margin-bottom: 1;
    }

    #payment-methods {
        border: heavy $secondary;
        padding: 0 1;
        color: white;
        margin-bottom: 1;
    }

    #payment-error {
        color: #ffb3b3;
        margin-bottom: 1;
    }

    #payment-help {
        color: #dddddd;
    }
    """

    def __init__(self, bill: Bill, methods: tuple[str, ...]) -> None:
        super().__init__()
        self.bill = bill
        self.methods = methods
        self.cursor_index = 0
        self.chosen: str | None = None
        self.error = ""

    def compose(self) -> ComposeResult:
        with Container(id="payment-dialog"):
            yield Static("Confirm Payment", id="payment-title")
            yield Static(f"Table {self.bill.table} - {format_money(self.bill.total)}", id="payment-info")
            yield Static(id="payment-methods")
            yield Static(id="payment-error")
            yield Static(
                "J/K/↑/↓ move, Space or digit select, Enter confirm. Esc/q cancel.",
                id="payment-help",
            )

    def on_mount(self) -> None:
        self._refresh_content()

    def on_key(self, event: Key) -> None:
        if event.key in {"escape", "q", "ctrl+c"}:
            self.dismiss(None)
            event.stop()
            return

        if event.key == "enter":
            self._confirm()
            event.stop()
            return

        if event.key in {"j", "down"}:
            self._move_cursor(1)
            event.stop()
            return

        if event.key in {"k", "up"}:
            self._move_cursor(-1)
            event.stop()
            return

        if event.key == "space":
            self._choose(self.cursor_index)
            event.stop()
            return

        if event.is_printable and event.character and event.character.isdigit():
            self._choose(int(event.character) - 1)
            event.stop()

    def _move_cursor(self, delta: int) -> None:
        if not self.methods:
            return
        self.cursor_index = (self.cursor_index + delta) % len(self.methods)
        self._refresh_content()

    def _choose(self, index: int) -> None:
        if not (0 <= index < len(self.methods)):
            return
        self.cursor_index = index
        self.chosen = self.methods[index]
        self.error = ""
        self._refresh_content()

    def _confirm(self) -> None:
        if self.chosen is None:
            self.error = "Please select a payment method!"
            self._refresh_content()
            return
        self.dismiss(self.chosen)

    def _refresh_content(self) -> None:
        methods_widget = self.query_one("#payment-methods", Static)
        error_widget = self.query_one("#payment-error", Static)

        content = Text()
        for idx, method in enumerate(self.methods):
            if idx > 0:
                content.append("\n")
            pointer = "➤ " if idx == self.cursor_index else "  "
            is_chosen = method == self.chosen
            checked = "(•)" if is_chosen else "( )"
            content.append(
                f"{pointer}{checked} {idx + 1}. {method_label(method)}",
                style="bold #8be28b" if is_chosen else "white",
            )
        methods_widget.update(content)
        error_widget.update(self.error or "")
