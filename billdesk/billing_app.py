"""Main Textual app class."""

from __future__ import annotations

import sqlite3
from pathlib import Path

from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import VerticalScroll
from textual.css.query import NoMatches
from textual.widgets import Header, Static

from billdesk.billing import parse_filter
from billdesk.config import PAYMENT_METHODS, REFRESH_INTERVAL_SECONDS, RESTAURANT_NAME
from billdesk.diagnostics import log_debug
from billdesk.errors import PaymentError, StoreError
from billdesk.payment_modal import PaymentModal
from billdesk.payments import pay
from billdesk.persistence import bootstrap_schema
from billdesk.printer import check_printer_dependencies, print_receipt
from billdesk.rendering import format_filter_tabs, format_stats, method_label, render_bills
from billdesk.scheduler import RefreshTask
from billdesk.state import BillingState, load_state, move_selection, selected_bill, with_filter


class BillingApp(App):
    """A Textual app for settling and printing restaurant bills."""

    TITLE = "Bill Desk"
    SUB_TITLE = RESTAURANT_NAME
    ENABLE_COMMAND_PALETTE = False
    AUTO_FOCUS = None

    CSS = """
    Screen {
        layout: vertical;
    }

    #stats {
        height: 3;
        border: round $primary;
        padding: 0 1;
    }

    #filter-tabs {
        height: 1;
        margin: 1 1 0 1;
    }

    #bills-pane {
        height: 1fr;
        border: round $secondary;
        padding: 0 1;
    }

    #status-bar {
        height: 2;
        padding: 0 1;
        color: $text-muted;
    }
    """

    BINDINGS = [
        ("1", "set_filter('all')", "All"),
        ("2", "set_filter('unpaid')", "Unpaid"),
        ("3", "set_filter('paid')", "Paid"),
        ("j", "move_selection(1)", "Next bill"),
        ("down", "move_selection(1)", "Next bill"),
        ("k", "move_selection(-1)", "Previous bill"),
        ("up", "move_selection(-1)", "Previous bill"),
        ("enter", "pay_selected", "Pay"),
        ("p", "print_selected", "Print"),
        ("r", "reload", "Refresh"),
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(
        self,
        db_path: str | Path | None = None,
        payment_methods: tuple[str, ...] | None = None,
        refresh_interval: float = REFRESH_INTERVAL_SECONDS,
    ) -> None:
        super().__init__()
        self.db_path = db_path
        self.payment_methods = tuple(payment_methods or PAYMENT_METHODS)
        self.refresh_interval = refresh_interval
        self.billing_state = BillingState()
        self.system_status = ""
        self.refresh_task = RefreshTask(
            load=lambda: load_state(self.db_path, self.billing_state),
            on_state=self._apply_state,
        )
        log_debug("app_init", db_path=str(db_path) if db_path else None)

    def compose(self) -> ComposeResult:
        yield Header()
        yield Static(id="stats")
        yield Static(id="filter-tabs")
        with VerticalScroll(id="bills-pane"):
            yield Static(id="bills-list")
        yield Static(id="status-bar")

    def on_mount(self) -> None:
        try:
            bootstrap_schema(self.db_path)
        except (OSError, sqlite3.Error) as exc:
            log_debug("bootstrap_failed", error=repr(exc))
        _, msg = check_printer_dependencies()
        self.system_status = msg
        log_debug("on_mount", printer_status=msg)
        self.refresh_task.run_once()
        self.set_interval(self.refresh_interval, self.refresh_task.run_once)

    def action_set_filter(self, name: str) -> None:
        if isinstance(self.screen, PaymentModal):
            return
        self.billing_state = with_filter(self.billing_state, parse_filter(name))
        self._render_view()

    def action_move_selection(self, delta: int) -> None:
        if isinstance(self.screen, PaymentModal):
            return
        self.billing_state = move_selection(self.billing_state, delta)
        self._render_view()

    def action_reload(self) -> None:
        if isinstance(self.screen, PaymentModal):
            return
        self.system_status = "Refreshed"
        self.refresh_task.run_once()

    def action_pay_selected(self) -> None:
        if isinstance(self.screen, PaymentModal):
            return
        bill = selected_bill(self.billing_state)
        if bill is None:
            self._set_status("No bill selected")
            return
        if bill.paid:
            self._set_status(f"Table {bill.table} is already paid")
            return

        bill_id = bill.id
        self.push_screen(
            PaymentModal(bill, self.payment_methods),
            callback=lambda method: self._confirm_payment(bill_id, method),
        )

    def action_print_selected(self) -> None:
        if isinstance(self.screen, PaymentModal):
            return
        bill = selected_bill(self.billing_state)
        if bill is None:
            self._set_status("No bill selected")
            return
        if not bill.paid:
            self._set_status("Only paid bills can be printed")
            return

        try:
            print_receipt(bill)
        except Exception as exc:
            log_debug("print_failed", bill_id=bill.id, error=repr(exc))
            self._set_status(f"Print failed: {exc}")
            return
        self._set_status(f"Printed receipt for table {bill.table}")

    def _confirm_payment(self, bill_id: str, method: str | None) -> None:
        if method is None:
            self._set_status("Payment cancelled")
            return

        try:
            record = pay(
                self.billing_state,
                bill_id,
                method,
                allowed_methods=self.payment_methods,
                db_path=self.db_path,
            )
        except (PaymentError, StoreError) as exc:
            log_debug("pay_rejected", bill_id=bill_id, method=method, error=str(exc))
            self._set_status(str(exc))
            return

        self.system_status = f"Bill {record.id} paid by {method_label(record.payment_method)}"
        self.refresh_task.run_once()

    def _apply_state(self, state: BillingState) -> None:
        self.billing_state = state
        self._render_view()

    def _set_status(self, message: str) -> None:
        self.system_status = message
        self._render_view()

    def _render_view(self) -> None:
        if not self.screen_stack:
            return
        # Widgets live on the base screen; keep it current while a modal is open.
        base_screen = self.screen_stack[0]
        try:
            stats_widget = base_screen.query_one("#stats", Static)
            tabs_widget = base_screen.query_one("#filter-tabs", Static)
            bills_widget = base_screen.query_one("#bills-list", Static)
            status_widget = base_screen.query_one("#status-bar", Static)
        except NoMatches:
            return

        stats_widget.update(format_stats(self.billing_state.stats))
        tabs_widget.update(format_filter_tabs(self.billing_state.bill_filter))
        bills_widget.update(render_bills(self.billing_state))

        status = Text(self.system_status or "Ready")
        status.append("\nEnter pay · P print · 1/2/3 filter · J/K move · R refresh · Ctrl+Q quit", style="dim")
        status_widget.update(status)
