"""Rendering helpers for bills, stats and printed receipts."""

from __future__ import annotations

from datetime import datetime

from rich.text import Text

from billdesk import config
from billdesk.errors import RenderError
from billdesk.models import Bill, BillFilter, Money, Stats
from billdesk.state import BillingState

FILTER_TABS: tuple[tuple[str, BillFilter], ...] = (
    ("1", BillFilter.ALL),
    ("2", BillFilter.UNPAID),
    ("3", BillFilter.PAID),
)


def format_amount(amount: Money) -> str:
    """Render a stored amount without a spurious `.0`."""
    if isinstance(amount, float) and amount.is_integer():
        return str(int(amount))
    return str(amount)


def format_money(amount: Money) -> str:
    return f"{config.CURRENCY_SYMBOL}{format_amount(amount)}"


def format_clock(value: datetime | None) -> str:
    if value is None:
        return ""
    return value.astimezone().strftime("%H:%M:%S")


def method_label(method: str | None) -> str:
    if not method:
        return "Unknown"
    return config.PAYMENT_METHOD_LABELS.get(method, method)


def status_badge(bill: Bill) -> Text:
    if bill.paid:
        return Text(" Paid ", style="bold #0b1f0f on #5fbf72")
    return Text(" Unpaid ", style="bold #ffffff on #b23a48")


def format_stats(stats: Stats) -> Text:
    text = Text()
    text.append("Unpaid ", style="dim")
    text.append(str(stats.unpaid_count), style="bold #ff8a8a")
    text.append("   Paid ", style="dim")
    text.append(str(stats.paid_count), style="bold #8be28b")
    text.append("   Revenue ", style="dim")
    text.append(format_money(stats.total_revenue), style="bold")
    text.append("   Avg bill ", style="dim")
    text.append(format_money(stats.average_bill_value), style="bold")
    return text


def format_filter_tabs(active: BillFilter) -> Text:
    text = Text()
    for idx, (key, bill_filter) in enumerate(FILTER_TABS):
        if idx > 0:
            text.append("  ")
        label = f"[{key}] {bill_filter.value.title()}"
        if bill_filter == active:
            text.append(label, style="bold #ffffff on #2f6db5")
        else:
            text.append(label, style="dim")
    return text


def format_bill_card(bill: Bill, selected: bool = False) -> Text:
    """Render one bill as a multi-line card. Raises RenderError on bad data."""
    try:
        card = Text()
        card.append("➤ " if selected else "  ")
        card.append(f"Table {bill.table}", style="bold")
        ready = format_clock(bill.ready_time)
        if ready:
            card.append(f"  {ready}", style="dim")
        card.append("  ")
        card.append_text(status_badge(bill))
        for item in bill.items:
            card.append(f"\n    {item.name:<20} x{item.qty:<3} {format_money(item.amount):>10}")
        card.append(f"\n    Total: {format_money(bill.total)}", style="bold")
        if bill.paid and bill.payment_method:
            paid_line = f"\n    Paid by {method_label(bill.payment_method)}"
            if bill.paid_time is not None:
                paid_line += f" at {format_clock(bill.paid_time)}"
            card.append(paid_line, style="italic #8be28b")
        return card
    except (AttributeError, TypeError, ValueError) as exc:
        raise RenderError(f"Cannot render bill {getattr(bill, 'id', '?')}: {exc}") from exc


def _placeholder(icon: str, title: str, detail: str) -> Text:
    text = Text(justify="center")
    text.append(f"{icon}\n\n")
    text.append(title, style="bold")
    text.append(f"\n{detail}", style="dim")
    return text


def render_bills(state: BillingState) -> Text:
    """Render the visible bills, an empty-state message, or an error placeholder."""
    if state.error:
        return _placeholder("⚠", "Error Loading Bills", state.error)
    if not state.bills:
        return _placeholder("🧾", "No Bills Yet", "Bills will appear when orders are ready from kitchen")

    visible = state.visible_bills
    if not visible:
        return _placeholder(
            "🧾", f"No {state.bill_filter.value.title()} Bills", "No bills match the selected filter."
        )

    try:
        cards = [format_bill_card(bill, selected=bill.id == state.selected_bill_id) for bill in visible]
    except RenderError as exc:
        return _placeholder("⚠", "Error Loading Bills", str(exc))

    lines = Text()
    for idx, card in enumerate(cards):
        if idx > 0:
            lines.append("\n\n")
        lines.append_text(card)
    return lines


def _receipt_row(left: str, right: str, width: int) -> str:
    room = max(1, width - len(right) - 1)
    if len(left) > room:
        left = left[: max(1, room - 1)] + "…"
    return f"{left:<{room}} {right}"


def format_receipt(
    bill: Bill,
    printed_at: datetime | None = None,
    width: int = config.RECEIPT_WIDTH_CHARS,
) -> str:
    """Plain-text billing statement for one bill."""
    printed_at = printed_at or datetime.now().astimezone()
    rule = "-" * width
    status = f"Paid ({method_label(bill.payment_method)})" if bill.paid else "Unpaid"

    lines = [
        config.RESTAURANT_NAME.center(width).rstrip(),
        "Billing Statement".center(width).rstrip(),
        printed_at.strftime("%Y-%m-%d %H:%M:%S").center(width).rstrip(),
        rule,
        f"Table: {bill.table}",
        f"Bill No: {bill.id}",
        f"Status: {status}",
        rule,
        _receipt_row("Item", "Qty    Amount", width),
    ]
    for item in bill.items:
        lines.append(_receipt_row(item.name, f"{item.qty:>3} {format_money(item.amount):>9}", width))
    lines.extend(
        [
            rule,
            _receipt_row("Total:", format_money(bill.total), width),
            "",
            "Thank you for dining with us!".center(width).rstrip(),
        ]
    )
    return "\n".join(lines)
