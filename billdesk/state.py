"""Application state and the reload-reconcile-compute pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Iterable, Sequence

from billdesk.billing import compute_stats, filter_bills, reconcile
from billdesk.diagnostics import log_debug
from billdesk.models import Bill, BillFilter, PaymentRecord, ReadyOrder, Stats
from billdesk.persistence import load_payment_records, load_ready_orders


@dataclass(frozen=True)
class BillingState:
    """Snapshot of everything the billing view shows."""

    bills: tuple[Bill, ...] = ()
    stats: Stats = field(default_factory=Stats)
    bill_filter: BillFilter = BillFilter.ALL
    selected_bill_id: str | None = None
    error: str | None = None

    @property
    def visible_bills(self) -> Sequence[Bill]:
        return filter_bills(self.bills, self.bill_filter)

    def find_bill(self, bill_id: str) -> Bill | None:
        for bill in self.bills:
            if bill.id == bill_id:
                return bill
        return None


def _clamp_selection(state: BillingState) -> BillingState:
    visible = state.visible_bills
    if not visible:
        return replace(state, selected_bill_id=None)
    if any(bill.id == state.selected_bill_id for bill in visible):
        return state
    return replace(state, selected_bill_id=visible[0].id)


def build_state(
    orders: Iterable[ReadyOrder],
    payments: Iterable[PaymentRecord],
    previous: BillingState | None = None,
) -> BillingState:
    """Reconcile records into a new state, keeping the previous filter and selection."""
    previous = previous or BillingState()
    bills = tuple(reconcile(orders, payments))
    state = BillingState(
        bills=bills,
        stats=compute_stats(bills),
        bill_filter=previous.bill_filter,
        selected_bill_id=previous.selected_bill_id,
    )
    return _clamp_selection(state)


def load_state(db_path: str | Path | None = None, previous: BillingState | None = None) -> BillingState:
    """
    Reload both collections and rebuild the state.

    Never raises. An unexpected failure yields an empty state carrying the
    error message so the periodic refresh keeps running.
    """
    try:
        orders = load_ready_orders(db_path)
        payments = load_payment_records(db_path)
        return build_state(orders, payments, previous)
    except Exception as exc:
        log_debug("load_state_failed", error=repr(exc))
        bill_filter = previous.bill_filter if previous is not None else BillFilter.ALL
        return BillingState(bill_filter=bill_filter, error=f"Error loading bills: {exc}")


def with_filter(state: BillingState, bill_filter: BillFilter) -> BillingState:
    return _clamp_selection(replace(state, bill_filter=bill_filter))


def move_selection(state: BillingState, delta: int) -> BillingState:
    """Move the selection through the visible bills, wrapping at both ends."""
    visible = state.visible_bills
    if not visible:
        return replace(state, selected_bill_id=None)
    ids = [bill.id for bill in visible]
    if state.selected_bill_id not in ids:
        idx = 0 if delta > 0 else len(ids) - 1
    else:
        idx = (ids.index(state.selected_bill_id) + delta) % len(ids)
    return replace(state, selected_bill_id=ids[idx])


def selected_bill(state: BillingState) -> Bill | None:
    if state.selected_bill_id is None:
        return None
    return state.find_bill(state.selected_bill_id)
