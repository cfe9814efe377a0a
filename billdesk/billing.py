"""Bill reconciliation, summary stats and view filtering.

Everything here is pure: no I/O, inputs are never mutated.
"""

from __future__ import annotations

import math
from typing import Iterable, Sequence

from billdesk.models import Bill, BillFilter, PaymentRecord, ReadyOrder, Stats


def reconcile(orders: Iterable[ReadyOrder], payments: Iterable[PaymentRecord]) -> list[Bill]:
    """Merge ready orders with payment records, one Bill per order in input order."""
    payments_by_id: dict[str, PaymentRecord] = {}
    for record in payments:
        # First record per id wins; later duplicates are ignored.
        payments_by_id.setdefault(record.id, record)

    bills: list[Bill] = []
    for order in orders:
        payment = payments_by_id.get(order.id)
        bills.append(
            Bill(
                id=order.id,
                table=order.table,
                items=order.items,
                total=order.total,
                ready_time=order.ready_time,
                paid=payment is not None,
                paid_time=payment.paid_time if payment is not None else None,
                payment_method=payment.payment_method if payment is not None else None,
            )
        )
    return bills


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def compute_stats(bills: Sequence[Bill]) -> Stats:
    """
    Summarize a bill set.

    Revenue counts paid bills only; the average ticket counts every bill
    regardless of payment status.
    """
    if not bills:
        return Stats()
    paid = [bill for bill in bills if bill.paid]
    grand_total = sum(bill.total for bill in bills)
    return Stats(
        unpaid_count=len(bills) - len(paid),
        paid_count=len(paid),
        total_revenue=sum(bill.total for bill in paid),
        average_bill_value=round_half_up(grand_total / len(bills)),
    )


def parse_filter(name: str | BillFilter) -> BillFilter:
    """Resolve a filter name such as "paid" into a BillFilter."""
    if isinstance(name, BillFilter):
        return name
    try:
        return BillFilter(name.strip().lower())
    except ValueError:
        raise ValueError(f"Unknown bill filter: {name!r}") from None


def filter_bills(bills: Sequence[Bill], bill_filter: BillFilter) -> Sequence[Bill]:
    """Return the visible bills; ALL hands back the input unchanged."""
    if bill_filter == BillFilter.ALL:
        return bills
    want_paid = bill_filter == BillFilter.PAID
    return [bill for bill in bills if bill.paid is want_paid]
