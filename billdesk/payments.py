"""Unpaid -> Paid transition for a single bill."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterable

from billdesk import config
from billdesk.diagnostics import log_debug
from billdesk.errors import AlreadyPaid, InvalidPaymentMethod, UnknownBill
from billdesk.models import PaymentRecord
from billdesk.persistence import append_payment_record
from billdesk.state import BillingState


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def validate_payment_method(payment_method: str | None, allowed_methods: Iterable[str]) -> str:
    """Return the method if it is one of the allowed values."""
    if not payment_method or payment_method not in tuple(allowed_methods):
        raise InvalidPaymentMethod(payment_method)
    return payment_method


def pay(
    state: BillingState,
    bill_id: str | None,
    payment_method: str | None,
    *,
    allowed_methods: Iterable[str] | None = None,
    db_path: str | Path | None = None,
    now: Callable[[], datetime] = _utc_now,
) -> PaymentRecord:
    """
    Mark a bill from the current view as paid.

    Appends a PaymentRecord through the store and returns it. The caller is
    responsible for reloading the state afterwards. On any error nothing is
    written.

    Raises InvalidPaymentMethod, UnknownBill, AlreadyPaid or StoreError.
    """
    method = validate_payment_method(payment_method, allowed_methods or config.PAYMENT_METHODS)

    bill = state.find_bill(bill_id) if bill_id else None
    if bill is None:
        raise UnknownBill(bill_id)
    if bill.paid:
        raise AlreadyPaid(bill.id)

    record = PaymentRecord(id=bill.id, paid_time=now(), payment_method=method)
    append_payment_record(record, db_path)
    log_debug("bill_paid", bill_id=record.id, method=method, total=bill.total)
    return record
