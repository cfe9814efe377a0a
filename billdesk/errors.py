"""Exception types raised across the billing desk."""

from __future__ import annotations


class BillingError(Exception):
    """Base class for billing desk errors."""


class StoreError(BillingError):
    """Raised when the local store cannot be read or written."""


class PaymentError(BillingError):
    """Raised when a pay action is rejected. Persisted state is unchanged."""


class InvalidPaymentMethod(PaymentError):
    def __init__(self, payment_method: str | None) -> None:
        self.payment_method = payment_method
        if payment_method:
            super().__init__(f"Unsupported payment method: {payment_method}")
        else:
            super().__init__("Please select a payment method!")


class UnknownBill(PaymentError):
    def __init__(self, bill_id: str | None) -> None:
        self.bill_id = bill_id
        super().__init__(f"Bill not found: {bill_id}" if bill_id else "Error: No bill selected")


class AlreadyPaid(PaymentError):
    def __init__(self, bill_id: str) -> None:
        self.bill_id = bill_id
        super().__init__(f"Bill {bill_id} is already paid")


class RenderError(BillingError):
    """Raised when a bill cannot be formatted for display."""
