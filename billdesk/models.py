"""Domain models for the billing desk."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

Money = int | float


@dataclass(frozen=True)
class LineItem:
    """One named row of an order with its quantity and unit price."""

    name: str
    qty: int
    price: Money

    @property
    def amount(self) -> Money:
        return self.qty * self.price


@dataclass(frozen=True)
class ReadyOrder:
    """An order the kitchen has finished, as produced upstream."""

    id: str
    table: int
    items: tuple[LineItem, ...]
    total: Money
    ready_time: datetime | None = None


@dataclass(frozen=True)
class PaymentRecord:
    """An immutable record that an order has been paid."""

    id: str
    paid_time: datetime | None
    payment_method: str | None


@dataclass(frozen=True)
class Bill:
    """A ready order merged with its payment state."""

    id: str
    table: int
    items: tuple[LineItem, ...]
    total: Money
    ready_time: datetime | None = None
    paid: bool = False
    paid_time: datetime | None = None
    payment_method: str | None = None


@dataclass(frozen=True)
class Stats:
    """Summary figures over the current bill set."""

    unpaid_count: int = 0
    paid_count: int = 0
    total_revenue: Money = 0
    average_bill_value: int = 0


class BillFilter(str, Enum):
    ALL = "all"
    PAID = "paid"
    UNPAID = "unpaid"
