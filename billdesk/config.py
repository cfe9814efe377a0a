"""Runtime configuration defaults for persistence, billing and printing."""

from __future__ import annotations

import os

DB_PATH = os.environ.get("BILLDESK_DB_PATH", "data/billdesk.db")
DEBUG_LOG_PATH = os.environ.get("BILLDESK_DEBUG_LOG", "/tmp/billdesk-debug.log")

READY_ORDERS_COLLECTION = "ready_orders"
PAID_BILLS_COLLECTION = "paid_bills"

REFRESH_INTERVAL_SECONDS = 5.0

PAYMENT_METHODS: tuple[str, ...] = ("cash", "card", "upi")
PAYMENT_METHOD_LABELS: dict[str, str] = {
    "cash": "Cash",
    "card": "Card",
    "upi": "UPI",
}

CURRENCY_SYMBOL = "₹"
RESTAURANT_NAME = "Bamboo Garden"
RECEIPT_WIDTH_CHARS = 32

# Same thermal printer as the kitchen ticket station.
PRINTER_USB_VENDOR_ID = 0x28E9
PRINTER_USB_PRODUCT_ID = 0x0289
PRINTER_WIDTH_PX = 384
PRINTER_FONT_SIZE = 22
PRINTER_FONT_PATH = "/System/Library/Fonts/SFNSMono.ttf"
PRINTER_LEFT_INDENT_PX = 8
PRINTER_TAIL_SPACER_PX = 70
