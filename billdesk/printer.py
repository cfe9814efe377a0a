"""Thermal receipt printing for paid bills."""

from __future__ import annotations

import os
from pathlib import Path

from billdesk.config import (
    PRINTER_FONT_PATH,
    PRINTER_FONT_SIZE,
    PRINTER_LEFT_INDENT_PX,
    PRINTER_TAIL_SPACER_PX,
    PRINTER_USB_PRODUCT_ID,
    PRINTER_USB_VENDOR_ID,
    PRINTER_WIDTH_PX,
)
from billdesk.diagnostics import log_debug
from billdesk.models import Bill
from billdesk.rendering import format_receipt

_FONT_OVERRIDE_ENV = "BILLDESK_PRINTER_FONT_PATH"
# Receipt columns only line up with a monospace face.
_LINUX_FONT_FALLBACKS = (
    "/usr/share/fonts/TTF/DejaVuSansMono.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSansMono.ttf",
    "/usr/share/fonts/dejavu/DejaVuSansMono.ttf",
    "/usr/share/fonts/liberation/LiberationMono-Regular.ttf",
)


def printer_font_candidates() -> list[str]:
    """Font files to try for receipts, most specific first, without duplicates."""
    ordered = [os.environ.get(_FONT_OVERRIDE_ENV, "").strip(), PRINTER_FONT_PATH, *_LINUX_FONT_FALLBACKS]
    return list(dict.fromkeys(path for path in ordered if path))


def resolve_printer_font_path() -> str:
    """Return the first receipt font candidate that exists on disk."""
    candidates = printer_font_candidates()
    found = next((path for path in candidates if Path(path).is_file()), None)
    if found is None:
        raise RuntimeError(
            f"No monospace receipt font found; set {_FONT_OVERRIDE_ENV}. Tried: {', '.join(candidates)}"
        )
    return found


def _load_receipt_font() -> object:
    from PIL import ImageFont

    return ImageFont.truetype(resolve_printer_font_path(), PRINTER_FONT_SIZE)


def check_printer_dependencies() -> tuple[bool, str]:
    """Report whether receipts can be printed, naming the missing piece if not."""
    try:
        from escpos.printer import Usb  # noqa: F401
    except Exception as exc:
        return (False, f"Receipt printing off: ESC/POS driver missing ({exc})")
    try:
        _load_receipt_font()
    except (ImportError, OSError, RuntimeError) as exc:
        return (False, f"Receipt printing off: {exc}")
    return (True, "Receipt printer ready")


def _render_line(text: str, font: object) -> object:
    from PIL import Image, ImageDraw

    probe = Image.new("1", (1, 1), color=1)
    probe_draw = ImageDraw.Draw(probe)
    # Measure a full-height glyph pair so blank and short lines keep the same pitch.
    bbox = probe_draw.textbbox((0, 0), "Hg", font=font)
    text_height = bbox[3] - bbox[1]
    canvas_height = max(12, text_height + 6)

    img = Image.new("1", (PRINTER_WIDTH_PX, canvas_height), color=1)
    draw = ImageDraw.Draw(img)
    y = (canvas_height - text_height) // 2 - bbox[1]
    draw.text((PRINTER_LEFT_INDENT_PX, y), text, font=font, fill=0)
    return img


def _render_spacer(height_px: int) -> object:
    from PIL import Image

    return Image.new("1", (PRINTER_WIDTH_PX, max(1, height_px)), color=1)


def print_receipt(bill: Bill) -> None:
    """Print the billing statement for a paid bill and cut the ticket."""
    if not bill.paid:
        raise ValueError(f"Bill {bill.id} is not paid yet")

    try:
        from escpos.printer import Usb
    except ImportError as exc:
        raise RuntimeError(f"ESC/POS driver unavailable: {exc}") from exc

    font = _load_receipt_font()
    printer = Usb(PRINTER_USB_VENDOR_ID, PRINTER_USB_PRODUCT_ID)
    for line in format_receipt(bill).splitlines():
        printer.image(_render_line(line, font))
    printer.image(_render_spacer(PRINTER_TAIL_SPACER_PX))
    printer.cut()
    log_debug("receipt_printed", bill_id=bill.id)
