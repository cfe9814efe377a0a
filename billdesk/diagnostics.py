"""Append-only debug log shared by the store, pipeline and app."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from billdesk import config


def log_debug(event: str, **fields: object) -> None:
    """Write one `<timestamp> <event> key=value ...` line to the debug log."""
    parts = [datetime.now(timezone.utc).isoformat(), event]
    parts.extend(f"{key}={value!r}" for key, value in fields.items())
    try:
        log_path = Path(config.DEBUG_LOG_PATH)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        with log_path.open("a", encoding="utf-8") as fh:
            fh.write(" ".join(parts) + "\n")
    except OSError:
        # Logging must never interfere with app flow.
        return
