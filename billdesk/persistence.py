"""SQLite-backed key-value store for ready orders and paid bills."""

from __future__ import annotations

import json
import math
import sqlite3
from contextlib import closing
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from billdesk import config
from billdesk.diagnostics import log_debug
from billdesk.errors import StoreError
from billdesk.models import LineItem, PaymentRecord, ReadyOrder


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _connect(db_path: str | Path | None) -> sqlite3.Connection:
    db_file = Path(db_path or config.DB_PATH)
    db_file.parent.mkdir(parents=True, exist_ok=True)
    # Autocommit; writes open their own IMMEDIATE transaction.
    return sqlite3.connect(db_file, isolation_level=None)


def _ensure_schema(conn: sqlite3.Connection) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS collections (
            name TEXT PRIMARY KEY,
            payload TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
        """
    )


def bootstrap_schema(db_path: str | Path | None = None) -> None:
    """Create persistence schema if it does not already exist."""
    with closing(_connect(db_path)) as conn:
        _ensure_schema(conn)


def _decode_payload(name: str, payload: str | None) -> list[Any]:
    if payload is None:
        return []
    try:
        data = json.loads(payload)
    except ValueError as exc:
        raise StoreError(f"{name} holds undecodable data: {exc}") from exc
    if not isinstance(data, list):
        raise StoreError(f"{name} holds {type(data).__name__}, expected a list")
    return data


def _select_payload(conn: sqlite3.Connection, name: str) -> str | None:
    row = conn.execute("SELECT payload FROM collections WHERE name = ?", (name,)).fetchone()
    return None if row is None else row[0]


def _upsert_payload(conn: sqlite3.Connection, name: str, records: list[Any]) -> None:
    conn.execute(
        """
        INSERT INTO collections (name, payload, updated_at) VALUES (?, ?, ?)
        ON CONFLICT(name) DO UPDATE SET payload = excluded.payload, updated_at = excluded.updated_at
        """,
        (name, json.dumps(records, ensure_ascii=False), _utc_now_iso()),
    )


def read_collection(name: str, db_path: str | Path | None = None) -> list[Any]:
    """
    Return the raw records stored under `name`.

    Never raises: missing or unreadable data yields an empty list and a
    debug log line.
    """
    db_file = Path(db_path or config.DB_PATH)
    if not db_file.is_file():
        return []
    try:
        with closing(_connect(db_file)) as conn:
            _ensure_schema(conn)
            return _decode_payload(name, _select_payload(conn, name))
    except (sqlite3.Error, StoreError) as exc:
        log_debug("store_read_failed", collection=name, error=str(exc))
        return []


def write_collection(name: str, records: list[Any], db_path: str | Path | None = None) -> None:
    """Replace a whole collection in one transaction."""
    try:
        with closing(_connect(db_path)) as conn:
            _ensure_schema(conn)
            conn.execute("BEGIN IMMEDIATE")
            try:
                _upsert_payload(conn, name, list(records))
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")
    except sqlite3.Error as exc:
        raise StoreError(f"Could not write {name}: {exc}") from exc


def _append_once(name: str, record: dict[str, Any], db_path: str | Path | None) -> None:
    with closing(_connect(db_path)) as conn:
        _ensure_schema(conn)
        conn.execute("BEGIN IMMEDIATE")
        try:
            records = _decode_payload(name, _select_payload(conn, name))
            records.append(record)
            _upsert_payload(conn, name, records)
        except BaseException:
            conn.execute("ROLLBACK")
            raise
        conn.execute("COMMIT")


def _is_amount(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value >= 0


def _parse_id(value: Any) -> str:
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise ValueError(f"invalid id {value!r}")
    text = str(value).strip()
    if not text:
        raise ValueError("empty id")
    return text


def _parse_table(value: Any) -> int:
    if isinstance(value, str) and value.strip().isdigit():
        return int(value)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"invalid table {value!r}")
    return value


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 string or epoch milliseconds into an aware datetime."""
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            parsed = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError) as exc:
            raise ValueError(f"timestamp out of range {value!r}") from exc
    else:
        raise ValueError(f"invalid timestamp {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _optional_timestamp(value: Any, field: str, record_id: str) -> datetime | None:
    if value in (None, ""):
        return None
    try:
        return parse_timestamp(value)
    except ValueError as exc:
        log_debug("store_bad_field", record_id=record_id, field=field, error=str(exc))
        return None


def format_timestamp(value: datetime) -> str:
    """Format a datetime as UTC ISO-8601 with millisecond precision and `Z`."""
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _parse_line_item(name: Any, raw: Any) -> LineItem:
    if not isinstance(name, str) or not isinstance(raw, dict):
        raise ValueError(f"invalid item {name!r}")
    qty = raw.get("qty")
    price = raw.get("price")
    if isinstance(qty, bool) or not isinstance(qty, int) or qty < 0:
        raise ValueError(f"invalid qty for {name!r}: {qty!r}")
    if not _is_amount(price):
        raise ValueError(f"invalid price for {name!r}: {price!r}")
    return LineItem(name=name, qty=qty, price=price)


def parse_ready_order(raw: Any) -> ReadyOrder:
    """Build a ReadyOrder from a stored record. Raises ValueError when malformed."""
    if not isinstance(raw, dict):
        raise ValueError("ready order is not an object")
    items_raw = raw.get("items") or {}
    if not isinstance(items_raw, dict):
        raise ValueError("items is not a mapping")
    total = raw.get("total")
    if not _is_amount(total):
        raise ValueError(f"invalid total {total!r}")
    order_id = _parse_id(raw.get("id"))
    return ReadyOrder(
        id=order_id,
        table=_parse_table(raw.get("table")),
        items=tuple(_parse_line_item(name, value) for name, value in items_raw.items()),
        total=total,
        ready_time=_optional_timestamp(raw.get("readyTime"), "readyTime", order_id),
    )


def parse_payment_record(raw: Any) -> PaymentRecord:
    """
    Build a PaymentRecord from a stored record.

    Only the id is required: any record naming an order marks it paid. A bad
    `paidTime` or `paymentMethod` is kept as None. Raises ValueError when the
    id is unusable.
    """
    if not isinstance(raw, dict):
        raise ValueError("payment record is not an object")
    bill_id = _parse_id(raw.get("id"))
    method = raw.get("paymentMethod")
    if not isinstance(method, str) or not method.strip():
        log_debug("store_bad_field", record_id=bill_id, field="paymentMethod", value=method)
        method = None
    return PaymentRecord(
        id=bill_id,
        paid_time=_optional_timestamp(raw.get("paidTime"), "paidTime", bill_id),
        payment_method=method,
    )


def payment_record_to_raw(record: PaymentRecord) -> dict[str, Any]:
    return {
        "id": record.id,
        "paidTime": format_timestamp(record.paid_time) if record.paid_time is not None else None,
        "paymentMethod": record.payment_method,
    }


def load_ready_orders(db_path: str | Path | None = None) -> list[ReadyOrder]:
    """Load ready orders, skipping malformed records."""
    orders: list[ReadyOrder] = []
    for idx, raw in enumerate(read_collection(config.READY_ORDERS_COLLECTION, db_path)):
        try:
            orders.append(parse_ready_order(raw))
        except ValueError as exc:
            log_debug("store_skip_record", collection=config.READY_ORDERS_COLLECTION, index=idx, error=str(exc))
    return orders


def load_payment_records(db_path: str | Path | None = None) -> list[PaymentRecord]:
    """Load payment records in arrival order, skipping malformed records."""
    records: list[PaymentRecord] = []
    for idx, raw in enumerate(read_collection(config.PAID_BILLS_COLLECTION, db_path)):
        try:
            records.append(parse_payment_record(raw))
        except ValueError as exc:
            log_debug("store_skip_record", collection=config.PAID_BILLS_COLLECTION, index=idx, error=str(exc))
    return records


def append_payment_record(record: PaymentRecord, db_path: str | Path | None = None) -> None:
    """
    Append one payment record to the paid bills collection.

    The whole collection is rewritten inside a single transaction. A SQLite
    failure is retried once before surfacing as StoreError. An existing
    payload that cannot be decoded is never overwritten.
    """
    raw = payment_record_to_raw(record)
    last_error: sqlite3.Error | None = None
    for attempt in (1, 2):
        try:
            _append_once(config.PAID_BILLS_COLLECTION, raw, db_path)
        except sqlite3.Error as exc:
            last_error = exc
            log_debug("store_append_failed", bill_id=record.id, attempt=attempt, error=str(exc))
            continue
        log_debug("store_append_ok", bill_id=record.id, attempt=attempt)
        return
    raise StoreError(f"Could not record payment for {record.id}: {last_error}") from last_error
