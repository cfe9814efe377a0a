import json
import sqlite3
from datetime import datetime, timezone

import pytest

from billdesk import config, persistence
from billdesk.errors import StoreError
from billdesk.models import LineItem, PaymentRecord
from billdesk.persistence import (
    append_payment_record,
    bootstrap_schema,
    load_payment_records,
    load_ready_orders,
    parse_timestamp,
    read_collection,
    write_collection,
)


def _store_raw_payload(db_path, name, payload):
    bootstrap_schema(db_path)
    conn = sqlite3.connect(db_path)
    try:
        with conn:
            conn.execute(
                "INSERT OR REPLACE INTO collections (name, payload, updated_at) VALUES (?, ?, 'now')",
                (name, payload),
            )
    finally:
        conn.close()


def _payment(bill_id, method="cash"):
    return PaymentRecord(id=bill_id, paid_time=datetime(2026, 10, 19, 13, 0, tzinfo=timezone.utc), payment_method=method)


def test_missing_store_reads_as_empty(db_path):
    assert load_ready_orders(db_path) == []
    assert load_payment_records(db_path) == []
    assert not db_path.exists()


def test_load_ready_orders_parses_records(seeded_db):
    orders = load_ready_orders(seeded_db)

    assert [order.id for order in orders] == ["A", "B"]
    assert orders[0].table == 1
    assert orders[0].items == (LineItem(name="Tea", qty=2, price=20),)
    assert orders[0].ready_time is None
    assert [item.name for item in orders[1].items] == ["Veg Noodles", "Momo"]
    assert orders[1].ready_time == datetime(2026, 10, 19, 12, 30, tzinfo=timezone.utc)


def test_undecodable_payload_reads_as_empty_and_is_logged(db_path, debug_log):
    _store_raw_payload(db_path, config.READY_ORDERS_COLLECTION, "{not json")

    assert load_ready_orders(db_path) == []
    assert "store_read_failed" in debug_log.read_text(encoding="utf-8")


def test_non_list_payload_reads_as_empty(db_path):
    _store_raw_payload(db_path, config.PAID_BILLS_COLLECTION, json.dumps({"id": "A"}))

    assert load_payment_records(db_path) == []


def test_malformed_records_are_skipped(db_path, debug_log):
    write_collection(
        config.READY_ORDERS_COLLECTION,
        [
            {"id": "A", "table": 1, "items": {}, "total": 40},
            {"id": "bad-total", "table": 2, "items": {}, "total": -5},
            "not a record",
            {"id": "C", "table": 3, "items": {"Tea": {"qty": -1, "price": 20}}, "total": 20},
            {"id": 7, "table": "4", "items": {}, "total": 15.5},
        ],
        db_path,
    )

    orders = load_ready_orders(db_path)

    assert [order.id for order in orders] == ["A", "7"]
    assert orders[1].table == 4
    assert debug_log.read_text(encoding="utf-8").count("store_skip_record") == 3


def test_append_payment_record_keeps_existing_records(db_path):
    append_payment_record(_payment("A"), db_path)
    append_payment_record(_payment("B", "upi"), db_path)

    raw = read_collection(config.PAID_BILLS_COLLECTION, db_path)
    assert raw == [
        {"id": "A", "paidTime": "2026-10-19T13:00:00.000Z", "paymentMethod": "cash"},
        {"id": "B", "paidTime": "2026-10-19T13:00:00.000Z", "paymentMethod": "upi"},
    ]
    assert [record.id for record in load_payment_records(db_path)] == ["A", "B"]


def test_append_refuses_to_overwrite_corrupt_payments(db_path):
    _store_raw_payload(db_path, config.PAID_BILLS_COLLECTION, "[{broken")

    with pytest.raises(StoreError):
        append_payment_record(_payment("A"), db_path)

    conn = sqlite3.connect(db_path)
    try:
        row = conn.execute("SELECT payload FROM collections WHERE name = ?", (config.PAID_BILLS_COLLECTION,)).fetchone()
    finally:
        conn.close()
    assert row[0] == "[{broken"


def test_append_retries_once_after_store_failure(db_path, monkeypatch):
    real_append = persistence._append_once
    calls = []

    def flaky(name, record, path):
        calls.append(record["id"])
        if len(calls) == 1:
            raise sqlite3.OperationalError("database is locked")
        real_append(name, record, path)

    monkeypatch.setattr(persistence, "_append_once", flaky)

    append_payment_record(_payment("A"), db_path)

    assert calls == ["A", "A"]
    assert [record.id for record in load_payment_records(db_path)] == ["A"]


def test_append_surfaces_store_error_after_retry(db_path, monkeypatch):
    def always_locked(name, record, path):
        raise sqlite3.OperationalError("database is locked")

    monkeypatch.setattr(persistence, "_append_once", always_locked)

    with pytest.raises(StoreError, match="database is locked"):
        append_payment_record(_payment("A"), db_path)
    assert load_payment_records(db_path) == []


@pytest.mark.parametrize(
    "value, expected",
    [
        ("2026-10-19T12:30:00Z", datetime(2026, 10, 19, 12, 30, tzinfo=timezone.utc)),
        ("2026-10-19T12:30:00", datetime(2026, 10, 19, 12, 30, tzinfo=timezone.utc)),
        (1792413000000, datetime(2026, 10, 19, 12, 30, tzinfo=timezone.utc)),
    ],
)
def test_parse_timestamp_accepts_iso_and_epoch_millis(value, expected):
    assert parse_timestamp(value) == expected


def test_parse_timestamp_rejects_other_types():
    with pytest.raises(ValueError):
        parse_timestamp(True)


def test_parse_timestamp_rejects_out_of_range_epoch():
    with pytest.raises(ValueError, match="out of range"):
        parse_timestamp(10**30)


@pytest.mark.parametrize("ready_time", [10**30, "yesterday", {"at": "noon"}])
def test_unreadable_ready_time_keeps_the_order(db_path, debug_log, ready_time):
    write_collection(
        config.READY_ORDERS_COLLECTION,
        [{"id": "A", "table": 1, "items": {}, "total": 40, "readyTime": ready_time}],
        db_path,
    )

    orders = load_ready_orders(db_path)

    assert [order.id for order in orders] == ["A"]
    assert orders[0].ready_time is None
    assert "store_bad_field" in debug_log.read_text(encoding="utf-8")


def test_payment_with_unreadable_fields_is_kept(db_path, debug_log):
    write_collection(
        config.PAID_BILLS_COLLECTION,
        [
            {"id": "A", "paidTime": "10/19/2026, 1:00 PM", "paymentMethod": "cash"},
            {"id": "B", "paidTime": 10**30},
            {"paidTime": "2026-10-19T13:00:00Z", "paymentMethod": "card"},
        ],
        db_path,
    )

    records = load_payment_records(db_path)

    assert [(record.id, record.paid_time, record.payment_method) for record in records] == [
        ("A", None, "cash"),
        ("B", None, None),
    ]
    log_text = debug_log.read_text(encoding="utf-8")
    assert log_text.count("store_bad_field") == 3
    assert log_text.count("store_skip_record") == 1
