"""Shared fixtures: a throwaway store and sample records."""

from __future__ import annotations

import pytest

from billdesk import config
from billdesk.persistence import write_collection


@pytest.fixture(autouse=True)
def debug_log(tmp_path, monkeypatch):
    log_path = tmp_path / "debug.log"
    monkeypatch.setattr(config, "DEBUG_LOG_PATH", str(log_path))
    return log_path


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "store" / "billdesk.db"


@pytest.fixture
def ready_orders_raw():
    return [
        {
            "id": "A",
            "table": 1,
            "items": {"Tea": {"qty": 2, "price": 20}},
            "total": 40,
        },
        {
            "id": "B",
            "table": 2,
            "items": {"Veg Noodles": {"qty": 1, "price": 120}, "Momo": {"qty": 2, "price": 60}},
            "total": 240,
            "readyTime": "2026-10-19T12:30:00.000Z",
        },
    ]


@pytest.fixture
def seeded_db(db_path, ready_orders_raw):
    write_collection(config.READY_ORDERS_COLLECTION, ready_orders_raw, db_path)
    return db_path
