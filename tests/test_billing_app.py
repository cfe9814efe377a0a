import asyncio

from billdesk import billing_app
from billdesk.billing_app import BillingApp
from billdesk.models import BillFilter
from billdesk.payment_modal import PaymentModal
from billdesk.persistence import load_payment_records


def _run(app, keys):
    async def scenario():
        async with app.run_test() as pilot:
            await pilot.pause()
            for key in keys:
                await pilot.press(key)
                await pilot.pause()
            return isinstance(app.screen, PaymentModal)

    return asyncio.run(scenario())


def test_app_loads_bills_on_mount(seeded_db):
    app = BillingApp(db_path=seeded_db, refresh_interval=60)

    _run(app, [])

    assert [bill.id for bill in app.billing_state.bills] == ["A", "B"]
    assert app.billing_state.stats.unpaid_count == 2
    assert app.billing_state.selected_bill_id == "A"


def test_filter_keys_switch_the_view(seeded_db):
    app = BillingApp(db_path=seeded_db, refresh_interval=60)

    _run(app, ["3"])

    assert app.billing_state.bill_filter is BillFilter.PAID
    assert app.billing_state.selected_bill_id is None


def test_pay_flow_records_payment(seeded_db):
    app = BillingApp(db_path=seeded_db, refresh_interval=60)

    modal_open = _run(app, ["j", "enter", "2", "enter"])

    assert not modal_open
    records = load_payment_records(seeded_db)
    assert [(record.id, record.payment_method) for record in records] == [("B", "card")]
    assert app.billing_state.stats.paid_count == 1
    assert app.billing_state.stats.total_revenue == 240
    assert "paid by Card" in app.system_status


def test_confirm_without_method_keeps_modal_open(seeded_db):
    app = BillingApp(db_path=seeded_db, refresh_interval=60)

    modal_open = _run(app, ["enter", "enter"])

    assert modal_open
    assert load_payment_records(seeded_db) == []


def test_cancelled_payment_writes_nothing(seeded_db):
    app = BillingApp(db_path=seeded_db, refresh_interval=60)

    modal_open = _run(app, ["enter", "escape"])

    assert not modal_open
    assert app.system_status == "Payment cancelled"
    assert load_payment_records(seeded_db) == []


def test_print_requires_paid_bill(seeded_db, monkeypatch):
    printed = []
    monkeypatch.setattr(billing_app, "print_receipt", printed.append)
    app = BillingApp(db_path=seeded_db, refresh_interval=60)

    _run(app, ["p"])

    assert printed == []
    assert app.system_status == "Only paid bills can be printed"


def test_print_paid_bill(seeded_db, monkeypatch):
    printed = []
    monkeypatch.setattr(billing_app, "print_receipt", printed.append)
    app = BillingApp(db_path=seeded_db, refresh_interval=60)

    _run(app, ["enter", "1", "enter", "p"])

    assert [bill.id for bill in printed] == ["A"]
    assert printed[0].paid is True
    assert app.system_status == "Printed receipt for table 1"
