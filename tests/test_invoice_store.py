"""SupabaseInvoiceStore against a recording stand-in for the Supabase query builder."""

from types import SimpleNamespace

import pytest

from app.invoice_store import (
    INVOICES_TABLE,
    InvoiceNotFoundError,
    PersistenceError,
    SupabaseInvoiceStore,
)

pytestmark = pytest.mark.anyio


class FakeQuery:
    def __init__(self, client, table):
        self.client = client
        self.ops = [("table", table)]

    def __getattr__(self, name):
        def step(*args, **kwargs):
            self.ops.append((name, args, kwargs) if kwargs else (name, args))
            return self
        return step

    def execute(self):
        self.client.executed.append(self.ops)
        if self.client.error is not None:
            raise self.client.error
        return SimpleNamespace(data=self.client.data)


class FakeSupabase:
    def __init__(self, data=None, error=None):
        self.data = data
        self.error = error
        self.executed = []

    def table(self, name):
        return FakeQuery(self, name)


async def test_create_inserts_one_row():
    row = {"id": "inv-1", "customer_id": "c1", "amount": 1550, "status": "paid", "date": "2026-10-19"}
    client = FakeSupabase(data=[row])

    created = await SupabaseInvoiceStore(client).create(
        customer_id="c1", amount=1550, status="paid", date="2026-10-19"
    )

    assert created == row
    (ops,) = client.executed
    assert ops == [
        ("table", INVOICES_TABLE),
        ("insert", ({"customer_id": "c1", "amount": 1550, "status": "paid", "date": "2026-10-19"},)),
    ]


async def test_update_filters_by_id_and_leaves_date_alone():
    client = FakeSupabase(data=[{"id": "inv-1"}])

    await SupabaseInvoiceStore(client).update("inv-1", customer_id="c2", amount=200, status="pending")

    (ops,) = client.executed
    assert ops == [
        ("table", "invoices"),
        ("update", ({"customer_id": "c2", "amount": 200, "status": "pending"},)),
        ("eq", ("id", "inv-1")),
    ]


async def test_update_without_match_raises_not_found():
    client = FakeSupabase(data=[])

    with pytest.raises(InvoiceNotFoundError) as exc_info:
        await SupabaseInvoiceStore(client).update("gone", customer_id="c2", amount=200, status="pending")

    assert exc_info.value.invoice_id == "gone"


async def test_delete_filters_by_id():
    client = FakeSupabase(data=[{"id": "inv-1"}])

    await SupabaseInvoiceStore(client).delete("inv-1")

    (ops,) = client.executed
    assert ops == [("table", "invoices"), ("delete", ()), ("eq", ("id", "inv-1"))]


async def test_delete_twice_is_a_persistence_error():
    client = FakeSupabase(data=[])

    with pytest.raises(PersistenceError):
        await SupabaseInvoiceStore(client).delete("inv-1")


async def test_client_errors_are_wrapped():
    boom = RuntimeError("connection refused")
    client = FakeSupabase(error=boom)

    with pytest.raises(PersistenceError) as exc_info:
        await SupabaseInvoiceStore(client).create(customer_id="c1", amount=1, status="paid", date="2026-10-19")

    assert exc_info.value.__cause__ is boom
    assert "connection refused" not in str(exc_info.value)


async def test_list_orders_newest_first():
    client = FakeSupabase(data=None)

    rows = await SupabaseInvoiceStore(client).list_invoices(limit=5)

    assert rows == []
    (ops,) = client.executed
    assert ("order", ("date",), {"desc": True}) in ops
    assert ("limit", (5,)) in ops


async def test_get_returns_first_row_or_none():
    row = {"id": "inv-1", "customer_id": "c1", "amount": 1, "status": "paid", "date": "2026-10-19"}

    assert await SupabaseInvoiceStore(FakeSupabase(data=[row])).get_invoice("inv-1") == row
    assert await SupabaseInvoiceStore(FakeSupabase(data=[])).get_invoice("inv-1") is None
