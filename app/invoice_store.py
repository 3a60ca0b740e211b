# app/invoice_store.py
"""Persistence for invoice rows in Supabase."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional, Protocol

from supabase import Client

logger = logging.getLogger(__name__)

INVOICES_TABLE = "invoices"


class PersistenceError(Exception):
    """The store could not complete a statement. The cause is chained, never shown to users."""


class InvoiceNotFoundError(PersistenceError):
    """An update or delete matched no row."""

    def __init__(self, invoice_id: str):
        super().__init__(f"Invoice {invoice_id} not found")
        self.invoice_id = invoice_id


class InvoiceRepository(Protocol):
    async def create(self, *, customer_id: str, amount: int, status: str, date: str) -> Dict[str, Any]:
        ...

    async def update(self, invoice_id: str, *, customer_id: str, amount: int, status: str) -> None:
        ...

    async def delete(self, invoice_id: str) -> None:
        ...

    async def list_invoices(self, limit: int = 1000) -> list[Dict[str, Any]]:
        ...

    async def get_invoice(self, invoice_id: str) -> Optional[Dict[str, Any]]:
        ...


# INSERT INTO invoices (customer_id, amount, status, date) VALUES (?, ?, ?, ?)
def _insert_invoice_sync(supabase: Client, payload: Dict[str, Any]):
    return supabase.table(INVOICES_TABLE).insert(payload).execute()


# UPDATE invoices SET customer_id=?, amount=?, status=? WHERE id=?
def _update_invoice_sync(supabase: Client, invoice_id: str, payload: Dict[str, Any]):
    return (
        supabase
        .table(INVOICES_TABLE)
        .update(payload)
        .eq("id", invoice_id)
        .execute()
    )


# DELETE FROM invoices WHERE id=?
def _delete_invoice_sync(supabase: Client, invoice_id: str):
    return (
        supabase
        .table(INVOICES_TABLE)
        .delete()
        .eq("id", invoice_id)
        .execute()
    )


def _list_invoices_sync(supabase: Client, limit: int):
    return (
        supabase
        .table(INVOICES_TABLE)
        .select("id, customer_id, amount, status, date")
        .order("date", desc=True)
        .limit(limit)
        .execute()
    )


def _fetch_invoice_sync(supabase: Client, invoice_id: str):
    return (
        supabase
        .table(INVOICES_TABLE)
        .select("id, customer_id, amount, status, date")
        .eq("id", invoice_id)
        .limit(1)
        .execute()
    )


class SupabaseInvoiceStore:
    """InvoiceRepository backed by the ``invoices`` table.

    The Supabase client is synchronous, so every call is pushed to a worker
    thread. Any client failure surfaces as :class:`PersistenceError`.
    """

    def __init__(self, supabase: Client):
        self._supabase = supabase

    async def _run(self, op: str, fn, *args):
        try:
            return await asyncio.to_thread(fn, self._supabase, *args)
        except Exception as exc:
            logger.warning("Supabase %s on %s failed: %s", op, INVOICES_TABLE, exc)
            raise PersistenceError(f"{op} failed") from exc

    async def create(self, *, customer_id: str, amount: int, status: str, date: str) -> Dict[str, Any]:
        payload = {
            "customer_id": customer_id,
            "amount": amount,
            "status": status,
            "date": date,
        }
        resp = await self._run("insert", _insert_invoice_sync, payload)
        rows = resp.data or []
        logger.debug("Inserted invoice for customer=%s", customer_id)
        return rows[0] if rows else payload

    async def update(self, invoice_id: str, *, customer_id: str, amount: int, status: str) -> None:
        payload = {"customer_id": customer_id, "amount": amount, "status": status}
        resp = await self._run("update", _update_invoice_sync, invoice_id, payload)
        if not resp.data:
            raise InvoiceNotFoundError(invoice_id)

    async def delete(self, invoice_id: str) -> None:
        resp = await self._run("delete", _delete_invoice_sync, invoice_id)
        if not resp.data:
            raise InvoiceNotFoundError(invoice_id)

    async def list_invoices(self, limit: int = 1000) -> list[Dict[str, Any]]:
        resp = await self._run("select", _list_invoices_sync, limit)
        return resp.data or []

    async def get_invoice(self, invoice_id: str) -> Optional[Dict[str, Any]]:
        resp = await self._run("select", _fetch_invoice_sync, invoice_id)
        rows = resp.data or []
        return rows[0] if rows else None


__all__ = [
    "INVOICES_TABLE",
    "InvoiceNotFoundError",
    "InvoiceRepository",
    "PersistenceError",
    "SupabaseInvoiceStore",
]
