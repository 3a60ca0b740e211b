import os

# Settings() is built at import time; give it a complete environment first.
os.environ.setdefault("SUPABASE_URL", "https://example.supabase.co")
os.environ.setdefault("SUPABASE_JWKS_URL", "https://example.supabase.co/auth/v1/.well-known/jwks.json")
os.environ.setdefault("SUPABASE_ANON_KEY", "anon-key")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "service-role-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret-with-enough-length-for-hs256")

from typing import Any, Dict, List, Optional
from uuid import uuid4

import pytest

from app.cache import HTTPRedirectNavigator
from app.invoice_store import InvoiceNotFoundError, PersistenceError


class InMemoryInvoiceStore:
    """Invoice repository over a dict. Set ``fail`` to make every call raise."""

    def __init__(self) -> None:
        self.rows: Dict[str, Dict[str, Any]] = {}
        self.fail = False
        self.calls: List[str] = []

    def _check(self, op: str) -> None:
        self.calls.append(op)
        if self.fail:
            raise PersistenceError(f"{op} failed")

    def seed(self, **row: Any) -> Dict[str, Any]:
        invoice_id = row.pop("id", None) or str(uuid4())
        self.rows[invoice_id] = {"id": invoice_id, **row}
        return self.rows[invoice_id]

    async def create(self, *, customer_id: str, amount: int, status: str, date: str) -> Dict[str, Any]:
        self._check("create")
        return self.seed(customer_id=customer_id, amount=amount, status=status, date=date)

    async def update(self, invoice_id: str, *, customer_id: str, amount: int, status: str) -> None:
        self._check("update")
        if invoice_id not in self.rows:
            raise InvoiceNotFoundError(invoice_id)
        self.rows[invoice_id].update(customer_id=customer_id, amount=amount, status=status)

    async def delete(self, invoice_id: str) -> None:
        self._check("delete")
        if self.rows.pop(invoice_id, None) is None:
            raise InvoiceNotFoundError(invoice_id)

    async def list_invoices(self, limit: int = 1000) -> List[Dict[str, Any]]:
        self._check("list")
        rows = sorted(self.rows.values(), key=lambda r: r["date"], reverse=True)
        return [dict(r) for r in rows[:limit]]

    async def get_invoice(self, invoice_id: str) -> Optional[Dict[str, Any]]:
        self._check("get")
        row = self.rows.get(invoice_id)
        return dict(row) if row else None


class RecordingRevalidator:
    def __init__(self) -> None:
        self.paths: List[str] = []

    def revalidate_path(self, path: str) -> None:
        self.paths.append(path)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def store() -> InMemoryInvoiceStore:
    return InMemoryInvoiceStore()


@pytest.fixture
def revalidator() -> RecordingRevalidator:
    return RecordingRevalidator()


@pytest.fixture
def navigator() -> HTTPRedirectNavigator:
    return HTTPRedirectNavigator()
