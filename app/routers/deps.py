# app/routers/deps.py
from fastapi import Depends, HTTPException, Request, status

from ..actions import InvoiceActions
from ..cache import HTTPRedirectNavigator, PageCache, page_cache
from ..invoice_store import InvoiceRepository, SupabaseInvoiceStore
from ..supabase_client import get_supabase_client


def get_session_user(request: Request) -> dict:
    """Claims the auth gate attached to this request."""
    user = getattr(request.state, "user", None)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not signed in")
    return user


def get_supabase():
    """Return a shared Supabase client instance."""
    return get_supabase_client()


def get_invoice_store(supabase=Depends(get_supabase)) -> InvoiceRepository:
    return SupabaseInvoiceStore(supabase)


def get_page_cache() -> PageCache:
    return page_cache


def get_invoice_actions(
    store: InvoiceRepository = Depends(get_invoice_store),
    cache: PageCache = Depends(get_page_cache),
) -> InvoiceActions:
    return InvoiceActions(store, cache, HTTPRedirectNavigator())
