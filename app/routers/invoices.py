import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse, Response

from ..actions import InvoiceActions
from ..cache import PageCache
from ..config import settings
from ..invoice_store import InvoiceRepository, PersistenceError
from ..schemas import InvoiceRead, State
from . import deps

logger = logging.getLogger(__name__)

router = APIRouter(prefix=settings.INVOICES_PATH, tags=["invoices"])


def _state_response(state: State) -> Response:
    if state.errors is not None:
        code = status.HTTP_422_UNPROCESSABLE_ENTITY
    elif state.message:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    else:
        code = status.HTTP_200_OK
    return JSONResponse(state.model_dump(exclude_none=True), status_code=code)


@router.get("", response_model=list[InvoiceRead])
async def list_invoices_route(
    store: InvoiceRepository = Depends(deps.get_invoice_store),
    cache: PageCache = Depends(deps.get_page_cache),
    user=Depends(deps.get_session_user),
):
    cached = cache.get(settings.INVOICES_PATH)
    if cached is not None:
        return cached
    try:
        records = await store.list_invoices()
    except PersistenceError:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Database error: Failed to Fetch Invoices")
    rendered = [InvoiceRead.model_validate(rec) for rec in records]
    cache.set(settings.INVOICES_PATH, rendered)
    return rendered


@router.get("/{invoice_id}", response_model=InvoiceRead)
async def get_invoice_route(
    invoice_id: str,
    store: InvoiceRepository = Depends(deps.get_invoice_store),
    user=Depends(deps.get_session_user),
):
    try:
        record = await store.get_invoice(invoice_id)
    except PersistenceError:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Database error: Failed to Fetch Invoice")
    if not record:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invoice not found")
    return InvoiceRead.model_validate(record)


@router.post("/create")
async def create_invoice_route(
    request: Request,
    actions: InvoiceActions = Depends(deps.get_invoice_actions),
    user=Depends(deps.get_session_user),
):
    """Form post from the create page. Success answers 303 to the list view."""
    form = await request.form()
    state = await actions.create_invoice(None, form)
    return _state_response(state)


@router.post("/{invoice_id}/edit")
async def update_invoice_route(
    invoice_id: str,
    request: Request,
    actions: InvoiceActions = Depends(deps.get_invoice_actions),
    user=Depends(deps.get_session_user),
):
    form = await request.form()
    state = await actions.update_invoice(invoice_id, None, form)
    return _state_response(state)


@router.post("/{invoice_id}/delete")
async def delete_invoice_route(
    invoice_id: str,
    actions: InvoiceActions = Depends(deps.get_invoice_actions),
    user=Depends(deps.get_session_user),
):
    state = await actions.delete_invoice(invoice_id)
    if state is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return _state_response(state)
