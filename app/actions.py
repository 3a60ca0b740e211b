# app/actions.py
"""Form actions for the invoices dashboard.

Each action validates the submitted form, writes through the repository,
marks the invoice list stale and (for create/update) redirects to it. Any
failure comes back as a :class:`State` for the form to re-render; nothing
here raises for bad input or a failed statement.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any, Callable, Mapping, Optional

from .cache import Navigator, PathRevalidator
from .config import settings
from .invoice_store import InvoiceRepository, PersistenceError
from .schemas import FieldErrors, State, ValidationFailure, validate_invoice_form

logger = logging.getLogger(__name__)

CREATE_INVALID = "Missing Fields. Failed to Create Invoice."
CREATE_FAILED = "Database error: Failed to Create Invoices"
UPDATE_INVALID = "Missing input value. Failed to Update Invoice"
UPDATE_FAILED = "Database error: Failed to Update Invoice"
DELETE_FAILED = "Database error: Failed to Delete Invoice"


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def _invalid_state(result: ValidationFailure, message: str) -> State:
    return State(errors=FieldErrors(**result.field_errors), message=message)


class InvoiceActions:
    def __init__(
        self,
        repository: InvoiceRepository,
        revalidator: PathRevalidator,
        navigator: Navigator,
        today: Callable[[], date] = utc_today,
        invoices_path: Optional[str] = None,
    ):
        self.repository = repository
        self.revalidator = revalidator
        self.navigator = navigator
        self.today = today
        self.invoices_path = invoices_path or settings.INVOICES_PATH

    def _finish(self, *, redirect: bool) -> None:
        self.revalidator.revalidate_path(self.invoices_path)
        if redirect:
            self.navigator.redirect(self.invoices_path)

    async def create_invoice(self, prev_state: Optional[State], form_data: Mapping[str, Any]) -> State:
        """Insert a new invoice dated today. Redirects to the list on success."""
        result = validate_invoice_form(form_data)
        if isinstance(result, ValidationFailure):
            logger.debug("Create rejected: %s", [(i.field_name, i.type) for i in result.issues])
            return _invalid_state(result, CREATE_INVALID)

        invoice = result.data
        try:
            await self.repository.create(
                customer_id=invoice.customer_id,
                amount=invoice.amount_in_cents,
                status=invoice.status,
                date=self.today().isoformat(),
            )
        except PersistenceError:
            logger.warning("Failed to create invoice for customer=%s", invoice.customer_id, exc_info=True)
            return State(message=CREATE_FAILED)

        logger.info("Created invoice for customer=%s", invoice.customer_id)
        self._finish(redirect=True)
        # only reachable with a navigator that does not transfer control
        return State()

    async def update_invoice(
        self, invoice_id: str, prev_state: Optional[State], form_data: Mapping[str, Any]
    ) -> State:
        """Rewrite customer, amount and status of ``invoice_id``; its date is left alone."""
        result = validate_invoice_form(form_data)
        if isinstance(result, ValidationFailure):
            logger.debug("Update of %s rejected: %s", invoice_id, [(i.field_name, i.type) for i in result.issues])
            return _invalid_state(result, UPDATE_INVALID)

        invoice = result.data
        try:
            await self.repository.update(
                invoice_id,
                customer_id=invoice.customer_id,
                amount=invoice.amount_in_cents,
                status=invoice.status,
            )
        except PersistenceError:
            logger.warning("Failed to update invoice %s", invoice_id, exc_info=True)
            return State(message=UPDATE_FAILED)

        logger.info("Updated invoice %s", invoice_id)
        self._finish(redirect=True)
        return State()

    async def delete_invoice(self, invoice_id: str, form_data: Optional[Mapping[str, Any]] = None) -> Optional[State]:
        try:
            await self.repository.delete(invoice_id)
        except PersistenceError:
            logger.warning("Failed to delete invoice %s", invoice_id, exc_info=True)
            return State(message=DELETE_FAILED)

        logger.info("Deleted invoice %s", invoice_id)
        # deletes are issued from the list view itself, so no redirect
        self._finish(redirect=False)
        return None


__all__ = ["InvoiceActions", "utc_today"]
