# app/schemas.py
"""Invoice form validation and the payloads handed back to the dashboard UI."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Any, Dict, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_core import PydanticCustomError

InvoiceStatus = Literal["pending", "paid"]

CUSTOMER_MESSAGE = "Please select a customer"
AMOUNT_MESSAGE = "Please enter an amount greater than $0."
STATUS_MESSAGE = "Please select an invoice status."

# invoices.amount is a 32-bit integer column of cents
MAX_AMOUNT_CENTS = 2_147_483_647
MAX_AMOUNT_MESSAGE = "Please enter an amount no greater than $21,474,836.47."

# form field name -> model attribute
FORM_FIELDS: Dict[str, str] = {
    "customerId": "customer_id",
    "amount": "amount",
    "status": "status",
}


def parse_amount(raw: Any) -> Decimal:
    """Coerce submitted text to a finite decimal; blank or missing means 0."""
    if isinstance(raw, bool):
        raise PydanticCustomError("amount_parsing", AMOUNT_MESSAGE)
    if raw is None:
        return Decimal("0")
    if isinstance(raw, (int, float, Decimal)):
        text = str(raw)
    elif isinstance(raw, str):
        text = raw.strip() or "0"
    else:
        raise PydanticCustomError("amount_parsing", AMOUNT_MESSAGE)
    try:
        value = Decimal(text)
    except InvalidOperation:
        raise PydanticCustomError("amount_parsing", AMOUNT_MESSAGE) from None
    if not value.is_finite():
        raise PydanticCustomError("amount_parsing", AMOUNT_MESSAGE)
    return value


def to_cents(value: Decimal) -> int:
    """Whole minor units, rounded half-up. Callers bound the magnitude first."""
    with localcontext() as ctx:
        ctx.prec = 40
        return int(value.scaleb(2).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class InvoiceInput(BaseModel):
    """User-supplied invoice fields; ``id`` and ``date`` are never part of a submission."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    customer_id: str = Field(alias="customerId")
    amount: Decimal
    status: InvoiceStatus

    @field_validator("customer_id", mode="before")
    @classmethod
    def _require_customer(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise PydanticCustomError("customer_type", CUSTOMER_MESSAGE)
        return value

    @field_validator("amount", mode="before")
    @classmethod
    def _parse_amount(cls, value: Any) -> Decimal:
        return parse_amount(value)

    @field_validator("amount")
    @classmethod
    def _positive_amount(cls, value: Decimal) -> Decimal:
        if value <= 0:
            raise PydanticCustomError("amount_not_positive", AMOUNT_MESSAGE)
        # anything from 1e10 up is far past the column before it is rounded
        if value.adjusted() >= 10:
            raise PydanticCustomError("amount_too_large", MAX_AMOUNT_MESSAGE)
        cents = to_cents(value)
        if cents > MAX_AMOUNT_CENTS:
            raise PydanticCustomError("amount_too_large", MAX_AMOUNT_MESSAGE)
        # sub-cent amounts would be stored as 0
        if cents < 1:
            raise PydanticCustomError("amount_not_positive", AMOUNT_MESSAGE)
        return value

    @field_validator("status", mode="before")
    @classmethod
    def _known_status(cls, value: Any) -> str:
        if value not in ("pending", "paid"):
            raise PydanticCustomError("status_enum", STATUS_MESSAGE)
        return value

    @property
    def amount_in_cents(self) -> int:
        return to_cents(self.amount)


@dataclass(frozen=True)
class FieldIssue:
    field_name: str
    type: str
    message: str


@dataclass(frozen=True)
class ValidationSuccess:
    data: InvoiceInput
    success: Literal[True] = True


@dataclass(frozen=True)
class ValidationFailure:
    issues: List[FieldIssue] = field(default_factory=list)
    success: Literal[False] = False

    @property
    def field_errors(self) -> Dict[str, List[str]]:
        """Messages grouped by form field, in the order they were reported."""
        grouped: Dict[str, List[str]] = {}
        for issue in self.issues:
            grouped.setdefault(issue.field_name, []).append(issue.message)
        return grouped


ValidationResult = Union[ValidationSuccess, ValidationFailure]


def _form_field(loc: tuple) -> str:
    name = str(loc[0]) if loc else ""
    for form_name, attr in FORM_FIELDS.items():
        if name in (form_name, attr):
            return form_name
    return name


def validate_invoice_form(raw: Mapping[str, Any]) -> ValidationResult:
    """Validate a submitted invoice form without raising on bad input."""
    payload = {form_name: raw.get(form_name) for form_name in FORM_FIELDS}
    try:
        data = InvoiceInput.model_validate(payload)
    except ValidationError as exc:
        issues = [
            FieldIssue(field_name=_form_field(err["loc"]), type=err["type"], message=err["msg"])
            for err in exc.errors()
        ]
        return ValidationFailure(issues=issues)
    return ValidationSuccess(data=data)


class FieldErrors(BaseModel):
    customerId: Optional[List[str]] = None
    amount: Optional[List[str]] = None
    status: Optional[List[str]] = None


class State(BaseModel):
    """Form state returned to the UI whenever a mutation does not redirect."""

    errors: Optional[FieldErrors] = None
    message: Optional[str] = None


class InvoiceRead(BaseModel):
    id: str
    customer_id: str
    amount: int
    status: InvoiceStatus
    date: str

    model_config = ConfigDict(from_attributes=True)

    @field_validator("id", "customer_id", mode="before")
    @classmethod
    def _as_text(cls, value: Any) -> str:
        return str(value)
