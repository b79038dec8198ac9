"""Pydantic schemas for ps_invoice API requests/responses."""

from datetime import datetime
from decimal import Decimal

from pydantic import field_validator

from src.ps_common.schemas import AmountField, CamelModel
from src.ps_invoice.domain.models import Invoice


class InvoiceCreateRequest(CamelModel):
    creator_id: str
    recipient_address: str
    amount: AmountField
    currency: str
    due_date: datetime
    invoice_number: str | None = None
    recipient_name: str | None = None
    description: str | None = None
    fiat_amount: AmountField | None = None

    @field_validator("creator_id", "recipient_address", "currency")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("must not be blank")
        return v.strip()

    @field_validator("invoice_number")
    @classmethod
    def no_whitespace(cls, v: str | None) -> str | None:
        if v is not None and (not v or v != v.strip()):
            raise ValueError("invoiceNumber must not be blank or padded")
        return v


class InvoicePatchRequest(CamelModel):
    status: str | None = None
    recipient_address: str | None = None
    recipient_name: str | None = None
    description: str | None = None
    due_date: datetime | None = None


class InvoiceOut(CamelModel):
    id: str
    invoice_number: str
    creator_id: str
    recipient_address: str
    recipient_name: str | None = None
    description: str | None = None
    amount: Decimal
    currency: str
    fiat_amount: Decimal | None = None
    status: str
    due_date: datetime
    created_at: datetime
    updated_at: datetime
    paid_at: datetime | None = None
    refunded_at: datetime | None = None

    @classmethod
    def from_domain(cls, invoice: Invoice) -> "InvoiceOut":
        return cls(
            id=invoice.id,
            invoice_number=invoice.invoice_number,
            creator_id=invoice.creator_id,
            recipient_address=invoice.recipient_address,
            recipient_name=invoice.recipient_name,
            description=invoice.description,
            amount=invoice.amount,
            currency=invoice.currency,
            fiat_amount=invoice.fiat_amount,
            status=invoice.status,
            due_date=invoice.due_date,
            created_at=invoice.created_at,
            updated_at=invoice.updated_at,
            paid_at=invoice.paid_at,
            refunded_at=invoice.refunded_at,
        )
