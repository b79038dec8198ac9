"""Domain models for ps_invoice: frozen dataclasses, no business logic.

Repositories hand out these immutable values; a change is always a new
instance written back through the repository.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass(frozen=True)
class Invoice:
    id: str
    invoice_number: str
    creator_id: str
    recipient_address: str
    amount: Decimal
    currency: str
    status: str
    due_date: datetime
    created_at: datetime
    updated_at: datetime
    recipient_name: str | None = None
    description: str | None = None
    fiat_amount: Decimal | None = None
    paid_at: datetime | None = None
    refunded_at: datetime | None = None


@dataclass(frozen=True)
class NewInvoice:
    """Validated creation input; id, number and timestamps are assigned by the repository."""

    creator_id: str
    recipient_address: str
    amount: Decimal
    currency: str
    due_date: datetime
    invoice_number: str | None = None
    recipient_name: str | None = None
    description: str | None = None
    fiat_amount: Decimal | None = None


@dataclass(frozen=True)
class InvoiceDetailsPatch:
    """Editable non-status fields. None means "leave unchanged"."""

    recipient_address: str | None = None
    recipient_name: str | None = None
    description: str | None = None
    due_date: datetime | None = None

    def is_empty(self) -> bool:
        return all(
            v is None
            for v in (self.recipient_address, self.recipient_name, self.description, self.due_date)
        )
