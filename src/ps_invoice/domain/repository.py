# src/ps_invoice/domain/repository.py
"""Repository Protocol: dependency inversion for testability.

Unit tests inject a mock that conforms to this Protocol.
Infrastructure provides two implementations: in-memory and PostgreSQL.
"""

from datetime import datetime
from typing import Protocol

from src.ps_invoice.domain.models import Invoice, InvoiceDetailsPatch, NewInvoice


class InvoiceRepositoryProtocol(Protocol):
    async def create(self, new: NewInvoice, now: datetime) -> Invoice:
        """Insert with a generated id and, when missing, a per-creator invoice number.

        Raises DuplicateInvoiceNumberError when (creator_id, invoice_number) exists.
        """
        ...

    async def get(self, invoice_id: str) -> Invoice | None: ...

    async def list(
        self,
        creator_id: str | None,
        status: str | None,
    ) -> list[Invoice]: ...

    async def compare_and_set_status(
        self,
        invoice_id: str,
        expected: str,
        new_status: str,
        now: datetime,
    ) -> tuple[Invoice | None, str | None]:
        """Atomically move expected -> new_status.

        Returns (updated, None) on success, (None, actual_status) when the
        precondition failed, (None, None) when the invoice does not exist.
        Also maintains paid_at / refunded_at for the target status.
        """
        ...

    async def update_details(
        self,
        invoice_id: str,
        patch: InvoiceDetailsPatch,
        editable_statuses: frozenset[str],
        now: datetime,
    ) -> tuple[Invoice | None, str | None]:
        """Apply patch only while status is editable; same return convention as CAS."""
        ...
