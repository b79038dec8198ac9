"""InMemoryInvoiceRepository: keyed dict implementation of InvoiceRepositoryProtocol.

Records are frozen dataclasses; a write replaces the value under its key.
Status writes hold a lock scoped to the invoice id, so contention on one invoice
never serializes work on another; a lock is created with its invoice, so unknown
ids allocate nothing. Creation holds a lock scoped to the creator (invoice
numbers are unique per creator).
"""

import asyncio
from collections import defaultdict
from dataclasses import replace
from datetime import datetime

from src.ps_common.enums import InvoiceStatus
from src.ps_common.errors import DuplicateInvoiceNumberError
from src.ps_common.id_generator import SnowflakeIdGenerator
from src.ps_invoice.domain.models import Invoice, InvoiceDetailsPatch, NewInvoice
from src.ps_invoice.domain.state_machine import status_timestamps


def format_invoice_number(seq: int) -> str:
    return f"INV-{seq:06d}"


class InMemoryInvoiceRepository:
    def __init__(self, id_generator: SnowflakeIdGenerator | None = None) -> None:
        self._ids = id_generator or SnowflakeIdGenerator(prefix="inv_")
        self._invoices: dict[str, Invoice] = {}
        self._numbers: dict[str, set[str]] = defaultdict(set)
        self._invoice_locks: dict[str, asyncio.Lock] = {}
        self._creator_locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def create(self, new: NewInvoice, now: datetime) -> Invoice:
        async with self._creator_locks[new.creator_id]:
            taken = self._numbers[new.creator_id]
            number = new.invoice_number
            if number is None:
                seq = len(taken) + 1
                while format_invoice_number(seq) in taken:
                    seq += 1
                number = format_invoice_number(seq)
            elif number in taken:
                raise DuplicateInvoiceNumberError(new.creator_id, number)

            invoice = Invoice(
                id=self._ids.next_id(),
                invoice_number=number,
                creator_id=new.creator_id,
                recipient_address=new.recipient_address,
                recipient_name=new.recipient_name,
                description=new.description,
                amount=new.amount,
                currency=new.currency,
                fiat_amount=new.fiat_amount,
                status=InvoiceStatus.DRAFT.value,
                due_date=new.due_date,
                created_at=now,
                updated_at=now,
            )
            taken.add(number)
            self._invoice_locks[invoice.id] = asyncio.Lock()
            self._invoices[invoice.id] = invoice
            return invoice

    async def get(self, invoice_id: str) -> Invoice | None:
        return self._invoices.get(invoice_id)

    async def list(self, creator_id: str | None, status: str | None) -> list[Invoice]:
        items = [
            inv
            for inv in self._invoices.values()
            if (creator_id is None or inv.creator_id == creator_id)
            and (status is None or inv.status == status)
        ]
        items.sort(key=lambda inv: (inv.created_at, inv.id), reverse=True)
        return items

    async def compare_and_set_status(
        self,
        invoice_id: str,
        expected: str,
        new_status: str,
        now: datetime,
    ) -> tuple[Invoice | None, str | None]:
        lock = self._invoice_locks.get(invoice_id)
        if lock is None:
            return None, None
        async with lock:
            current = self._invoices.get(invoice_id)
            if current is None:
                return None, None
            if current.status != expected:
                return None, current.status
            paid_at, refunded_at = status_timestamps(new_status, now, current.paid_at)
            updated = replace(
                current,
                status=new_status,
                paid_at=paid_at,
                refunded_at=refunded_at if refunded_at is not None else current.refunded_at,
                updated_at=now,
            )
            self._invoices[invoice_id] = updated
            return updated, None

    async def update_details(
        self,
        invoice_id: str,
        patch: InvoiceDetailsPatch,
        editable_statuses: frozenset[str],
        now: datetime,
    ) -> tuple[Invoice | None, str | None]:
        lock = self._invoice_locks.get(invoice_id)
        if lock is None:
            return None, None
        async with lock:
            current = self._invoices.get(invoice_id)
            if current is None:
                return None, None
            if current.status not in editable_statuses:
                return None, current.status
            changes = {
                name: value
                for name, value in (
                    ("recipient_address", patch.recipient_address),
                    ("recipient_name", patch.recipient_name),
                    ("description", patch.description),
                    ("due_date", patch.due_date),
                )
                if value is not None
            }
            updated = replace(current, updated_at=now, **changes)
            self._invoices[invoice_id] = updated
            return updated, None
