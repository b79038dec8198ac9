"""InvoiceStore: keyed repository of invoices; owns status-transition rules.

Reads apply the derived ``overdue`` status (pending and past due). Nothing here
writes ``overdue``: the persisted record stays ``pending`` until a real
transition happens, which keeps reads side-effect free.

transition(id, from, to) is the single serialization point for settlement:
it rejects illegal edges first, then performs an atomic compare-and-swap on
the persisted status.
"""

import logging
from dataclasses import replace

from src.ps_common.datetime_utils import Clock, ensure_utc, utc_now
from src.ps_common.enums import InvoiceStatus
from src.ps_common.errors import (
    InvoiceLockedError,
    InvoiceNotFoundError,
    StatusConflictError,
    ValidationError,
)
from src.ps_invoice.domain.models import Invoice, InvoiceDetailsPatch, NewInvoice
from src.ps_invoice.domain.repository import InvoiceRepositoryProtocol
from src.ps_invoice.domain.state_machine import (
    EDITABLE_STATUSES,
    check_transition,
    derive_status,
    parse_status,
)

logger = logging.getLogger(__name__)


class InvoiceStore:
    def __init__(self, repo: InvoiceRepositoryProtocol, clock: Clock = utc_now) -> None:
        self._repo = repo
        self._clock = clock

    def _with_derived_status(self, invoice: Invoice) -> Invoice:
        status = derive_status(invoice.status, invoice.due_date, self._clock())
        return invoice if status == invoice.status else replace(invoice, status=status)

    async def create(self, new: NewInvoice) -> Invoice:
        if new.amount < 0:
            raise ValidationError(f"amount must be >= 0, got {new.amount}")
        if not new.creator_id.strip():
            raise ValidationError("creatorId is required")
        new = replace(new, due_date=ensure_utc(new.due_date))
        invoice = await self._repo.create(new, self._clock())
        logger.info(
            "Invoice created: id=%s number=%s creator=%s amount=%s %s",
            invoice.id, invoice.invoice_number, invoice.creator_id,
            invoice.amount, invoice.currency,
        )
        return self._with_derived_status(invoice)

    async def get(self, invoice_id: str, derive_overdue: bool = True) -> Invoice:
        """Fetch one invoice. derive_overdue=False returns the persisted record."""
        invoice = await self._repo.get(invoice_id)
        if invoice is None:
            raise InvoiceNotFoundError(invoice_id)
        return self._with_derived_status(invoice) if derive_overdue else invoice

    async def list(
        self,
        creator_id: str | None = None,
        status: str | None = None,
    ) -> list[Invoice]:
        """List invoices; the status filter matches the derived status."""
        wanted = parse_status(status) if status else None
        # overdue is stored as pending
        stored = InvoiceStatus.PENDING if wanted == InvoiceStatus.OVERDUE else wanted
        invoices = await self._repo.list(creator_id, stored.value if stored else None)
        derived = [self._with_derived_status(inv) for inv in invoices]
        if wanted is None:
            return derived
        return [inv for inv in derived if inv.status == wanted.value]

    async def transition(self, invoice_id: str, from_status: str, to_status: str) -> Invoice:
        """Atomic compare-and-swap of the persisted status.

        Raises InvalidTransitionError for an illegal edge, InvoiceNotFoundError
        for an unknown id, StatusConflictError when the persisted status is not
        ``from_status`` (nothing is written in that case).
        """
        src = parse_status(from_status)
        dst = parse_status(to_status)
        if src == InvoiceStatus.OVERDUE:
            # Callers reading a derived status still transition the stored one
            src = InvoiceStatus.PENDING
        check_transition(src, dst)

        updated, actual = await self._repo.compare_and_set_status(
            invoice_id, src.value, dst.value, self._clock()
        )
        if updated is None:
            if actual is None:
                raise InvoiceNotFoundError(invoice_id)
            logger.info(
                "Invoice %s transition %s -> %s rejected: status is %s",
                invoice_id, src.value, dst.value, actual,
            )
            raise StatusConflictError(invoice_id, src.value, actual)

        logger.info("Invoice %s transitioned %s -> %s", invoice_id, src.value, dst.value)
        return self._with_derived_status(updated)

    async def update_details(self, invoice_id: str, patch: InvoiceDetailsPatch) -> Invoice:
        """Edit recipient/description/due date while the invoice is draft or pending."""
        if patch.is_empty():
            return await self.get(invoice_id)
        if patch.due_date is not None:
            patch = replace(patch, due_date=ensure_utc(patch.due_date))
        editable = frozenset(s.value for s in EDITABLE_STATUSES)
        updated, actual = await self._repo.update_details(
            invoice_id, patch, editable, self._clock()
        )
        if updated is None:
            if actual is None:
                raise InvoiceNotFoundError(invoice_id)
            raise InvoiceLockedError(invoice_id, actual)
        return self._with_derived_status(updated)
