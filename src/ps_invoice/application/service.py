"""Invoice application service: request DTOs in, InvoiceOut out.

Thin layer over InvoiceStore: currency normalization, the best-effort USD
snapshot at creation, and PATCH handling (details edit and/or a status step).
"""

import logging
from decimal import Decimal

from src.ps_common.enums import InvoiceStatus
from src.ps_common.errors import AppError, InvalidTransitionError
from src.ps_common.money import normalize_currency
from src.ps_invoice.application.schemas import (
    InvoiceCreateRequest,
    InvoiceOut,
    InvoicePatchRequest,
)
from src.ps_invoice.application.store import InvoiceStore
from src.ps_invoice.domain.models import InvoiceDetailsPatch, NewInvoice
from src.ps_invoice.domain.state_machine import check_transition, parse_status
from src.ps_pricing.application.converter import CurrencyConverter

logger = logging.getLogger(__name__)


class InvoiceService:
    def __init__(self, store: InvoiceStore, converter: CurrencyConverter) -> None:
        self._store = store
        self._converter = converter

    async def create_invoice(self, req: InvoiceCreateRequest) -> InvoiceOut:
        currency = normalize_currency(req.currency)
        fiat_amount = req.fiat_amount
        if fiat_amount is None:
            fiat_amount = await self._usd_snapshot(req.amount, currency)
        invoice = await self._store.create(
            NewInvoice(
                creator_id=req.creator_id,
                recipient_address=req.recipient_address,
                amount=req.amount,
                currency=currency,
                due_date=req.due_date,
                invoice_number=req.invoice_number,
                recipient_name=req.recipient_name,
                description=req.description,
                fiat_amount=fiat_amount,
            )
        )
        return InvoiceOut.from_domain(invoice)

    async def get_invoice(self, invoice_id: str) -> InvoiceOut:
        return InvoiceOut.from_domain(await self._store.get(invoice_id))

    async def list_invoices(
        self, creator_id: str | None = None, status: str | None = None
    ) -> list[InvoiceOut]:
        invoices = await self._store.list(creator_id=creator_id, status=status)
        return [InvoiceOut.from_domain(inv) for inv in invoices]

    async def patch_invoice(self, invoice_id: str, req: InvoicePatchRequest) -> InvoiceOut:
        """Validate the requested status step, apply detail edits, then take the step.

        paid is reachable only through settlement, never through PATCH.
        """
        target = parse_status(req.status) if req.status else None
        patch = InvoiceDetailsPatch(
            recipient_address=req.recipient_address,
            recipient_name=req.recipient_name,
            description=req.description,
            due_date=req.due_date,
        )
        current = await self._store.get(invoice_id, derive_overdue=False)
        if target == InvoiceStatus.PAID:
            raise InvalidTransitionError(
                current.status, target.value, "invoices are marked paid by settlement only"
            )
        if target is not None:
            # Reject an illegal edge before any detail edit is written
            check_transition(parse_status(current.status), target)

        invoice = current
        if not patch.is_empty():
            invoice = await self._store.update_details(invoice_id, patch)
        if target is not None:
            invoice = await self._store.transition(invoice_id, current.status, target.value)
        elif patch.is_empty():
            invoice = await self._store.get(invoice_id)
        return InvoiceOut.from_domain(invoice)

    async def _usd_snapshot(self, amount: Decimal, currency: str) -> Decimal | None:
        try:
            return await self._converter.to_usd(amount, currency)
        except AppError as exc:
            logger.warning("Invoice created without fiat snapshot: %s", exc.message)
            return None
