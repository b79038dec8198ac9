"""Solana invoice surface: SOL invoices payable to their creator's wallet.

Invoices created here are ordinary invoices (currency SOL, recipient = creator)
issued immediately (draft -> pending). Payments go through SettlementProcessor
like any other.
"""

import logging
from collections.abc import Callable
from datetime import timedelta

from src.ps_common.addresses import is_solana_address
from src.ps_common.datetime_utils import Clock, utc_now
from src.ps_common.enums import InvoiceStatus
from src.ps_common.errors import InvoiceNotFoundError, ValidationError
from src.ps_invoice.application.store import InvoiceStore
from src.ps_invoice.domain.models import NewInvoice
from src.ps_settlement.application.service import SettlementProcessor
from src.ps_wallet.application.schemas import (
    SolanaInvoiceCreateRequest,
    SolanaInvoiceOut,
    SolanaPaymentRequest,
    SolanaPaymentResponse,
)
from src.ps_wallet.domain.adapter import NATIVE_SYMBOL, WalletAdapterProtocol

logger = logging.getLogger(__name__)


class SolanaInvoiceService:
    def __init__(
        self,
        store: InvoiceStore,
        settlement: SettlementProcessor,
        adapter_factory: Callable[[], WalletAdapterProtocol],
        due_days: int = 30,
        clock: Clock = utc_now,
    ) -> None:
        self._store = store
        self._settlement = settlement
        self._adapter_factory = adapter_factory
        self._due = timedelta(days=due_days)
        self._clock = clock

    async def create_invoice(self, req: SolanaInvoiceCreateRequest) -> SolanaInvoiceOut:
        if not is_solana_address(req.creator):
            raise ValidationError(f"invalid creator wallet address {req.creator!r}")
        if req.amount <= 0:
            raise ValidationError("amount must be > 0")
        invoice = await self._store.create(
            NewInvoice(
                creator_id=req.creator,
                recipient_address=req.creator,
                amount=req.amount,
                currency=NATIVE_SYMBOL,
                due_date=self._clock() + self._due,
                description=req.description,
            )
        )
        issued = await self._store.transition(
            invoice.id, InvoiceStatus.DRAFT.value, InvoiceStatus.PENDING.value
        )
        return SolanaInvoiceOut.from_domain(issued)

    async def list_invoices(self, creator: str | None = None) -> list[SolanaInvoiceOut]:
        invoices = await self._store.list(creator_id=creator)
        return [SolanaInvoiceOut.from_domain(i) for i in invoices if i.currency == NATIVE_SYMBOL]

    async def get_invoice(self, invoice_id: str) -> SolanaInvoiceOut:
        invoice = await self._store.get(invoice_id)
        if invoice.currency != NATIVE_SYMBOL:
            raise InvoiceNotFoundError(invoice_id)
        return SolanaInvoiceOut.from_domain(invoice)

    async def pay_invoice(self, req: SolanaPaymentRequest) -> SolanaPaymentResponse:
        invoice = await self._store.get(req.invoice_id, derive_overdue=False)
        payer = req.payer_address or await self._resolve_payer(req.payer_secret or "")
        result = await self._settlement.process_payment(
            invoice.id,
            payer,
            invoice.amount,
            invoice.currency,
            req.transaction_hash,
        )
        paid = result.invoice or await self._store.get(invoice.id)
        return SolanaPaymentResponse(success=True, invoice=SolanaInvoiceOut.from_domain(paid))

    async def _resolve_payer(self, secret: str) -> str:
        adapter = self._adapter_factory()
        address = await adapter.connect(secret)
        await adapter.disconnect()
        logger.info("Resolved payer wallet %s", address)
        return address
