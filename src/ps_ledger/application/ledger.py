"""TransactionLedger: append-only record of settlement attempts.

Owns Transaction records. Invoice state is read through InvoiceStore only:
a successful payment row may be appended only while its invoice is paid or
released, a successful refund row only while it is refunded.
"""

import logging

from src.ps_common.datetime_utils import Clock, utc_now
from src.ps_common.enums import (
    SETTLED_STATUSES,
    InvoiceStatus,
    TransactionStatus,
    TransactionType,
)
from src.ps_common.errors import (
    StatusConflictError,
    TransactionNotFoundError,
    ValidationError,
)
from src.ps_invoice.application.store import InvoiceStore
from src.ps_ledger.domain.models import NewTransaction, Transaction
from src.ps_ledger.domain.repository import TransactionRepositoryProtocol

logger = logging.getLogger(__name__)

_TYPES = frozenset(t.value for t in TransactionType)
_STATUSES = frozenset(s.value for s in TransactionStatus)
_SETTLED = frozenset(s.value for s in SETTLED_STATUSES)


class TransactionLedger:
    def __init__(
        self,
        repo: TransactionRepositoryProtocol,
        invoices: InvoiceStore,
        clock: Clock = utc_now,
    ) -> None:
        self._repo = repo
        self._invoices = invoices
        self._clock = clock

    async def append(self, new: NewTransaction) -> Transaction:
        if new.transaction_type not in _TYPES:
            raise ValidationError(f"unknown transactionType {new.transaction_type!r}")
        if new.status not in _STATUSES:
            raise ValidationError(f"unknown transaction status {new.status!r}")
        if new.amount < 0:
            raise ValidationError(f"amount must be >= 0, got {new.amount}")

        if new.invoice_id is not None and new.status == TransactionStatus.SUCCESS.value:
            await self._check_invoice_state(new.invoice_id, new.transaction_type)

        tx = await self._repo.append(new, self._clock())
        logger.info(
            "Ledger append: %s %s %s %s invoice=%s hash=%s",
            tx.id, tx.transaction_type, tx.status, tx.amount, tx.invoice_id, tx.transaction_hash,
        )
        return tx

    async def get(self, transaction_id: str) -> Transaction:
        tx = await self._repo.get(transaction_id)
        if tx is None:
            raise TransactionNotFoundError(transaction_id)
        return tx

    async def list(
        self,
        invoice_id: str | None = None,
        address: str | None = None,
    ) -> list[Transaction]:
        return await self._repo.list(invoice_id, address)

    async def successful_payment_for(self, invoice_id: str) -> Transaction | None:
        return await self._repo.find_successful_payment(invoice_id)

    async def _check_invoice_state(self, invoice_id: str, transaction_type: str) -> None:
        invoice = await self._invoices.get(invoice_id, derive_overdue=False)
        if transaction_type == TransactionType.PAYMENT.value:
            if invoice.status not in _SETTLED:
                raise StatusConflictError(invoice.id, InvoiceStatus.PAID.value, invoice.status)
        elif invoice.status != InvoiceStatus.REFUNDED.value:
            raise StatusConflictError(invoice.id, InvoiceStatus.REFUNDED.value, invoice.status)
