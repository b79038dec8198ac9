"""SettlementProcessor: records payments and refunds against invoices.

Ordering for an invoice payment:
  1. validate inputs (no I/O)
  2. load invoice, reject if already settled
  3. amount check: exact in the invoice currency, otherwise converted with a
     fresh snapshot and allowed the configured slippage tolerance
  4. InvoiceStore.transition(pending -> paid)   <- the only serialization point
  5. TransactionLedger.append(payment/success)

Step 4 strictly precedes step 5, so a lost race never writes a ledger row.
A crash between 4 and 5 leaves a paid invoice without a payment row; such
invoices are reported by find_unreconciled() and repaired with reconcile().
"""

import logging
from dataclasses import dataclass
from decimal import Decimal

from src.ps_common.addresses import is_plausible_wallet_address
from src.ps_common.enums import (
    SETTLED_STATUSES,
    InvoiceStatus,
    TransactionStatus,
    TransactionType,
)
from src.ps_common.errors import (
    AlreadySettledError,
    AmountMismatchError,
    AppError,
    InvalidTransitionError,
    StatusConflictError,
    ValidationError,
)
from src.ps_common.money import meets_amount, normalize_currency
from src.ps_invoice.application.store import InvoiceStore
from src.ps_invoice.domain.models import Invoice
from src.ps_ledger.application.ledger import TransactionLedger
from src.ps_ledger.domain.models import NewTransaction, Transaction
from src.ps_pricing.application.converter import CurrencyConverter

logger = logging.getLogger(__name__)

_SETTLED = frozenset(s.value for s in SETTLED_STATUSES)


@dataclass(frozen=True)
class PaymentResult:
    transaction: Transaction
    invoice: Invoice | None


@dataclass(frozen=True)
class UnreconciledInvoice:
    invoice: Invoice
    reason: str


def _require_hash(transaction_hash: str | None) -> str:
    if transaction_hash is None or not transaction_hash.strip():
        raise ValidationError("transactionHash is required")
    return transaction_hash.strip()


def _require_address(address: str | None, field: str) -> str:
    if address is None or not is_plausible_wallet_address(address):
        raise ValidationError(f"{field} is not a plausible wallet address: {address!r}")
    return address


class SettlementProcessor:
    def __init__(
        self,
        invoices: InvoiceStore,
        ledger: TransactionLedger,
        converter: CurrencyConverter,
        tolerance_bps: int = 50,
    ) -> None:
        self._invoices = invoices
        self._ledger = ledger
        self._converter = converter
        self._tolerance_bps = tolerance_bps

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------

    async def process_payment(
        self,
        invoice_id: str | None,
        payer_address: str,
        amount: Decimal,
        currency: str,
        transaction_hash: str,
        memo: str | None = None,
        recipient_address: str | None = None,
    ) -> PaymentResult:
        """Record a payment. invoice_id=None records a direct payment to recipient_address."""
        payer = _require_address(payer_address, "senderAddress")
        tx_hash = _require_hash(transaction_hash)
        currency = normalize_currency(currency)
        if amount <= 0:
            raise ValidationError(f"amount must be > 0, got {amount}")

        if invoice_id is None:
            return await self._direct_payment(
                payer, recipient_address, amount, currency, tx_hash, memo
            )

        invoice = await self._invoices.get(invoice_id, derive_overdue=False)
        if invoice.status in _SETTLED:
            raise AlreadySettledError(invoice_id)

        await self._check_amount(invoice, amount, currency)
        fiat_amount = await self._fiat_amount(amount, currency)

        try:
            paid = await self._invoices.transition(
                invoice_id, InvoiceStatus.PENDING.value, InvoiceStatus.PAID.value
            )
        except StatusConflictError as exc:
            if exc.actual in _SETTLED:
                logger.info("Payment %s lost race for invoice %s", tx_hash, invoice_id)
                raise AlreadySettledError(invoice_id) from None
            raise InvalidTransitionError(
                exc.actual, InvoiceStatus.PAID.value, "invoice is not payable"
            ) from None

        tx = await self._ledger.append(
            NewTransaction(
                invoice_id=invoice_id,
                sender_address=payer,
                recipient_address=paid.recipient_address,
                amount=amount,
                currency=currency,
                transaction_type=TransactionType.PAYMENT.value,
                status=TransactionStatus.SUCCESS.value,
                transaction_hash=tx_hash,
                fiat_amount=fiat_amount,
                memo=memo,
            )
        )
        logger.info(
            "Invoice %s settled by %s: %s %s (tx=%s hash=%s)",
            invoice_id, payer, amount, currency, tx.id, tx_hash,
        )
        return PaymentResult(transaction=tx, invoice=paid)

    async def _direct_payment(
        self,
        payer: str,
        recipient_address: str | None,
        amount: Decimal,
        currency: str,
        tx_hash: str,
        memo: str | None,
    ) -> PaymentResult:
        recipient = _require_address(recipient_address, "recipientAddress")
        tx = await self._ledger.append(
            NewTransaction(
                invoice_id=None,
                sender_address=payer,
                recipient_address=recipient,
                amount=amount,
                currency=currency,
                transaction_type=TransactionType.PAYMENT.value,
                status=TransactionStatus.SUCCESS.value,
                transaction_hash=tx_hash,
                fiat_amount=await self._fiat_amount(amount, currency),
                memo=memo,
            )
        )
        logger.info("Direct payment %s -> %s: %s %s", payer, recipient, amount, currency)
        return PaymentResult(transaction=tx, invoice=None)

    async def _check_amount(self, invoice: Invoice, amount: Decimal, currency: str) -> None:
        received = amount
        tolerance_bps = 0
        if currency != invoice.currency:
            # Upstream failure propagates as UpstreamError before any write
            received = await self._converter.convert(
                amount, currency, invoice.currency, require_fresh=True
            )
            # Slippage allowance covers rate drift only
            tolerance_bps = self._tolerance_bps
        if not meets_amount(received, invoice.amount, tolerance_bps):
            raise AmountMismatchError(str(invoice.amount), str(received), invoice.currency)

    async def _fiat_amount(self, amount: Decimal, currency: str) -> Decimal | None:
        """USD value for the ledger row; informational, so failures yield None."""
        try:
            return await self._converter.to_usd(amount, currency)
        except AppError as exc:
            logger.warning("No USD value for %s %s: %s", amount, currency, exc.message)
            return None

    # ------------------------------------------------------------------
    # Refunds
    # ------------------------------------------------------------------

    async def process_refund(
        self,
        invoice_id: str,
        transaction_hash: str,
        memo: str | None = None,
    ) -> PaymentResult:
        """paid -> refunded, then a refund row from the recipient back to the payer."""
        tx_hash = _require_hash(transaction_hash)
        invoice = await self._invoices.get(invoice_id, derive_overdue=False)
        if invoice.status != InvoiceStatus.PAID.value:
            raise InvalidTransitionError(
                invoice.status, InvoiceStatus.REFUNDED.value, "only paid invoices can be refunded"
            )
        payment = await self._ledger.successful_payment_for(invoice_id)
        if payment is None:
            # Refund recipient is the recorded payer
            raise InvalidTransitionError(
                invoice.status,
                InvoiceStatus.REFUNDED.value,
                "invoice has no payment transaction; reconcile it first",
            )
        amount = payment.amount
        currency = payment.currency
        fiat_amount = await self._fiat_amount(amount, currency)

        try:
            refunded = await self._invoices.transition(
                invoice_id, InvoiceStatus.PAID.value, InvoiceStatus.REFUNDED.value
            )
        except StatusConflictError as exc:
            raise InvalidTransitionError(
                exc.actual, InvoiceStatus.REFUNDED.value, "only paid invoices can be refunded"
            ) from None

        tx = await self._ledger.append(
            NewTransaction(
                invoice_id=invoice_id,
                sender_address=refunded.recipient_address,
                recipient_address=payment.sender_address,
                amount=amount,
                currency=currency,
                transaction_type=TransactionType.REFUND.value,
                status=TransactionStatus.SUCCESS.value,
                transaction_hash=tx_hash,
                fiat_amount=fiat_amount,
                memo=memo,
            )
        )
        logger.info("Invoice %s refunded: %s %s (tx=%s)", invoice_id, amount, currency, tx.id)
        return PaymentResult(transaction=tx, invoice=refunded)

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    async def find_unreconciled(self, creator_id: str | None = None) -> list[UnreconciledInvoice]:
        """Settled invoices that have no successful payment row."""
        found: list[UnreconciledInvoice] = []
        for status in (InvoiceStatus.PAID, InvoiceStatus.RELEASED):
            for invoice in await self._invoices.list(creator_id=creator_id, status=status.value):
                if await self._ledger.successful_payment_for(invoice.id) is None:
                    found.append(UnreconciledInvoice(invoice, "missing payment transaction"))
        if found:
            logger.error(
                "Unreconciled settlements: %s", ", ".join(u.invoice.id for u in found)
            )
        return found

    async def reconcile(
        self,
        invoice_id: str,
        payer_address: str,
        amount: Decimal,
        currency: str,
        transaction_hash: str,
        memo: str | None = None,
    ) -> Transaction:
        """Append the missing payment row for an invoice settled without one."""
        payer = _require_address(payer_address, "senderAddress")
        tx_hash = _require_hash(transaction_hash)
        currency = normalize_currency(currency)
        invoice = await self._invoices.get(invoice_id, derive_overdue=False)
        if invoice.status not in _SETTLED:
            raise InvalidTransitionError(
                invoice.status, InvoiceStatus.PAID.value, "only settled invoices can be reconciled"
            )
        if await self._ledger.successful_payment_for(invoice_id) is not None:
            raise AlreadySettledError(invoice_id)

        tx = await self._ledger.append(
            NewTransaction(
                invoice_id=invoice_id,
                sender_address=payer,
                recipient_address=invoice.recipient_address,
                amount=amount,
                currency=currency,
                transaction_type=TransactionType.PAYMENT.value,
                status=TransactionStatus.SUCCESS.value,
                transaction_hash=tx_hash,
                fiat_amount=await self._fiat_amount(amount, currency),
                memo=memo,
            )
        )
        logger.warning("Invoice %s reconciled with tx=%s hash=%s", invoice_id, tx.id, tx_hash)
        return tx
