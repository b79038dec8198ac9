"""Pydantic schemas for transactions and settlement endpoints."""

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import field_validator

from src.ps_common.schemas import AmountField, CamelModel
from src.ps_invoice.application.schemas import InvoiceOut
from src.ps_ledger.domain.models import Transaction


class TransactionCreateRequest(CamelModel):
    invoice_id: str | None = None
    sender_address: str
    recipient_address: str | None = None
    amount: AmountField
    currency: str
    transaction_type: Literal["payment", "refund"] = "payment"
    transaction_hash: str
    memo: str | None = None

    @field_validator("transaction_hash")
    @classmethod
    def hash_not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("transactionHash must not be blank")
        return v.strip()


class ReconcileRequest(CamelModel):
    sender_address: str
    amount: AmountField
    currency: str
    transaction_hash: str
    memo: str | None = None


class TransactionOut(CamelModel):
    id: str
    invoice_id: str | None = None
    sender_address: str
    recipient_address: str
    amount: Decimal
    currency: str
    fiat_amount: Decimal | None = None
    transaction_type: str
    status: str
    timestamp: datetime
    transaction_hash: str | None = None
    memo: str | None = None

    @classmethod
    def from_domain(cls, tx: Transaction) -> "TransactionOut":
        return cls(
            id=tx.id,
            invoice_id=tx.invoice_id,
            sender_address=tx.sender_address,
            recipient_address=tx.recipient_address,
            amount=tx.amount,
            currency=tx.currency,
            fiat_amount=tx.fiat_amount,
            transaction_type=tx.transaction_type,
            status=tx.status,
            timestamp=tx.timestamp,
            transaction_hash=tx.transaction_hash,
            memo=tx.memo,
        )


class UnreconciledOut(CamelModel):
    invoice: InvoiceOut
    reason: str
