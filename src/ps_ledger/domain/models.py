"""Domain models for ps_ledger: frozen dataclasses, append-only records."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass(frozen=True)
class Transaction:
    id: str
    invoice_id: str | None
    sender_address: str
    recipient_address: str
    amount: Decimal
    currency: str
    transaction_type: str
    status: str
    timestamp: datetime
    transaction_hash: str | None = None
    fiat_amount: Decimal | None = None
    memo: str | None = None


@dataclass(frozen=True)
class NewTransaction:
    invoice_id: str | None
    sender_address: str
    recipient_address: str
    amount: Decimal
    currency: str
    transaction_type: str
    status: str
    transaction_hash: str | None = None
    fiat_amount: Decimal | None = None
    memo: str | None = None
