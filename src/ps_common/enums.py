"""Global enums: must match DB CHECK constraints exactly (see alembic/versions)."""

from enum import Enum


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    PENDING = "pending"
    PAID = "paid"
    RELEASED = "released"
    REFUNDED = "refunded"
    # Derived at read time from due_date; never persisted
    OVERDUE = "overdue"


class TransactionType(str, Enum):
    PAYMENT = "payment"
    REFUND = "refund"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"


class BalanceSource(str, Enum):
    """Where a WalletBalanceView came from."""
    LIVE = "live"
    SIMULATED = "simulated"
    FALLBACK = "fallback"


SETTLED_STATUSES = frozenset({InvoiceStatus.PAID, InvoiceStatus.RELEASED})
