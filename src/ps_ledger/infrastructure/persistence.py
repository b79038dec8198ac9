"""TransactionRepository: PostgreSQL implementation of TransactionRepositoryProtocol.

Raw text() SQL, one session per operation. The partial unique index
uq_transactions_one_payment (see alembic 002) rejects a second successful
payment for the same invoice; that IntegrityError surfaces as AlreadySettledError.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.ps_common.database import violates
from src.ps_common.errors import AlreadySettledError, InvoiceNotFoundError
from src.ps_common.id_generator import SnowflakeIdGenerator
from src.ps_ledger.domain.models import NewTransaction, Transaction

# Constraint names from alembic 002_create_transactions
ONE_PAYMENT_INDEX = "uq_transactions_one_payment"
INVOICE_FK_CONSTRAINT = "fk_transactions_invoice"

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_COLUMNS = """
    id, invoice_id, sender_address, recipient_address, amount, currency,
    fiat_amount, transaction_type, status, timestamp, transaction_hash, memo
"""

_INSERT_SQL = text(f"""
    INSERT INTO transactions
        (id, invoice_id, sender_address, recipient_address, amount, currency,
         fiat_amount, transaction_type, status, timestamp, transaction_hash, memo)
    VALUES
        (:id, :invoice_id, :sender_address, :recipient_address, :amount, :currency,
         :fiat_amount, :transaction_type, :status, :timestamp, :transaction_hash, :memo)
    RETURNING {_COLUMNS}
""")

_GET_SQL = text(f"SELECT {_COLUMNS} FROM transactions WHERE id = :id")

_LIST_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM transactions
    WHERE
        (CAST(:invoice_id AS TEXT) IS NULL OR invoice_id = CAST(:invoice_id AS TEXT))
        AND (
            CAST(:address AS TEXT) IS NULL
            OR sender_address = CAST(:address AS TEXT)
            OR recipient_address = CAST(:address AS TEXT)
        )
    ORDER BY timestamp DESC, id DESC
""")

_SUCCESSFUL_PAYMENT_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM transactions
    WHERE invoice_id = :invoice_id
      AND transaction_type = 'payment'
      AND status = 'success'
    LIMIT 1
""")


def _row_to_transaction(row: Any) -> Transaction:
    return Transaction(
        id=row.id,
        invoice_id=row.invoice_id,
        sender_address=row.sender_address,
        recipient_address=row.recipient_address,
        amount=row.amount,
        currency=row.currency,
        fiat_amount=row.fiat_amount,
        transaction_type=row.transaction_type,
        status=row.status,
        timestamp=row.timestamp,
        transaction_hash=row.transaction_hash,
        memo=row.memo,
    )


class TransactionRepository:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        id_generator: SnowflakeIdGenerator | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._ids = id_generator or SnowflakeIdGenerator(prefix="txn_")

    async def append(self, new: NewTransaction, now: datetime) -> Transaction:
        async with self._session_factory() as db:
            try:
                result = await db.execute(
                    _INSERT_SQL,
                    {
                        "id": self._ids.next_id(),
                        "invoice_id": new.invoice_id,
                        "sender_address": new.sender_address,
                        "recipient_address": new.recipient_address,
                        "amount": new.amount,
                        "currency": new.currency,
                        "fiat_amount": new.fiat_amount,
                        "transaction_type": new.transaction_type,
                        "status": new.status,
                        "timestamp": now,
                        "transaction_hash": new.transaction_hash,
                        "memo": new.memo,
                    },
                )
                row = result.fetchone()
                await db.commit()
            except IntegrityError as exc:
                await db.rollback()
                if new.invoice_id is not None:
                    if violates(exc, ONE_PAYMENT_INDEX):
                        raise AlreadySettledError(new.invoice_id) from None
                    if violates(exc, INVOICE_FK_CONSTRAINT):
                        raise InvoiceNotFoundError(new.invoice_id) from None
                raise
        return _row_to_transaction(row)

    async def get(self, transaction_id: str) -> Transaction | None:
        async with self._session_factory() as db:
            row = (await db.execute(_GET_SQL, {"id": transaction_id})).fetchone()
        return _row_to_transaction(row) if row else None

    async def list(self, invoice_id: str | None, address: str | None) -> list[Transaction]:
        async with self._session_factory() as db:
            result = await db.execute(_LIST_SQL, {"invoice_id": invoice_id, "address": address})
            rows = result.fetchall()
        return [_row_to_transaction(r) for r in rows]

    async def find_successful_payment(self, invoice_id: str) -> Transaction | None:
        async with self._session_factory() as db:
            row = (await db.execute(_SUCCESSFUL_PAYMENT_SQL, {"invoice_id": invoice_id})).fetchone()
        return _row_to_transaction(row) if row else None
