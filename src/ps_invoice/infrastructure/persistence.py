"""InvoiceRepository: PostgreSQL implementation of InvoiceRepositoryProtocol.

All queries use raw text() SQL (no ORM). Each operation runs in its own session
and transaction from the injected session factory.

Status changes are a single conditional UPDATE ... WHERE status = :expected
RETURNING; 0 rows means the compare-and-swap precondition failed.
asyncpg NULL parameter pattern: CAST(:param AS TYPE) IS NULL required for None values.
"""

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.ps_common.database import violates
from src.ps_common.errors import DuplicateInvoiceNumberError, InternalError
from src.ps_common.id_generator import SnowflakeIdGenerator
from src.ps_invoice.domain.models import Invoice, InvoiceDetailsPatch, NewInvoice

logger = logging.getLogger(__name__)

_MAX_NUMBER_RETRIES = 3
UNIQUE_NUMBER_CONSTRAINT = "uq_invoices_creator_number"

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_COLUMNS = """
    id, invoice_number, creator_id, recipient_address, recipient_name,
    description, amount, currency, fiat_amount, status, due_date,
    created_at, updated_at, paid_at, refunded_at
"""

_INSERT_SQL = text(f"""
    INSERT INTO invoices
        (id, invoice_number, creator_id, recipient_address, recipient_name,
         description, amount, currency, fiat_amount, status, due_date,
         created_at, updated_at)
    VALUES
        (:id, :invoice_number, :creator_id, :recipient_address, :recipient_name,
         :description, :amount, :currency, :fiat_amount, 'draft', :due_date,
         :now, :now)
    RETURNING {_COLUMNS}
""")

_NEXT_NUMBER_SQL = text("""
    SELECT COUNT(*) + 1 FROM invoices WHERE creator_id = :creator_id
""")

_GET_SQL = text(f"SELECT {_COLUMNS} FROM invoices WHERE id = :id")

_GET_STATUS_SQL = text("SELECT status FROM invoices WHERE id = :id")

_LIST_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM invoices
    WHERE
        (CAST(:creator_id AS TEXT) IS NULL OR creator_id = CAST(:creator_id AS TEXT))
        AND (CAST(:status AS TEXT) IS NULL OR status = CAST(:status AS TEXT))
    ORDER BY created_at DESC, id DESC
""")

_CAS_STATUS_SQL = text(f"""
    UPDATE invoices
    SET status = CAST(:new_status AS TEXT),
        paid_at = CASE
            WHEN CAST(:new_status AS TEXT) = 'paid' THEN CAST(:now AS TIMESTAMPTZ)
            WHEN CAST(:new_status AS TEXT) = 'refunded' THEN NULL
            ELSE paid_at
        END,
        refunded_at = CASE
            WHEN CAST(:new_status AS TEXT) = 'refunded' THEN CAST(:now AS TIMESTAMPTZ)
            ELSE refunded_at
        END,
        updated_at = CAST(:now AS TIMESTAMPTZ)
    WHERE id = :id AND status = CAST(:expected AS TEXT)
    RETURNING {_COLUMNS}
""")

_UPDATE_DETAILS_SQL = text(f"""
    UPDATE invoices
    SET recipient_address = COALESCE(CAST(:recipient_address AS TEXT), recipient_address),
        recipient_name    = COALESCE(CAST(:recipient_name AS TEXT), recipient_name),
        description       = COALESCE(CAST(:description AS TEXT), description),
        due_date          = COALESCE(CAST(:due_date AS TIMESTAMPTZ), due_date),
        updated_at        = CAST(:now AS TIMESTAMPTZ)
    WHERE id = :id AND status = ANY(CAST(:editable AS TEXT[]))
    RETURNING {_COLUMNS}
""")

# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_invoice(row: Any) -> Invoice:
    return Invoice(
        id=row.id,
        invoice_number=row.invoice_number,
        creator_id=row.creator_id,
        recipient_address=row.recipient_address,
        recipient_name=row.recipient_name,
        description=row.description,
        amount=row.amount,
        currency=row.currency,
        fiat_amount=row.fiat_amount,
        status=row.status,
        due_date=row.due_date,
        created_at=row.created_at,
        updated_at=row.updated_at,
        paid_at=row.paid_at,
        refunded_at=row.refunded_at,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class InvoiceRepository:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        id_generator: SnowflakeIdGenerator | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._ids = id_generator or SnowflakeIdGenerator(prefix="inv_")

    async def create(self, new: NewInvoice, now: datetime) -> Invoice:
        # Generated numbers can race with a concurrent create for the same
        # creator; the unique constraint rejects the loser, which retries.
        attempts = 1 if new.invoice_number is not None else _MAX_NUMBER_RETRIES
        for attempt in range(attempts):
            async with self._session_factory() as db:
                try:
                    number = new.invoice_number
                    if number is None:
                        seq = (await db.execute(
                            _NEXT_NUMBER_SQL, {"creator_id": new.creator_id}
                        )).scalar_one()
                        number = f"INV-{seq + attempt:06d}"
                    result = await db.execute(
                        _INSERT_SQL,
                        {
                            "id": self._ids.next_id(),
                            "invoice_number": number,
                            "creator_id": new.creator_id,
                            "recipient_address": new.recipient_address,
                            "recipient_name": new.recipient_name,
                            "description": new.description,
                            "amount": new.amount,
                            "currency": new.currency,
                            "fiat_amount": new.fiat_amount,
                            "due_date": new.due_date,
                            "now": now,
                        },
                    )
                    row = result.fetchone()
                    await db.commit()
                except IntegrityError as exc:
                    await db.rollback()
                    if not violates(exc, UNIQUE_NUMBER_CONSTRAINT):
                        raise
                    if new.invoice_number is not None:
                        raise DuplicateInvoiceNumberError(new.creator_id, new.invoice_number) from None
                    logger.info(
                        "Invoice number collision for creator %s, retrying (%d)",
                        new.creator_id, attempt + 1,
                    )
                    continue
                return _row_to_invoice(row)
        raise InternalError(f"Could not allocate an invoice number for creator {new.creator_id}")

    async def get(self, invoice_id: str) -> Invoice | None:
        async with self._session_factory() as db:
            result = await db.execute(_GET_SQL, {"id": invoice_id})
            row = result.fetchone()
        return _row_to_invoice(row) if row else None

    async def list(self, creator_id: str | None, status: str | None) -> list[Invoice]:
        async with self._session_factory() as db:
            result = await db.execute(_LIST_SQL, {"creator_id": creator_id, "status": status})
            rows = result.fetchall()
        return [_row_to_invoice(r) for r in rows]

    async def compare_and_set_status(
        self,
        invoice_id: str,
        expected: str,
        new_status: str,
        now: datetime,
    ) -> tuple[Invoice | None, str | None]:
        async with self._session_factory() as db:
            result = await db.execute(
                _CAS_STATUS_SQL,
                {"id": invoice_id, "expected": expected, "new_status": new_status, "now": now},
            )
            row = result.fetchone()
            if row is not None:
                await db.commit()
                return _row_to_invoice(row), None
            await db.rollback()
            actual = (await db.execute(_GET_STATUS_SQL, {"id": invoice_id})).scalar_one_or_none()
        return None, actual

    async def update_details(
        self,
        invoice_id: str,
        patch: InvoiceDetailsPatch,
        editable_statuses: frozenset[str],
        now: datetime,
    ) -> tuple[Invoice | None, str | None]:
        async with self._session_factory() as db:
            result = await db.execute(
                _UPDATE_DETAILS_SQL,
                {
                    "id": invoice_id,
                    "recipient_address": patch.recipient_address,
                    "recipient_name": patch.recipient_name,
                    "description": patch.description,
                    "due_date": patch.due_date,
                    "editable": sorted(editable_statuses),
                    "now": now,
                },
            )
            row = result.fetchone()
            if row is not None:
                await db.commit()
                return _row_to_invoice(row), None
            await db.rollback()
            actual = (await db.execute(_GET_STATUS_SQL, {"id": invoice_id})).scalar_one_or_none()
        return None, actual

