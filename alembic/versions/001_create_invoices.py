"""001: create invoices table

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE invoices (
            id                  VARCHAR(64)     PRIMARY KEY,
            invoice_number      VARCHAR(64)     NOT NULL,
            creator_id          VARCHAR(128)    NOT NULL,
            recipient_address   VARCHAR(128)    NOT NULL,
            recipient_name      VARCHAR(200),
            description         TEXT,
            amount              NUMERIC(38, 18) NOT NULL,
            currency            VARCHAR(10)     NOT NULL,
            fiat_amount         NUMERIC(38, 18),
            status              VARCHAR(20)     NOT NULL DEFAULT 'draft',
            due_date            TIMESTAMPTZ     NOT NULL,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            paid_at             TIMESTAMPTZ,
            refunded_at         TIMESTAMPTZ,
            CONSTRAINT uq_invoices_creator_number UNIQUE (creator_id, invoice_number),
            CONSTRAINT ck_invoices_amount_gte_0   CHECK (amount >= 0),
            CONSTRAINT ck_invoices_status         CHECK (
                status IN ('draft', 'pending', 'paid', 'released', 'refunded')
            ),
            CONSTRAINT ck_invoices_paid_at        CHECK (
                (status IN ('paid', 'released')) = (paid_at IS NOT NULL)
            )
        )
    """)
    op.execute("CREATE INDEX idx_invoices_creator ON invoices (creator_id, created_at DESC)")
    op.execute("CREATE INDEX idx_invoices_status ON invoices (status)")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS invoices")
