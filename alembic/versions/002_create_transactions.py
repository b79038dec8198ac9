"""002: create transactions table (append-only ledger)

Revision ID: 002
Revises: 001
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE transactions (
            id                  VARCHAR(64)     PRIMARY KEY,
            invoice_id          VARCHAR(64),
            sender_address      VARCHAR(128)    NOT NULL,
            recipient_address   VARCHAR(128)    NOT NULL,
            amount              NUMERIC(38, 18) NOT NULL,
            currency            VARCHAR(10)     NOT NULL,
            fiat_amount         NUMERIC(38, 18),
            transaction_type    VARCHAR(20)     NOT NULL,
            status              VARCHAR(20)     NOT NULL,
            timestamp           TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            transaction_hash    VARCHAR(128),
            memo                TEXT,
            CONSTRAINT fk_transactions_invoice FOREIGN KEY (invoice_id) REFERENCES invoices (id),
            CONSTRAINT ck_transactions_amount_gte_0 CHECK (amount >= 0),
            CONSTRAINT ck_transactions_type   CHECK (transaction_type IN ('payment', 'refund')),
            CONSTRAINT ck_transactions_status CHECK (status IN ('pending', 'success', 'failed'))
        )
    """)
    # At most one successful payment per invoice
    op.execute("""
        CREATE UNIQUE INDEX uq_transactions_one_payment
        ON transactions (invoice_id)
        WHERE transaction_type = 'payment' AND status = 'success'
    """)
    op.execute("CREATE INDEX idx_transactions_invoice ON transactions (invoice_id)")
    op.execute("CREATE INDEX idx_transactions_sender ON transactions (sender_address)")
    op.execute("CREATE INDEX idx_transactions_recipient ON transactions (recipient_address)")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS transactions")
