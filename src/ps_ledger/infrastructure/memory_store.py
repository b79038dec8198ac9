"""InMemoryTransactionRepository: append-only dict of transactions.

Appends are independent. The only shared check (one successful payment per
invoice) and its write run with no await between them, so they are atomic on
the event loop.
"""

from datetime import datetime

from src.ps_common.enums import TransactionStatus, TransactionType
from src.ps_common.errors import AlreadySettledError
from src.ps_common.id_generator import SnowflakeIdGenerator
from src.ps_ledger.domain.models import NewTransaction, Transaction


def _is_successful_payment(tx: NewTransaction | Transaction) -> bool:
    return (
        tx.invoice_id is not None
        and tx.transaction_type == TransactionType.PAYMENT.value
        and tx.status == TransactionStatus.SUCCESS.value
    )


class InMemoryTransactionRepository:
    def __init__(self, id_generator: SnowflakeIdGenerator | None = None) -> None:
        self._ids = id_generator or SnowflakeIdGenerator(prefix="txn_")
        self._transactions: dict[str, Transaction] = {}
        self._paid_invoices: dict[str, str] = {}  # invoice_id -> transaction_id

    async def append(self, new: NewTransaction, now: datetime) -> Transaction:
        tx = Transaction(
            id=self._ids.next_id(),
            invoice_id=new.invoice_id,
            sender_address=new.sender_address,
            recipient_address=new.recipient_address,
            amount=new.amount,
            currency=new.currency,
            fiat_amount=new.fiat_amount,
            transaction_type=new.transaction_type,
            status=new.status,
            timestamp=now,
            transaction_hash=new.transaction_hash,
            memo=new.memo,
        )
        invoice_id = new.invoice_id
        if invoice_id is None or not _is_successful_payment(new):
            self._transactions[tx.id] = tx
            return tx

        if invoice_id in self._paid_invoices:
            raise AlreadySettledError(invoice_id)
        self._paid_invoices[invoice_id] = tx.id
        self._transactions[tx.id] = tx
        return tx

    async def get(self, transaction_id: str) -> Transaction | None:
        return self._transactions.get(transaction_id)

    async def list(self, invoice_id: str | None, address: str | None) -> list[Transaction]:
        items = [
            tx
            for tx in self._transactions.values()
            if (invoice_id is None or tx.invoice_id == invoice_id)
            and (address is None or address in (tx.sender_address, tx.recipient_address))
        ]
        items.sort(key=lambda tx: (tx.timestamp, tx.id), reverse=True)
        return items

    async def find_successful_payment(self, invoice_id: str) -> Transaction | None:
        tx_id = self._paid_invoices.get(invoice_id)
        return self._transactions.get(tx_id) if tx_id else None
