# src/ps_ledger/domain/repository.py
"""Repository Protocol for the append-only transaction ledger."""

from datetime import datetime
from typing import Protocol

from src.ps_ledger.domain.models import NewTransaction, Transaction


class TransactionRepositoryProtocol(Protocol):
    async def append(self, new: NewTransaction, now: datetime) -> Transaction:
        """Insert with a generated id.

        Raises AlreadySettledError when a second successful payment would be
        recorded for the same invoice.
        """
        ...

    async def get(self, transaction_id: str) -> Transaction | None: ...

    async def list(
        self,
        invoice_id: str | None,
        address: str | None,
    ) -> list[Transaction]: ...

    async def find_successful_payment(self, invoice_id: str) -> Transaction | None: ...
