"""Wallet capability shared by every wallet variant.

Balances are integers in the chain's smallest unit (lamports for Solana).
"""

from decimal import Decimal
from typing import Protocol

LAMPORTS_PER_SOL = 1_000_000_000
NATIVE_SYMBOL = "SOL"


def lamports_to_sol(lamports: int) -> Decimal:
    return Decimal(lamports) / LAMPORTS_PER_SOL


class WalletAdapterProtocol(Protocol):
    @property
    def address(self) -> str | None:
        """Public address of the connected wallet, None while disconnected."""
        ...

    async def connect(self, credential: str) -> str:
        """Attach to a wallet and return its public address."""
        ...

    async def disconnect(self) -> None: ...

    async def get_balance(self, address: str | None = None) -> int:
        """Balance in lamports of address (default: the connected wallet).

        Raises UpstreamError when the chain cannot be reached.
        """
        ...

    async def sign_message(self, message: bytes) -> str: ...
