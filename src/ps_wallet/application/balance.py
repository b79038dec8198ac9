"""WalletBalanceResolver: best-effort balance for display.

get_balance() always answers:
  1. simulated-pattern address      -> fixed simulated balance (1.5 SOL)
  2. well-formed Solana address     -> live query, bounded by a timeout
  3. live query failed / timed out  -> fallback for the address pattern
  4. anything else                  -> fixed dummy balance (1.25 SOL)
"""

import asyncio
import logging
from dataclasses import dataclass
from decimal import Decimal

from src.ps_common.addresses import is_simulated_address, is_solana_address
from src.ps_common.enums import BalanceSource
from src.ps_common.errors import AppError
from src.ps_wallet.domain.adapter import WalletAdapterProtocol, lamports_to_sol
from src.ps_wallet.infrastructure.adapters import SIMULATED_BALANCE_LAMPORTS

logger = logging.getLogger(__name__)

DUMMY_BALANCE_LAMPORTS = 1_250_000_000  # 1.25 SOL


@dataclass(frozen=True)
class WalletBalanceView:
    address: str
    balance_native: Decimal
    balance_smallest_unit: int
    source: str


def _view(address: str, lamports: int, source: BalanceSource) -> WalletBalanceView:
    return WalletBalanceView(
        address=address,
        balance_native=lamports_to_sol(lamports),
        balance_smallest_unit=lamports,
        source=source.value,
    )


def fallback_balance(address: str) -> WalletBalanceView:
    """Deterministic balance for an address that could not be queried live."""
    if is_simulated_address(address):
        return _view(address, SIMULATED_BALANCE_LAMPORTS, BalanceSource.SIMULATED)
    return _view(address, DUMMY_BALANCE_LAMPORTS, BalanceSource.FALLBACK)


class WalletBalanceResolver:
    def __init__(self, adapter: WalletAdapterProtocol, timeout_seconds: float = 5.0) -> None:
        self._adapter = adapter
        self._timeout = timeout_seconds

    async def get_balance(self, address: str) -> WalletBalanceView:
        if is_simulated_address(address) or not is_solana_address(address):
            return fallback_balance(address)
        try:
            lamports = await asyncio.wait_for(
                self._adapter.get_balance(address), timeout=self._timeout
            )
        except asyncio.TimeoutError:
            logger.warning("Balance lookup for %s timed out after %.1fs", address, self._timeout)
            return fallback_balance(address)
        except AppError as exc:
            logger.warning("Balance lookup for %s failed: %s", address, exc.message)
            return fallback_balance(address)
        except Exception:
            logger.exception("Balance lookup for %s raised unexpectedly", address)
            return fallback_balance(address)
        return _view(address, lamports, BalanceSource.LIVE)
