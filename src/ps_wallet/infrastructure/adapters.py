"""WalletAdapter variants.

OnChainWalletAdapter   watch-only view of a real address; balances over JSON-RPC.
SimulatedWalletAdapter deterministic dev wallet; no network access at all.

The on-chain variant never holds a private key: the core records settlements,
it does not sign or broadcast them.
"""

import hashlib

from src.ps_common.addresses import SIMULATED_WALLET_MARKER, is_solana_address
from src.ps_common.errors import ValidationError
from src.ps_wallet.infrastructure.solana_rpc import SolanaRpcClient

SIMULATED_BALANCE_LAMPORTS = 1_500_000_000  # 1.5 SOL

# Marker + 34 hex chars = 44 chars, inside the generic wallet-address bounds
_SIMULATED_SUFFIX_LEN = 34


def simulated_address_for(secret: str) -> str:
    digest = hashlib.sha256(secret.encode("utf-8")).hexdigest()
    return f"{SIMULATED_WALLET_MARKER}{digest[:_SIMULATED_SUFFIX_LEN]}"


class OnChainWalletAdapter:
    def __init__(self, rpc: SolanaRpcClient) -> None:
        self._rpc = rpc
        self._address: str | None = None

    @property
    def address(self) -> str | None:
        return self._address

    async def connect(self, credential: str) -> str:
        """Watch-only: the credential is the public address itself."""
        if not is_solana_address(credential):
            raise ValidationError(
                "on-chain wallets connect with a public Solana address; secrets are not accepted"
            )
        self._address = credential
        return credential

    async def disconnect(self) -> None:
        self._address = None

    async def get_balance(self, address: str | None = None) -> int:
        target = address or self._address
        if target is None:
            raise ValidationError("no wallet connected")
        return await self._rpc.get_balance(target)

    async def sign_message(self, message: bytes) -> str:
        raise ValidationError("on-chain adapter is watch-only and cannot sign")


class SimulatedWalletAdapter:
    def __init__(self, balance_lamports: int = SIMULATED_BALANCE_LAMPORTS) -> None:
        self._balance = balance_lamports
        self._address: str | None = None
        self._secret: str | None = None

    @property
    def address(self) -> str | None:
        return self._address

    async def connect(self, credential: str) -> str:
        if not credential or not credential.strip():
            raise ValidationError("simulated wallet secret must not be blank")
        self._secret = credential
        self._address = simulated_address_for(credential)
        return self._address

    async def disconnect(self) -> None:
        self._address = None
        self._secret = None

    async def get_balance(self, address: str | None = None) -> int:
        if address is None and self._address is None:
            raise ValidationError("no wallet connected")
        return self._balance

    async def sign_message(self, message: bytes) -> str:
        if self._secret is None:
            raise ValidationError("no wallet connected")
        return hashlib.sha256(self._secret.encode("utf-8") + message).hexdigest()
