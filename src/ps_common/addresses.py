"""Syntactic wallet address checks.

Addresses are validated by shape only, never cryptographically.
"""

import re

# Base58 alphabet (no 0, O, I, l); Solana public keys encode to 32-44 chars
_BASE58_RE = re.compile(r"^[1-9A-HJ-NP-Za-km-z]+$")
SOLANA_ADDRESS_MIN_LEN = 32
SOLANA_ADDRESS_MAX_LEN = 44

# Generic bounds covering base58 (Solana, BTC) and 0x-hex (EVM) addresses
WALLET_ADDRESS_MIN_LEN = 26
WALLET_ADDRESS_MAX_LEN = 64

SIMULATED_WALLET_MARKER = "FakeSo1Ana"


def is_solana_address(address: str | None) -> bool:
    """Well-formed on-chain address shape: base58, 32-44 characters."""
    if not address:
        return False
    return (
        SOLANA_ADDRESS_MIN_LEN <= len(address) <= SOLANA_ADDRESS_MAX_LEN
        and _BASE58_RE.match(address) is not None
    )


def is_simulated_address(address: str | None) -> bool:
    return address is not None and SIMULATED_WALLET_MARKER in address


def is_plausible_wallet_address(address: str | None) -> bool:
    """Non-empty, alphanumeric, within the length bounds of supported chains."""
    if not address or address != address.strip():
        return False
    return (
        WALLET_ADDRESS_MIN_LEN <= len(address) <= WALLET_ADDRESS_MAX_LEN
        and address.isalnum()
        and address.isascii()
    )
