"""Pure conversion math over one PriceSnapshot.

Every currency is valued in USD (the reference):
    USD              -> 1
    other fiat       -> 1 only when parity fallback is enabled, otherwise rejected
    priced symbol    -> snapshot price
result = amount * usd_value(from) / usd_value(to)

which gives amount / price for USD->symbol, amount * price for symbol->USD and
amount * price_from / price_to for cross rates.
"""

import logging
from collections.abc import Collection
from decimal import Decimal

from src.ps_common.errors import UnsupportedConversionError
from src.ps_pricing.domain.models import PriceSnapshot

logger = logging.getLogger(__name__)

REFERENCE_CURRENCY = "USD"


def needs_prices(from_currency: str, to_currency: str, fiat: Collection[str]) -> bool:
    """False when neither side requires a market price (same symbol or fiat/fiat)."""
    if from_currency == to_currency:
        return False
    return from_currency not in fiat or to_currency not in fiat


def _usd_value(
    symbol: str,
    snapshot: PriceSnapshot | None,
    fiat: Collection[str],
    fiat_parity: bool,
    from_currency: str,
    to_currency: str,
) -> Decimal:
    if symbol == REFERENCE_CURRENCY:
        return Decimal(1)
    if symbol in fiat:
        if not fiat_parity:
            raise UnsupportedConversionError(
                from_currency, to_currency, f"no exchange rate source for fiat {symbol}"
            )
        logger.warning(
            "Fiat parity fallback: treating %s as 1:1 with USD (converting %s -> %s)",
            symbol, from_currency, to_currency,
        )
        return Decimal(1)
    price = snapshot.get(symbol) if snapshot is not None else None
    if price is None:
        raise UnsupportedConversionError(from_currency, to_currency, f"unknown currency {symbol}")
    return price.price_usd


def convert_with_snapshot(
    snapshot: PriceSnapshot | None,
    amount: Decimal,
    from_currency: str,
    to_currency: str,
    fiat: Collection[str] = (REFERENCE_CURRENCY,),
    fiat_parity: bool = False,
) -> Decimal:
    if from_currency == to_currency:
        return amount
    rate_from = _usd_value(
        from_currency, snapshot, fiat, fiat_parity, from_currency, to_currency
    )
    rate_to = _usd_value(
        to_currency, snapshot, fiat, fiat_parity, from_currency, to_currency
    )
    return amount * rate_from / rate_to
