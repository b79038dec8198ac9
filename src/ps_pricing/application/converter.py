"""CurrencyConverter: conversion over one consistently fetched snapshot."""

from collections.abc import Collection
from decimal import Decimal

from src.ps_common.money import normalize_currency
from src.ps_pricing.application.cache import PriceCache
from src.ps_pricing.domain.conversion import (
    REFERENCE_CURRENCY,
    convert_with_snapshot,
    needs_prices,
)


class CurrencyConverter:
    def __init__(
        self,
        cache: PriceCache,
        fiat_currencies: Collection[str] = (REFERENCE_CURRENCY,),
        fiat_parity: bool = False,
    ) -> None:
        self._cache = cache
        self._fiat = frozenset(c.upper() for c in fiat_currencies) | {REFERENCE_CURRENCY}
        self._fiat_parity = fiat_parity

    async def convert(
        self,
        amount: Decimal,
        from_currency: str,
        to_currency: str,
        require_fresh: bool = False,
    ) -> Decimal:
        """Convert amount between currencies.

        require_fresh=True refuses to fall back to an expired snapshot when the
        upstream feed fails (UpstreamError instead); settlement checks use it.
        """
        src = normalize_currency(from_currency)
        dst = normalize_currency(to_currency)
        snapshot = None
        if needs_prices(src, dst, self._fiat):
            snapshot = await self._cache.snapshot(require_fresh=require_fresh)
        return convert_with_snapshot(
            snapshot, amount, src, dst, fiat=self._fiat, fiat_parity=self._fiat_parity
        )

    async def to_usd(self, amount: Decimal, currency: str) -> Decimal:
        return await self.convert(amount, currency, REFERENCE_CURRENCY)
