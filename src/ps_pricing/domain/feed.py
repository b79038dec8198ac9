# src/ps_pricing/domain/feed.py
"""Upstream price feed Protocol.

PriceCache depends on this Protocol only; unit tests inject a counting fake.
Implementations raise UpstreamError for any transport or payload failure.
"""

from typing import Protocol

from src.ps_pricing.domain.models import PriceQuote


class PriceFeedProtocol(Protocol):
    async def fetch_quotes(self) -> list[PriceQuote]: ...
