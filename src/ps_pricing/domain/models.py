"""Domain models for ps_pricing: immutable price observations."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from types import MappingProxyType


@dataclass(frozen=True)
class CryptoPrice:
    symbol: str
    name: str
    price_usd: Decimal
    observed_at: datetime
    price_change_24h: Decimal | None = None


@dataclass(frozen=True)
class PriceQuote:
    """One upstream reading, before it is stamped into a snapshot."""

    symbol: str
    name: str
    price_usd: Decimal
    price_change_24h: Decimal | None = None


@dataclass(frozen=True)
class PriceSnapshot:
    """All prices observed by one upstream fetch.

    Replaced wholesale on refresh, never mutated: a conversion reading both legs
    from the same snapshot cannot mix prices from different instants.
    """

    observed_at: datetime
    prices: Mapping[str, CryptoPrice] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "prices", MappingProxyType(dict(self.prices)))

    @classmethod
    def from_quotes(cls, quotes: list[PriceQuote], observed_at: datetime) -> "PriceSnapshot":
        return cls(
            observed_at=observed_at,
            prices={
                q.symbol: CryptoPrice(
                    symbol=q.symbol,
                    name=q.name,
                    price_usd=q.price_usd,
                    observed_at=observed_at,
                    price_change_24h=q.price_change_24h,
                )
                for q in quotes
            },
        )

    def get(self, symbol: str) -> CryptoPrice | None:
        return self.prices.get(symbol)
