"""Pydantic schemas for ps_pricing API requests/responses."""

from datetime import datetime
from decimal import Decimal

from pydantic import Field, field_validator

from src.ps_common.schemas import AmountField, CamelModel
from src.ps_pricing.domain.models import CryptoPrice


class CryptoPriceOut(CamelModel):
    symbol: str
    name: str
    price_usd: Decimal = Field(alias="priceUSD")
    price_change_24h: Decimal | None = None
    observed_at: datetime

    @classmethod
    def from_domain(cls, price: CryptoPrice) -> "CryptoPriceOut":
        return cls(
            symbol=price.symbol,
            name=price.name,
            price_usd=price.price_usd,
            price_change_24h=price.price_change_24h,
            observed_at=price.observed_at,
        )


class ConvertRequest(CamelModel):
    amount: AmountField
    from_currency: str
    to_currency: str

    @field_validator("from_currency", "to_currency")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("currency must not be blank")
        return v.strip().upper()


class MoneyOut(CamelModel):
    currency: str
    amount: Decimal


class ConvertResponse(CamelModel):
    from_: MoneyOut = Field(alias="from")
    to: MoneyOut
