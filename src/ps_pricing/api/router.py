# src/ps_pricing/api/router.py
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from src.container import ServiceContainer, get_container
from src.ps_common.money import normalize_currency
from src.ps_pricing.application.schemas import (
    ConvertRequest,
    ConvertResponse,
    CryptoPriceOut,
    MoneyOut,
)

router = APIRouter(tags=["pricing"])


@router.get("/crypto-prices", response_model=list[CryptoPriceOut])
async def list_crypto_prices(
    container: Annotated[ServiceContainer, Depends(get_container)],
    update: bool = Query(False, description="Force a refresh from the upstream feed"),
) -> list[CryptoPriceOut]:
    prices = await container.price_cache.list_prices(force_refresh=update)
    return [CryptoPriceOut.from_domain(p) for p in prices]


@router.get("/crypto-prices/{symbol}", response_model=CryptoPriceOut)
async def get_crypto_price(
    symbol: str,
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> CryptoPriceOut:
    price = await container.price_cache.get(normalize_currency(symbol))
    return CryptoPriceOut.from_domain(price)


@router.post("/convert", response_model=ConvertResponse)
async def convert(
    req: ConvertRequest,
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> ConvertResponse:
    converted = await container.converter.convert(req.amount, req.from_currency, req.to_currency)
    return ConvertResponse(
        from_=MoneyOut(currency=req.from_currency, amount=req.amount),
        to=MoneyOut(currency=req.to_currency, amount=converted),
    )
