"""Upstream price feeds: concrete implementations of PriceFeedProtocol.

CoinGeckoPriceFeed: live prices over HTTP (shared httpx.AsyncClient).
StaticPriceFeed:    fixed prices from settings, for offline/dev runs.
"""

import logging
from collections.abc import Mapping
from decimal import Decimal, InvalidOperation

import httpx

from src.ps_common.errors import UpstreamError
from src.ps_pricing.domain.models import PriceQuote

logger = logging.getLogger(__name__)

_SYMBOL_NAMES = {
    "BTC": "Bitcoin",
    "ETH": "Ethereum",
    "USDC": "USD Coin",
    "SOL": "Solana",
}


def _to_decimal(value: object) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        parsed = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    return parsed if parsed.is_finite() else None


class CoinGeckoPriceFeed:
    """GET {base_url}/simple/price?ids=...&vs_currencies=usd&include_24hr_change=true

    Response shape: {"solana": {"usd": 80.1, "usd_24h_change": 2.8}, ...}
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        symbol_ids: Mapping[str, str],
        timeout_seconds: float = 5.0,
    ) -> None:
        self._client = client
        self._url = f"{base_url.rstrip('/')}/simple/price"
        self._symbol_ids = {s.upper(): cg_id for s, cg_id in symbol_ids.items()}
        self._timeout = timeout_seconds

    async def fetch_quotes(self) -> list[PriceQuote]:
        params = {
            "ids": ",".join(self._symbol_ids.values()),
            "vs_currencies": "usd",
            "include_24hr_change": "true",
        }
        try:
            resp = await self._client.get(self._url, params=params, timeout=self._timeout)
            resp.raise_for_status()
            payload = resp.json()
        except httpx.HTTPError as exc:
            raise UpstreamError("price feed", f"{type(exc).__name__}: {exc}") from exc
        except ValueError as exc:
            raise UpstreamError("price feed", "response is not JSON") from exc

        if not isinstance(payload, dict):
            raise UpstreamError("price feed", "unexpected response shape")

        quotes: list[PriceQuote] = []
        for symbol, cg_id in self._symbol_ids.items():
            entry = payload.get(cg_id)
            price = _to_decimal(entry.get("usd")) if isinstance(entry, dict) else None
            if price is None or price <= 0:
                logger.warning("Price feed returned no usable USD price for %s (%s)", symbol, cg_id)
                continue
            quotes.append(
                PriceQuote(
                    symbol=symbol,
                    name=_SYMBOL_NAMES.get(symbol, cg_id.replace("-", " ").title()),
                    price_usd=price,
                    price_change_24h=_to_decimal(entry.get("usd_24h_change")),
                )
            )
        if not quotes:
            raise UpstreamError("price feed", "no prices in response")
        return quotes


class StaticPriceFeed:
    def __init__(self, prices: Mapping[str, str]) -> None:
        self._quotes: list[PriceQuote] = []
        for symbol, raw in prices.items():
            price = _to_decimal(raw)
            if price is None or price <= 0:
                raise ValueError(f"Static price for {symbol} must be a positive decimal, got {raw!r}")
            sym = symbol.upper()
            self._quotes.append(
                PriceQuote(symbol=sym, name=_SYMBOL_NAMES.get(sym, sym), price_usd=price)
            )

    async def fetch_quotes(self) -> list[PriceQuote]:
        return list(self._quotes)
