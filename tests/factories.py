"""Test doubles and builders shared by unit and integration tests."""

import asyncio
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from src.ps_common.errors import UpstreamError
from src.ps_invoice.application.store import InvoiceStore
from src.ps_invoice.domain.models import Invoice, NewInvoice
from src.ps_pricing.domain.models import PriceQuote

PAYER = "PayerWa11et1111111111111111111111111111111"
RECIPIENT = "RecipientWa11et22222222222222222222222222222"
SOLANA_CREATOR = "So11111111111111111111111111111111111111112"
T0 = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


class FakePriceFeed:
    """In-memory PriceFeedProtocol; counts upstream calls, can fail or stall."""

    def __init__(self, prices: dict[str, str] | None = None) -> None:
        self.prices = prices or {"SOL": "80", "BTC": "40000", "USDC": "1"}
        self.calls = 0
        self.fail = False
        self.delay = 0.0

    async def fetch_quotes(self) -> list[PriceQuote]:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise UpstreamError("price feed", "simulated outage")
        return [
            PriceQuote(symbol=s, name=s.title(), price_usd=Decimal(p))
            for s, p in self.prices.items()
        ]


class FakeClock:
    def __init__(self, now: datetime = T0) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


def new_invoice(**kwargs: object) -> NewInvoice:
    defaults: dict[str, object] = {
        "creator_id": "creator-1",
        "recipient_address": RECIPIENT,
        "amount": Decimal("250.00"),
        "currency": "SOL",
        "due_date": T0 + timedelta(days=7),
    }
    defaults.update(kwargs)
    return NewInvoice(**defaults)  # type: ignore[arg-type]


async def pending_invoice(store: InvoiceStore, **kwargs: object) -> Invoice:
    invoice = await store.create(new_invoice(**kwargs))
    return await store.transition(invoice.id, "draft", "pending")
