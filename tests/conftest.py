"""Shared test fixtures."""

from collections.abc import AsyncIterator

import pytest
from httpx import ASGITransport, AsyncClient

from config.settings import Settings
from src.container import ServiceContainer, build_container
from src.main import app
from src.ps_invoice.application.store import InvoiceStore
from src.ps_invoice.infrastructure.memory_store import InMemoryInvoiceRepository
from src.ps_ledger.application.ledger import TransactionLedger
from src.ps_ledger.infrastructure.memory_store import InMemoryTransactionRepository
from src.ps_pricing.application.cache import PriceCache
from src.ps_pricing.application.converter import CurrencyConverter
from src.ps_settlement.application.service import SettlementProcessor
from tests.factories import FakeClock, FakePriceFeed


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def feed() -> FakePriceFeed:
    return FakePriceFeed()


@pytest.fixture
def price_cache(feed: FakePriceFeed, clock: FakeClock) -> PriceCache:
    return PriceCache(feed, ttl_seconds=60, fetch_timeout_seconds=1, clock=clock)


@pytest.fixture
def converter(price_cache: PriceCache) -> CurrencyConverter:
    return CurrencyConverter(price_cache, fiat_currencies=("USD", "EUR", "GBP"))


@pytest.fixture
def store(clock: FakeClock) -> InvoiceStore:
    return InvoiceStore(InMemoryInvoiceRepository(), clock=clock)


@pytest.fixture
def ledger(store: InvoiceStore, clock: FakeClock) -> TransactionLedger:
    return TransactionLedger(InMemoryTransactionRepository(), store, clock=clock)


@pytest.fixture
def settlement(
    store: InvoiceStore, ledger: TransactionLedger, converter: CurrencyConverter
) -> SettlementProcessor:
    return SettlementProcessor(store, ledger, converter, tolerance_bps=50)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        STORE_BACKEND="memory",
        WALLET_ADAPTER="simulated",
        PRICE_FEED="static",
        FIAT_PARITY_FALLBACK=False,
        AMOUNT_TOLERANCE_BPS=50,
    )


@pytest.fixture
async def container(
    test_settings: Settings, feed: FakePriceFeed
) -> AsyncIterator[ServiceContainer]:
    c = build_container(test_settings, feed=feed)
    yield c
    await c.aclose()


@pytest.fixture
async def client(container: ServiceContainer) -> AsyncIterator[AsyncClient]:
    """Async HTTP client against the app, wired to the in-memory container."""
    app.state.container = container
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.state.container = None
