"""ServiceContainer: process-wide wiring of stores, caches and services.

Built once from Settings by the app lifespan (or lazily on the first request,
which is what httpx ASGITransport test clients hit) and kept on
app.state.container. Route handlers receive it through get_container().
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass

import httpx
from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine

from config.settings import Settings
from config.settings import settings as app_settings
from src.ps_common.database import build_engine, build_session_factory
from src.ps_common.id_generator import SnowflakeIdGenerator
from src.ps_invoice.application.service import InvoiceService
from src.ps_invoice.application.store import InvoiceStore
from src.ps_invoice.domain.repository import InvoiceRepositoryProtocol
from src.ps_invoice.infrastructure.memory_store import InMemoryInvoiceRepository
from src.ps_invoice.infrastructure.persistence import InvoiceRepository
from src.ps_ledger.application.ledger import TransactionLedger
from src.ps_ledger.domain.repository import TransactionRepositoryProtocol
from src.ps_ledger.infrastructure.memory_store import InMemoryTransactionRepository
from src.ps_ledger.infrastructure.persistence import TransactionRepository
from src.ps_pricing.application.cache import PriceCache
from src.ps_pricing.application.converter import CurrencyConverter
from src.ps_pricing.domain.feed import PriceFeedProtocol
from src.ps_pricing.infrastructure.feeds import CoinGeckoPriceFeed, StaticPriceFeed
from src.ps_settlement.application.service import SettlementProcessor
from src.ps_wallet.application.balance import WalletBalanceResolver
from src.ps_wallet.application.solana_service import SolanaInvoiceService
from src.ps_wallet.domain.adapter import WalletAdapterProtocol
from src.ps_wallet.infrastructure.adapters import OnChainWalletAdapter, SimulatedWalletAdapter
from src.ps_wallet.infrastructure.solana_rpc import SolanaRpcClient

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    settings: Settings
    http_client: httpx.AsyncClient
    price_cache: PriceCache
    converter: CurrencyConverter
    invoices: InvoiceStore
    invoice_service: InvoiceService
    ledger: TransactionLedger
    settlement: SettlementProcessor
    wallet_adapter_factory: Callable[[], WalletAdapterProtocol]
    balance_resolver: WalletBalanceResolver
    solana_service: SolanaInvoiceService
    engine: AsyncEngine | None = None

    async def aclose(self) -> None:
        await self.price_cache.aclose()
        await self.http_client.aclose()
        if self.engine is not None:
            await self.engine.dispose()


def build_price_feed(settings: Settings, client: httpx.AsyncClient) -> PriceFeedProtocol:
    if settings.PRICE_FEED == "static":
        return StaticPriceFeed(settings.STATIC_PRICES)
    if settings.PRICE_FEED == "coingecko":
        return CoinGeckoPriceFeed(
            client,
            settings.PRICE_FEED_URL,
            settings.PRICE_SYMBOL_IDS,
            timeout_seconds=settings.PRICE_FETCH_TIMEOUT_SECONDS,
        )
    raise ValueError(f"Unknown PRICE_FEED {settings.PRICE_FEED!r}")


def build_wallet_adapter_factory(
    settings: Settings, client: httpx.AsyncClient
) -> Callable[[], WalletAdapterProtocol]:
    if settings.WALLET_ADAPTER == "simulated":
        return SimulatedWalletAdapter
    if settings.WALLET_ADAPTER == "onchain":
        rpc = SolanaRpcClient(
            client, settings.SOLANA_RPC_URL, timeout_seconds=settings.BALANCE_TIMEOUT_SECONDS
        )
        return lambda: OnChainWalletAdapter(rpc)
    raise ValueError(f"Unknown WALLET_ADAPTER {settings.WALLET_ADAPTER!r}")


def build_container(
    settings: Settings,
    feed: PriceFeedProtocol | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> ServiceContainer:
    """Wire every component from settings. feed/http_client override for tests."""
    client = http_client or httpx.AsyncClient()
    engine: AsyncEngine | None = None

    invoice_repo: InvoiceRepositoryProtocol
    tx_repo: TransactionRepositoryProtocol
    invoice_ids = SnowflakeIdGenerator(prefix="inv_", machine_id=settings.MACHINE_ID)
    tx_ids = SnowflakeIdGenerator(prefix="txn_", machine_id=settings.MACHINE_ID)
    if settings.STORE_BACKEND == "sql":
        engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)
        session_factory = build_session_factory(engine)
        invoice_repo = InvoiceRepository(session_factory, invoice_ids)
        tx_repo = TransactionRepository(session_factory, tx_ids)
    elif settings.STORE_BACKEND == "memory":
        invoice_repo = InMemoryInvoiceRepository(invoice_ids)
        tx_repo = InMemoryTransactionRepository(tx_ids)
    else:
        raise ValueError(f"Unknown STORE_BACKEND {settings.STORE_BACKEND!r}")

    cache = PriceCache(
        feed or build_price_feed(settings, client),
        ttl_seconds=settings.PRICE_CACHE_TTL_SECONDS,
        fetch_timeout_seconds=settings.PRICE_FETCH_TIMEOUT_SECONDS,
    )
    converter = CurrencyConverter(
        cache,
        fiat_currencies=settings.FIAT_CURRENCIES,
        fiat_parity=settings.FIAT_PARITY_FALLBACK,
    )
    invoices = InvoiceStore(invoice_repo)
    ledger = TransactionLedger(tx_repo, invoices)
    settlement = SettlementProcessor(
        invoices, ledger, converter, tolerance_bps=settings.AMOUNT_TOLERANCE_BPS
    )
    adapter_factory = build_wallet_adapter_factory(settings, client)

    logger.info(
        "Container built: store=%s feed=%s wallet=%s",
        settings.STORE_BACKEND,
        "custom" if feed else settings.PRICE_FEED,
        settings.WALLET_ADAPTER,
    )
    return ServiceContainer(
        settings=settings,
        http_client=client,
        price_cache=cache,
        converter=converter,
        invoices=invoices,
        invoice_service=InvoiceService(invoices, converter),
        ledger=ledger,
        settlement=settlement,
        wallet_adapter_factory=adapter_factory,
        balance_resolver=WalletBalanceResolver(
            adapter_factory(), timeout_seconds=settings.BALANCE_TIMEOUT_SECONDS
        ),
        solana_service=SolanaInvoiceService(
            invoices, settlement, adapter_factory, due_days=settings.SOLANA_INVOICE_DUE_DAYS
        ),
        engine=engine,
    )


def get_container(request: Request) -> ServiceContainer:
    """FastAPI dependency: the app-wide container, built on first use if needed."""
    container = getattr(request.app.state, "container", None)
    if container is None:
        container = build_container(app_settings)
        request.app.state.container = container
    return container
