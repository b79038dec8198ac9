# src/ps_wallet/api/router.py
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from src.container import ServiceContainer, get_container
from src.ps_wallet.application.schemas import (
    SolanaInvoiceCreateRequest,
    SolanaInvoiceOut,
    SolanaPaymentRequest,
    SolanaPaymentResponse,
    WalletBalanceOut,
)

router = APIRouter(prefix="/solana", tags=["solana"])


@router.get("/wallets/{address}/balance", response_model=WalletBalanceOut)
async def get_wallet_balance(
    address: str,
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> WalletBalanceOut:
    view = await container.balance_resolver.get_balance(address)
    return WalletBalanceOut.from_view(view)


@router.post("/invoices", response_model=SolanaInvoiceOut, status_code=201)
async def create_solana_invoice(
    req: SolanaInvoiceCreateRequest,
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> SolanaInvoiceOut:
    return await container.solana_service.create_invoice(req)


@router.get("/invoices", response_model=list[SolanaInvoiceOut])
async def list_solana_invoices(
    container: Annotated[ServiceContainer, Depends(get_container)],
    creator: str | None = Query(None, description="Filter by creator wallet"),
) -> list[SolanaInvoiceOut]:
    return await container.solana_service.list_invoices(creator)


@router.get("/invoices/{invoice_id}", response_model=SolanaInvoiceOut)
async def get_solana_invoice(
    invoice_id: str,
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> SolanaInvoiceOut:
    return await container.solana_service.get_invoice(invoice_id)


@router.post("/payment", response_model=SolanaPaymentResponse)
@router.post("/payments", response_model=SolanaPaymentResponse, include_in_schema=False)
async def pay_solana_invoice(
    req: SolanaPaymentRequest,
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> SolanaPaymentResponse:
    return await container.solana_service.pay_invoice(req)
