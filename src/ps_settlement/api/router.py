# src/ps_settlement/api/router.py
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from src.container import ServiceContainer, get_container
from src.ps_common.enums import TransactionType
from src.ps_common.errors import ValidationError
from src.ps_invoice.application.schemas import InvoiceOut
from src.ps_settlement.application.schemas import (
    ReconcileRequest,
    TransactionCreateRequest,
    TransactionOut,
    UnreconciledOut,
)

router = APIRouter(tags=["settlement"])


@router.post("/transactions", response_model=TransactionOut, status_code=201)
async def create_transaction(
    req: TransactionCreateRequest,
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> TransactionOut:
    settlement = container.settlement
    if req.transaction_type == TransactionType.REFUND.value:
        if req.invoice_id is None:
            raise ValidationError("refunds require invoiceId")
        result = await settlement.process_refund(req.invoice_id, req.transaction_hash, req.memo)
    else:
        result = await settlement.process_payment(
            req.invoice_id,
            req.sender_address,
            req.amount,
            req.currency,
            req.transaction_hash,
            memo=req.memo,
            recipient_address=req.recipient_address,
        )
    return TransactionOut.from_domain(result.transaction)


@router.get("/transactions", response_model=list[TransactionOut])
async def list_transactions(
    container: Annotated[ServiceContainer, Depends(get_container)],
    invoice_id: str | None = Query(None, alias="invoiceId", description="Filter by invoice"),
    address: str | None = Query(None, description="Sender or recipient address"),
) -> list[TransactionOut]:
    txs = await container.ledger.list(invoice_id=invoice_id, address=address)
    return [TransactionOut.from_domain(tx) for tx in txs]


@router.get("/transactions/{transaction_id}", response_model=TransactionOut)
async def get_transaction(
    transaction_id: str,
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> TransactionOut:
    return TransactionOut.from_domain(await container.ledger.get(transaction_id))


@router.get("/settlements/unreconciled", response_model=list[UnreconciledOut])
async def list_unreconciled(
    container: Annotated[ServiceContainer, Depends(get_container)],
    creator_id: str | None = Query(None, alias="creatorId"),
) -> list[UnreconciledOut]:
    found = await container.settlement.find_unreconciled(creator_id)
    return [
        UnreconciledOut(invoice=InvoiceOut.from_domain(u.invoice), reason=u.reason) for u in found
    ]


@router.post(
    "/settlements/{invoice_id}/reconcile", response_model=TransactionOut, status_code=201
)
async def reconcile(
    invoice_id: str,
    req: ReconcileRequest,
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> TransactionOut:
    tx = await container.settlement.reconcile(
        invoice_id,
        req.sender_address,
        req.amount,
        req.currency,
        req.transaction_hash,
        memo=req.memo,
    )
    return TransactionOut.from_domain(tx)
