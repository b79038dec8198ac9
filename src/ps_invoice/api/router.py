# src/ps_invoice/api/router.py
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from src.container import ServiceContainer, get_container
from src.ps_invoice.application.schemas import (
    InvoiceCreateRequest,
    InvoiceOut,
    InvoicePatchRequest,
)

router = APIRouter(prefix="/invoices", tags=["invoices"])


@router.post("", response_model=InvoiceOut, status_code=201)
async def create_invoice(
    req: InvoiceCreateRequest,
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> InvoiceOut:
    return await container.invoice_service.create_invoice(req)


@router.get("", response_model=list[InvoiceOut])
async def list_invoices(
    container: Annotated[ServiceContainer, Depends(get_container)],
    creator_id: str | None = Query(None, alias="creatorId", description="Filter by creator"),
    status: str | None = Query(None, description="Filter by (derived) status"),
) -> list[InvoiceOut]:
    return await container.invoice_service.list_invoices(creator_id, status)


@router.get("/{invoice_id}", response_model=InvoiceOut)
async def get_invoice(
    invoice_id: str,
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> InvoiceOut:
    return await container.invoice_service.get_invoice(invoice_id)


@router.patch("/{invoice_id}", response_model=InvoiceOut)
async def patch_invoice(
    invoice_id: str,
    req: InvoicePatchRequest,
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> InvoiceOut:
    return await container.invoice_service.patch_invoice(invoice_id, req)
