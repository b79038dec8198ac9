"""Pydantic schemas for the /api/solana surface."""

from datetime import datetime
from decimal import Decimal

from pydantic import field_validator, model_validator

from src.ps_common.schemas import AmountField, CamelModel
from src.ps_invoice.domain.models import Invoice
from src.ps_wallet.application.balance import WalletBalanceView


class WalletBalanceOut(CamelModel):
    address: str
    balance_native: Decimal
    balance_smallest_unit: int
    source: str

    @classmethod
    def from_view(cls, view: WalletBalanceView) -> "WalletBalanceOut":
        return cls(
            address=view.address,
            balance_native=view.balance_native,
            balance_smallest_unit=view.balance_smallest_unit,
            source=view.source,
        )


class SolanaInvoiceCreateRequest(CamelModel):
    creator: str
    amount: AmountField
    description: str

    @field_validator("creator", "description")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("must not be blank")
        return v.strip()


class SolanaInvoiceOut(CamelModel):
    id: str
    creator: str
    amount: Decimal
    description: str | None = None
    status: str
    created_at: datetime
    paid_at: datetime | None = None

    @classmethod
    def from_domain(cls, invoice: Invoice) -> "SolanaInvoiceOut":
        return cls(
            id=invoice.id,
            creator=invoice.creator_id,
            amount=invoice.amount,
            description=invoice.description,
            status=invoice.status,
            created_at=invoice.created_at,
            paid_at=invoice.paid_at,
        )


class SolanaPaymentRequest(CamelModel):
    invoice_id: str
    payer_secret: str | None = None
    payer_address: str | None = None
    transaction_hash: str

    @model_validator(mode="after")
    def one_payer(self) -> "SolanaPaymentRequest":
        if not self.payer_secret and not self.payer_address:
            raise ValueError("payerSecret or payerAddress is required")
        return self


class SolanaPaymentResponse(CamelModel):
    success: bool
    invoice: SolanaInvoiceOut
