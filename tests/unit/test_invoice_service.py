"""Unit tests for InvoiceService and SolanaInvoiceService."""

from datetime import timedelta
from decimal import Decimal

import pytest
from pydantic import ValidationError as PydanticValidationError

from src.ps_common.errors import (
    AlreadySettledError,
    InvalidTransitionError,
    InvoiceLockedError,
    InvoiceNotFoundError,
    ValidationError,
)
from src.ps_invoice.application.schemas import InvoiceCreateRequest, InvoicePatchRequest
from src.ps_invoice.application.service import InvoiceService
from src.ps_invoice.application.store import InvoiceStore
from src.ps_ledger.application.ledger import TransactionLedger
from src.ps_pricing.application.converter import CurrencyConverter
from src.ps_settlement.application.service import SettlementProcessor
from src.ps_wallet.application.schemas import SolanaInvoiceCreateRequest, SolanaPaymentRequest
from src.ps_wallet.application.solana_service import SolanaInvoiceService
from src.ps_wallet.infrastructure.adapters import SimulatedWalletAdapter, simulated_address_for
from tests.factories import PAYER, RECIPIENT, SOLANA_CREATOR, T0, FakeClock, FakePriceFeed, new_invoice


@pytest.fixture
def service(store: InvoiceStore, converter: CurrencyConverter) -> InvoiceService:
    return InvoiceService(store, converter)


@pytest.fixture
def solana(
    store: InvoiceStore, settlement: SettlementProcessor, clock: FakeClock
) -> SolanaInvoiceService:
    return SolanaInvoiceService(store, settlement, SimulatedWalletAdapter, due_days=30, clock=clock)


def _create_request(**kwargs: object) -> InvoiceCreateRequest:
    body: dict[str, object] = {
        "creatorId": "creator-1",
        "recipientAddress": RECIPIENT,
        "amount": "250.00",
        "currency": "sol",
        "dueDate": (T0 + timedelta(days=7)).isoformat(),
    }
    body.update(kwargs)
    return InvoiceCreateRequest.model_validate(body)


class TestInvoiceSchemas:
    def test_amount_stays_decimal(self) -> None:
        req = _create_request(amount="0.1")
        assert req.amount == Decimal("0.1")

    @pytest.mark.parametrize("amount", ["-1", "abc", "NaN", True])
    def test_bad_amount(self, amount: object) -> None:
        with pytest.raises(PydanticValidationError):
            _create_request(amount=amount)

    def test_blank_creator(self) -> None:
        with pytest.raises(PydanticValidationError):
            _create_request(creatorId="  ")

    def test_padded_invoice_number(self) -> None:
        with pytest.raises(PydanticValidationError):
            _create_request(invoiceNumber=" INV-7")


class TestInvoiceService:
    async def test_create_normalizes_and_snapshots_usd(self, service: InvoiceService) -> None:
        out = await service.create_invoice(_create_request())
        assert out.currency == "SOL"
        assert out.status == "draft"
        assert out.fiat_amount == Decimal("20000")
        assert out.invoice_number == "INV-000001"

    async def test_create_without_prices(self, service: InvoiceService, feed: FakePriceFeed) -> None:
        feed.fail = True
        out = await service.create_invoice(_create_request())
        assert out.fiat_amount is None

    async def test_explicit_fiat_amount_kept(self, service: InvoiceService, feed: FakePriceFeed) -> None:
        out = await service.create_invoice(_create_request(fiatAmount="19999.99"))
        assert out.fiat_amount == Decimal("19999.99")
        assert feed.calls == 0

    async def test_patch_issues_invoice(self, service: InvoiceService) -> None:
        created = await service.create_invoice(_create_request())
        out = await service.patch_invoice(created.id, InvoicePatchRequest(status="pending"))
        assert out.status == "pending"

    async def test_patch_cannot_mark_paid(self, service: InvoiceService, store: InvoiceStore) -> None:
        created = await service.create_invoice(_create_request())
        await service.patch_invoice(created.id, InvoicePatchRequest(status="pending"))
        with pytest.raises(InvalidTransitionError):
            await service.patch_invoice(created.id, InvoicePatchRequest(status="paid"))
        assert (await store.get(created.id)).status == "pending"

    async def test_patch_overdue_is_rejected(self, service: InvoiceService) -> None:
        created = await service.create_invoice(_create_request())
        await service.patch_invoice(created.id, InvoicePatchRequest(status="pending"))
        with pytest.raises(InvalidTransitionError):
            await service.patch_invoice(created.id, InvoicePatchRequest(status="overdue"))

    async def test_patch_unknown_status(self, service: InvoiceService) -> None:
        created = await service.create_invoice(_create_request())
        with pytest.raises(ValidationError):
            await service.patch_invoice(created.id, InvoicePatchRequest(status="archived"))

    async def test_patch_details_and_status(self, service: InvoiceService) -> None:
        created = await service.create_invoice(_create_request())
        out = await service.patch_invoice(
            created.id, InvoicePatchRequest(status="pending", description="March retainer")
        )
        assert out.description == "March retainer"
        assert out.status == "pending"

    async def test_illegal_step_leaves_details_untouched(
        self, service: InvoiceService, store: InvoiceStore
    ) -> None:
        created = await service.create_invoice(_create_request(description="original"))
        with pytest.raises(InvalidTransitionError):
            await service.patch_invoice(
                created.id, InvoicePatchRequest(status="released", description="EDITED")
            )
        stored = await store.get(created.id)
        assert stored.description == "original"
        assert stored.status == "draft"

    async def test_details_locked_after_payment(
        self, service: InvoiceService, store: InvoiceStore
    ) -> None:
        created = await service.create_invoice(_create_request())
        await store.transition(created.id, "draft", "pending")
        await store.transition(created.id, "pending", "paid")
        with pytest.raises(InvoiceLockedError):
            await service.patch_invoice(created.id, InvoicePatchRequest(description="late edit"))

    async def test_release_paid_invoice(self, service: InvoiceService, store: InvoiceStore) -> None:
        created = await service.create_invoice(_create_request())
        await store.transition(created.id, "draft", "pending")
        await store.transition(created.id, "pending", "paid")
        out = await service.patch_invoice(created.id, InvoicePatchRequest(status="released"))
        assert out.status == "released"

    async def test_get_unknown(self, service: InvoiceService) -> None:
        with pytest.raises(InvoiceNotFoundError):
            await service.get_invoice("inv_missing")


class TestSolanaInvoiceService:
    async def test_create_issues_sol_invoice(
        self, solana: SolanaInvoiceService, clock: FakeClock, store: InvoiceStore
    ) -> None:
        out = await solana.create_invoice(
            SolanaInvoiceCreateRequest(creator=SOLANA_CREATOR, amount=Decimal("1.5"), description="Design work")
        )
        assert out.status == "pending"
        assert out.creator == SOLANA_CREATOR
        stored = await store.get(out.id)
        assert stored.currency == "SOL"
        assert stored.recipient_address == SOLANA_CREATOR
        assert stored.due_date == clock.now + timedelta(days=30)

    async def test_create_rejects_non_solana_creator(self, solana: SolanaInvoiceService) -> None:
        with pytest.raises(ValidationError):
            await solana.create_invoice(
                SolanaInvoiceCreateRequest(creator="0x" + "a" * 40, amount=Decimal("1"), description="x")
            )

    async def test_create_rejects_zero_amount(self, solana: SolanaInvoiceService) -> None:
        with pytest.raises(ValidationError):
            await solana.create_invoice(
                SolanaInvoiceCreateRequest(creator=SOLANA_CREATOR, amount=Decimal("0"), description="x")
            )

    async def test_pay_with_simulated_secret(
        self, solana: SolanaInvoiceService, ledger: TransactionLedger
    ) -> None:
        inv = await solana.create_invoice(
            SolanaInvoiceCreateRequest(creator=SOLANA_CREATOR, amount=Decimal("1.5"), description="x")
        )

        resp = await solana.pay_invoice(
            SolanaPaymentRequest(invoice_id=inv.id, payer_secret="my-secret", transaction_hash="sig1")
        )

        assert resp.success is True
        assert resp.invoice.status == "paid"
        assert resp.invoice.paid_at is not None
        (tx,) = await ledger.list(invoice_id=inv.id)
        assert tx.sender_address == simulated_address_for("my-secret")
        assert tx.amount == Decimal("1.5")

    async def test_pay_twice(self, solana: SolanaInvoiceService) -> None:
        inv = await solana.create_invoice(
            SolanaInvoiceCreateRequest(creator=SOLANA_CREATOR, amount=Decimal("1.5"), description="x")
        )
        req = SolanaPaymentRequest(invoice_id=inv.id, payer_address=PAYER, transaction_hash="sig1")
        await solana.pay_invoice(req)
        with pytest.raises(AlreadySettledError):
            await solana.pay_invoice(req)

    async def test_payment_request_needs_payer(self) -> None:
        with pytest.raises(PydanticValidationError):
            SolanaPaymentRequest(invoice_id="inv_1", transaction_hash="sig1")

    async def test_non_sol_invoices_hidden(
        self, solana: SolanaInvoiceService, store: InvoiceStore
    ) -> None:
        usd = await store.create(new_invoice(creator_id=SOLANA_CREATOR, currency="USD"))
        with pytest.raises(InvoiceNotFoundError):
            await solana.get_invoice(usd.id)
        assert await solana.list_invoices(creator=SOLANA_CREATOR) == []
