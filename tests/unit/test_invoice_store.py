"""Unit tests for InvoiceStore over the in-memory repository."""

import asyncio
from datetime import timedelta
from decimal import Decimal

import pytest

from src.ps_common.errors import (
    DuplicateInvoiceNumberError,
    InvalidTransitionError,
    InvoiceLockedError,
    InvoiceNotFoundError,
    StatusConflictError,
    ValidationError,
)
from src.ps_invoice.application.store import InvoiceStore
from src.ps_invoice.domain.models import InvoiceDetailsPatch
from src.ps_invoice.infrastructure.memory_store import InMemoryInvoiceRepository
from tests.factories import T0, FakeClock, new_invoice, pending_invoice


class TestCreate:
    async def test_initial_status_is_draft(self, store: InvoiceStore) -> None:
        inv = await store.create(new_invoice())
        assert inv.status == "draft"
        assert inv.id.startswith("inv_")
        assert inv.paid_at is None
        assert inv.created_at == T0

    async def test_generates_numbers_per_creator(self, store: InvoiceStore) -> None:
        a1 = await store.create(new_invoice(creator_id="alice"))
        a2 = await store.create(new_invoice(creator_id="alice"))
        b1 = await store.create(new_invoice(creator_id="bob"))
        assert (a1.invoice_number, a2.invoice_number) == ("INV-000001", "INV-000002")
        assert b1.invoice_number == "INV-000001"

    async def test_duplicate_number_rejected(self, store: InvoiceStore) -> None:
        await store.create(new_invoice(invoice_number="A-1"))
        with pytest.raises(DuplicateInvoiceNumberError):
            await store.create(new_invoice(invoice_number="A-1"))

    async def test_same_number_other_creator_ok(self, store: InvoiceStore) -> None:
        await store.create(new_invoice(invoice_number="A-1", creator_id="alice"))
        inv = await store.create(new_invoice(invoice_number="A-1", creator_id="bob"))
        assert inv.invoice_number == "A-1"

    async def test_negative_amount_rejected(self, store: InvoiceStore) -> None:
        with pytest.raises(ValidationError):
            await store.create(new_invoice(amount=Decimal("-1")))

    async def test_blank_creator_rejected(self, store: InvoiceStore) -> None:
        with pytest.raises(ValidationError):
            await store.create(new_invoice(creator_id="  "))

    async def test_concurrent_numbering_is_unique(self, store: InvoiceStore) -> None:
        invoices = await asyncio.gather(*(store.create(new_invoice()) for _ in range(20)))
        assert len({i.invoice_number for i in invoices}) == 20


class TestGetAndList:
    async def test_get_unknown(self, store: InvoiceStore) -> None:
        with pytest.raises(InvoiceNotFoundError):
            await store.get("inv_missing")

    async def test_derived_overdue_not_persisted(self, store: InvoiceStore) -> None:
        inv = await pending_invoice(store, due_date=T0 - timedelta(days=1))
        assert (await store.get(inv.id)).status == "overdue"
        assert (await store.get(inv.id, derive_overdue=False)).status == "pending"
        # Reads have no side effects
        assert (await store.get(inv.id, derive_overdue=False)).status == "pending"

    async def test_becomes_overdue_as_time_passes(self, store: InvoiceStore, clock: FakeClock) -> None:
        inv = await pending_invoice(store, due_date=T0 + timedelta(hours=1))
        assert (await store.get(inv.id)).status == "pending"
        clock.advance(hours=2)
        assert (await store.get(inv.id)).status == "overdue"

    async def test_list_filters_on_derived_status(self, store: InvoiceStore) -> None:
        late = await pending_invoice(store, due_date=T0 - timedelta(days=1))
        on_time = await pending_invoice(store)
        await store.create(new_invoice())

        overdue = await store.list(status="overdue")
        pending = await store.list(status="pending")
        assert [i.id for i in overdue] == [late.id]
        assert [i.id for i in pending] == [on_time.id]
        assert len(await store.list()) == 3

    async def test_list_by_creator(self, store: InvoiceStore) -> None:
        await store.create(new_invoice(creator_id="alice"))
        await store.create(new_invoice(creator_id="bob"))
        result = await store.list(creator_id="alice")
        assert [i.creator_id for i in result] == ["alice"]

    async def test_list_unknown_status(self, store: InvoiceStore) -> None:
        with pytest.raises(ValidationError):
            await store.list(status="bogus")


class TestTransition:
    async def test_happy_path(self, store: InvoiceStore, clock: FakeClock) -> None:
        inv = await pending_invoice(store)
        clock.advance(minutes=5)
        paid = await store.transition(inv.id, "pending", "paid")
        assert paid.status == "paid"
        assert paid.paid_at == clock.now
        released = await store.transition(inv.id, "paid", "released")
        assert released.paid_at == paid.paid_at

    async def test_refund_clears_paid_at(self, store: InvoiceStore) -> None:
        inv = await pending_invoice(store)
        await store.transition(inv.id, "pending", "paid")
        refunded = await store.transition(inv.id, "paid", "refunded")
        assert refunded.paid_at is None
        assert refunded.refunded_at is not None

    async def test_illegal_edge_is_invalid_transition(self, store: InvoiceStore) -> None:
        inv = await store.create(new_invoice())
        with pytest.raises(InvalidTransitionError):
            await store.transition(inv.id, "draft", "paid")
        assert (await store.get(inv.id)).status == "draft"

    async def test_stale_from_is_conflict(self, store: InvoiceStore) -> None:
        inv = await store.create(new_invoice())
        # legal edge, but the invoice is still draft
        with pytest.raises(StatusConflictError) as exc_info:
            await store.transition(inv.id, "pending", "paid")
        assert exc_info.value.actual == "draft"
        assert (await store.get(inv.id)).status == "draft"

    async def test_unknown_invoice(self, store: InvoiceStore) -> None:
        with pytest.raises(InvoiceNotFoundError):
            await store.transition("inv_missing", "draft", "pending")

    async def test_overdue_source_maps_to_pending(self, store: InvoiceStore) -> None:
        inv = await pending_invoice(store, due_date=T0 - timedelta(days=1))
        paid = await store.transition(inv.id, "overdue", "paid")
        assert paid.status == "paid"

    async def test_concurrent_cas_has_one_winner(self, store: InvoiceStore) -> None:
        inv = await pending_invoice(store)
        results = await asyncio.gather(
            *(store.transition(inv.id, "pending", "paid") for _ in range(10)),
            return_exceptions=True,
        )
        winners = [r for r in results if not isinstance(r, Exception)]
        conflicts = [r for r in results if isinstance(r, StatusConflictError)]
        assert len(winners) == 1
        assert len(conflicts) == 9


class TestUpdateDetails:
    async def test_edit_while_pending(self, store: InvoiceStore) -> None:
        inv = await pending_invoice(store)
        updated = await store.update_details(
            inv.id, InvoiceDetailsPatch(description="March work", recipient_name="Acme")
        )
        assert updated.description == "March work"
        assert updated.recipient_name == "Acme"
        assert updated.status == "pending"

    async def test_locked_once_paid(self, store: InvoiceStore) -> None:
        inv = await pending_invoice(store)
        await store.transition(inv.id, "pending", "paid")
        with pytest.raises(InvoiceLockedError):
            await store.update_details(inv.id, InvoiceDetailsPatch(description="late edit"))

    async def test_empty_patch_is_read(self, store: InvoiceStore) -> None:
        inv = await store.create(new_invoice())
        assert (await store.update_details(inv.id, InvoiceDetailsPatch())).id == inv.id

    async def test_unknown_invoice(self, store: InvoiceStore) -> None:
        with pytest.raises(InvoiceNotFoundError):
            await store.update_details("inv_missing", InvoiceDetailsPatch(description="x"))


class TestInMemoryRepository:
    async def test_unknown_ids_allocate_no_locks(self) -> None:
        repo = InMemoryInvoiceRepository()
        patch = InvoiceDetailsPatch(description="x")
        for i in range(3):
            missing = f"inv_missing{i}"
            cas = await repo.compare_and_set_status(missing, "draft", "pending", T0)
            edit = await repo.update_details(missing, patch, frozenset({"draft"}), T0)
            assert cas == edit == (None, None)
        assert repo._invoice_locks == {}

    async def test_lock_created_with_invoice(self) -> None:
        repo = InMemoryInvoiceRepository()
        inv = await repo.create(new_invoice(), T0)
        assert list(repo._invoice_locks) == [inv.id]
        updated, actual = await repo.compare_and_set_status(inv.id, "draft", "pending", T0)
        assert actual is None
        assert updated is not None and updated.status == "pending"
