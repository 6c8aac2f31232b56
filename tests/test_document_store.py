"""Tests for the document store."""

from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from fieldwork_billing.config import Environment, Settings
from fieldwork_billing.domain.documents import Estimate, Payment, TimeEntry
from fieldwork_billing.domain.value_objects import (
    DocumentKind,
    EstimateStatus,
    InvoiceStatus,
    PaymentMethod,
    WorkOrderStatus,
)
from fieldwork_billing.exceptions import (
    ImmutableFieldError,
    InvalidAmountError,
    StorageError,
    UnknownFieldError,
)
from fieldwork_billing.repositories.interfaces import (
    DocumentRepository,
    DocumentSnapshot,
    NumberSequence,
)
from fieldwork_billing.repositories.memory import InMemoryDocumentRepository
from fieldwork_billing.services.document_store import DocumentStore, as_line_item


class FailingRepository(DocumentRepository):
    def load(self) -> DocumentSnapshot:
        return DocumentSnapshot()

    def save(self, snapshot: DocumentSnapshot) -> None:
        raise StorageError("disk full")


class FixedSequence(NumberSequence):
    def __init__(self, numbers: list[str]) -> None:
        self.numbers = numbers

    def existing_numbers(self, kind: DocumentKind) -> list[str]:
        return [n for n in self.numbers if n.startswith(kind.number_prefix)]


class TestAsLineItem:
    def test_supplied_amount_is_ignored(self):
        item = as_line_item(
            {"description": "Pipe", "quantity": "3", "rate": "10", "amount": "999"}
        )
        assert item.amount == Decimal("30.00")

    def test_unit_price_is_alias_for_rate(self):
        item = as_line_item({"description": "Pipe", "quantity": 2, "unit_price": 4})
        assert item.rate == Decimal("4")

    def test_taxable_follows_type_when_omitted(self):
        labor = as_line_item(
            {"description": "Labor", "quantity": 1, "rate": 80, "type": "labor"}
        )
        material = as_line_item({"description": "Part", "quantity": 1, "rate": 5})
        assert labor.taxable is False
        assert material.taxable is True


class TestAdd:
    def test_assigns_identity_and_defaults(self, store, sample_estimate, clock):
        supplied_id = sample_estimate.id
        sample_estimate.status = EstimateStatus.ACCEPTED
        sample_estimate.document_number = "EST-9999"

        estimate_id = store.add(sample_estimate)
        estimate = store.get_estimate(estimate_id)

        assert estimate is not None
        assert estimate_id != supplied_id
        assert estimate.document_number == "EST-0001"
        assert estimate.status == EstimateStatus.DRAFT
        assert estimate.version == 1
        assert estimate.created_at == clock.now
        assert estimate.valid_until == clock.now + timedelta(days=30)

    def test_computes_totals(self, store, sample_estimate):
        estimate = store.get_estimate(store.add(sample_estimate))

        assert estimate.totals.subtotal == Decimal("200.00")
        assert estimate.totals.taxable_amount == Decimal("100.00")
        assert estimate.totals.tax_amount == Decimal("6.00")
        assert estimate.totals.total == Decimal("206.00")

    def test_numbers_are_sequential_per_kind(
        self, store, sample_estimate, sample_invoice
    ):
        first = store.get_estimate(store.add(sample_estimate))
        second = store.get_estimate(store.add(sample_estimate))
        invoice = store.get_invoice(store.add(sample_invoice))

        assert first.document_number == "EST-0001"
        assert second.document_number == "EST-0002"
        assert invoice.document_number == "INV-0001"

    def test_invoice_due_date_follows_payment_terms(
        self, store, sample_invoice, clock
    ):
        invoice = store.get_invoice(store.add(sample_invoice))
        assert invoice.due_date == clock.now + timedelta(days=15)
        assert invoice.status == InvoiceStatus.DRAFT

    def test_unreadable_terms_use_default_offset(self, store, sample_invoice, clock):
        sample_invoice.payment_terms = "whenever"
        invoice = store.get_invoice(store.add(sample_invoice))
        assert invoice.due_date == clock.now + timedelta(days=30)

    def test_explicit_valid_until_is_kept(self, store, sample_estimate, clock):
        valid_until = clock.now + timedelta(days=5)
        sample_estimate.valid_until = valid_until
        estimate = store.get_estimate(store.add(sample_estimate))
        assert estimate.valid_until == valid_until

    def test_number_sequence_is_consulted(self, repository, settings, clock):
        store = DocumentStore(
            repository=repository,
            settings=settings,
            clock=clock,
            number_sequence=FixedSequence(["EST-0005"]),
        )
        estimate_id = store.add(Estimate(customer_id="c", customer_name="C"))
        assert store.get_estimate(estimate_id).document_number == "EST-0006"

    def test_negative_amounts_rejected_when_configured(
        self, repository, clock, sample_estimate
    ):
        strict = Settings(environment=Environment.TESTING, reject_negative_amounts=True)
        store = DocumentStore(repository=repository, settings=strict, clock=clock)
        sample_estimate.line_items[0].quantity = Decimal("-1")

        with pytest.raises(InvalidAmountError):
            store.add(sample_estimate)
        assert store.estimates == []

    def test_negative_amounts_accepted_by_default(self, store, sample_estimate):
        sample_estimate.line_items[0].rate = Decimal("-50")
        estimate = store.get_estimate(store.add(sample_estimate))
        assert estimate.totals.subtotal == Decimal("0.00")


class TestGetAndList:
    def test_get_unknown_returns_none(self, store):
        assert store.get(DocumentKind.ESTIMATE, uuid4()) is None
        assert store.get_invoice(uuid4()) is None

    def test_returned_documents_are_copies(self, store, sample_estimate):
        estimate_id = store.add(sample_estimate)
        copy = store.get_estimate(estimate_id)
        copy.customer_name = "Changed"
        copy.line_items.clear()

        stored = store.get_estimate(estimate_id)
        assert stored.customer_name == "Harper Plumbing Client"
        assert len(stored.line_items) == 2

    def test_list_documents_by_kind(self, store, sample_estimate, sample_work_order):
        store.add(sample_estimate)
        store.add(sample_work_order)

        assert len(store.estimates) == 1
        assert len(store.work_orders) == 1
        assert store.invoices == []
        assert len(store.list_documents(DocumentKind.WORK_ORDER)) == 1


class TestUpdate:
    def test_merges_changes_and_recomputes_totals(self, store, sample_estimate):
        estimate_id = store.add(sample_estimate)

        updated = store.update(
            DocumentKind.ESTIMATE, estimate_id, tax_rate=Decimal("10"), notes="Rush"
        )

        assert updated.notes == "Rush"
        assert updated.totals.tax_amount == Decimal("10.00")
        assert updated.totals.total == Decimal("210.00")
        assert updated.version == 2

    def test_line_item_payloads_have_amount_rederived(self, store, sample_estimate):
        estimate_id = store.add(sample_estimate)

        updated = store.update(
            DocumentKind.ESTIMATE,
            estimate_id,
            line_items=[
                {"description": "Valve", "quantity": 3, "rate": 10, "amount": 5000}
            ],
        )

        assert updated.line_items[0].amount == Decimal("30.00")
        assert updated.totals.subtotal == Decimal("30.00")

    def test_unrelated_change_keeps_totals(self, store, sample_estimate):
        estimate_id = store.add(sample_estimate)
        before = store.get_estimate(estimate_id).totals

        updated = store.update(DocumentKind.ESTIMATE, estimate_id, notes="Gate code 42")

        assert updated.totals == before

    def test_unknown_document_returns_none(self, store):
        assert store.update(DocumentKind.ESTIMATE, uuid4(), notes="x") is None

    def test_system_fields_are_immutable(self, store, sample_estimate):
        estimate_id = store.add(sample_estimate)
        with pytest.raises(ImmutableFieldError):
            store.update(DocumentKind.ESTIMATE, estimate_id, document_number="EST-1")
        with pytest.raises(ImmutableFieldError):
            store.update(DocumentKind.ESTIMATE, estimate_id, version=10)

    def test_unknown_fields_raise(self, store, sample_estimate):
        estimate_id = store.add(sample_estimate)
        with pytest.raises(UnknownFieldError):
            store.update(DocumentKind.ESTIMATE, estimate_id, payments=[])

    def test_version_conflict_returns_none_without_writing(
        self, store, sample_estimate
    ):
        estimate_id = store.add(sample_estimate)
        store.update(DocumentKind.ESTIMATE, estimate_id, notes="first")

        result = store.update(
            DocumentKind.ESTIMATE, estimate_id, expected_version=1, notes="second"
        )

        assert result is None
        assert store.get_estimate(estimate_id).notes == "first"

    def test_matching_version_writes(self, store, sample_estimate):
        estimate_id = store.add(sample_estimate)
        result = store.update(
            DocumentKind.ESTIMATE, estimate_id, expected_version=1, notes="ok"
        )
        assert result is not None
        assert result.version == 2

    def test_updated_at_is_stamped(self, store, sample_estimate, clock):
        estimate_id = store.add(sample_estimate)
        later = clock.advance(hours=2)
        updated = store.update(DocumentKind.ESTIMATE, estimate_id, notes="later")
        assert updated.updated_at == later
        assert updated.created_at == later - timedelta(hours=2)


class TestDeleteAndDuplicate:
    def test_delete(self, store, repository, sample_estimate):
        estimate_id = store.add(sample_estimate)

        assert store.delete(DocumentKind.ESTIMATE, estimate_id) is True
        assert store.get_estimate(estimate_id) is None
        assert repository.raw["estimates"] == []
        assert store.delete(DocumentKind.ESTIMATE, estimate_id) is False

    def test_deleted_number_is_not_reused_below_highest(self, store, sample_estimate):
        first = store.add(sample_estimate)
        store.add(sample_estimate)
        store.delete(DocumentKind.ESTIMATE, first)

        third = store.get_estimate(store.add(sample_estimate))
        assert third.document_number == "EST-0003"

    def test_duplicate_resets_lifecycle(self, store, sample_estimate, clock):
        estimate_id = store.add(sample_estimate)
        store.send_estimate(estimate_id)
        store.accept_estimate(estimate_id)
        clock.advance(days=10)

        copy_id = store.duplicate(DocumentKind.ESTIMATE, estimate_id)
        source = store.get_estimate(estimate_id)
        copy = store.get_estimate(copy_id)

        assert copy.status == EstimateStatus.DRAFT
        assert copy.accepted_at is None
        assert copy.sent_at is None
        assert copy.document_number != source.document_number
        assert copy.valid_until >= clock.now + timedelta(days=30)
        assert copy.customer_name == source.customer_name
        assert copy.totals == source.totals
        assert {i.id for i in copy.line_items}.isdisjoint(
            {i.id for i in source.line_items}
        )

    def test_duplicate_invoice_drops_payments(self, store, sample_invoice):
        invoice_id = store.add(sample_invoice)
        store.mark_invoice_paid(invoice_id)

        copy = store.get_invoice(store.duplicate(DocumentKind.INVOICE, invoice_id))

        assert copy.payments == []
        assert copy.paid_at is None
        assert copy.status == InvoiceStatus.DRAFT
        assert copy.totals.balance == copy.totals.total

    def test_duplicate_unknown_returns_none(self, store):
        assert store.duplicate(DocumentKind.WORK_ORDER, uuid4()) is None


class TestEstimateTransitions:
    def test_send_view_accept(self, store, sample_estimate, clock):
        estimate_id = store.add(sample_estimate)

        assert store.send_estimate(estimate_id)
        assert store.mark_estimate_viewed(estimate_id)
        assert store.accept_estimate(estimate_id)

        estimate = store.get_estimate(estimate_id)
        assert estimate.status == EstimateStatus.ACCEPTED
        assert estimate.sent_at == clock.now
        assert estimate.viewed_at == clock.now
        assert estimate.accepted_at == clock.now

    def test_mark_viewed_on_draft_is_ignored(self, store, sample_estimate):
        estimate_id = store.add(sample_estimate)

        assert store.mark_estimate_viewed(estimate_id) is False

        estimate = store.get_estimate(estimate_id)
        assert estimate.status == EstimateStatus.DRAFT
        assert estimate.viewed_at is None
        assert estimate.version == 1

    def test_decision_can_be_overwritten(self, store, sample_estimate):
        estimate_id = store.add(sample_estimate)
        store.decline_estimate(estimate_id)

        assert store.accept_estimate(estimate_id)
        assert store.get_estimate(estimate_id).status == EstimateStatus.ACCEPTED

    def test_transition_on_unknown_document(self, store):
        assert store.send_estimate(uuid4()) is False

    def test_unknown_action_raises(self, store, sample_estimate):
        estimate_id = store.add(sample_estimate)
        with pytest.raises(KeyError):
            store.transition(DocumentKind.ESTIMATE, estimate_id, "start")


class TestWorkOrderTransitions:
    def test_schedule_start_complete(self, store, sample_work_order, clock):
        work_order_id = store.add(sample_work_order)
        day = clock.now + timedelta(days=3)

        assert store.schedule_work_order(work_order_id, day, "09:00")
        work_order = store.get_work_order(work_order_id)
        assert work_order.status == WorkOrderStatus.SCHEDULED
        assert work_order.scheduled_date == day
        assert work_order.scheduled_time == "09:00"

        assert store.start_work_order(work_order_id)
        started = clock.now
        clock.advance(hours=3)
        assert store.complete_work_order(work_order_id)

        work_order = store.get_work_order(work_order_id)
        assert work_order.status == WorkOrderStatus.COMPLETED
        assert work_order.started_at == started
        assert work_order.completed_at == clock.now

    def test_hold_and_cancel(self, store, sample_work_order):
        work_order_id = store.add(sample_work_order)

        assert store.hold_work_order(work_order_id)
        assert store.get_work_order(work_order_id).status == WorkOrderStatus.ON_HOLD
        assert store.cancel_work_order(work_order_id)
        assert store.get_work_order(work_order_id).status == WorkOrderStatus.CANCELLED

    def test_schedule_unknown(self, store, clock):
        assert store.schedule_work_order(uuid4(), clock.now) is False


class TestInvoiceLifecycle:
    def test_send_from_draft(self, store, sample_invoice, clock):
        invoice_id = store.add(sample_invoice)

        assert store.send_invoice(invoice_id)

        invoice = store.get_invoice(invoice_id)
        assert invoice.status == InvoiceStatus.SENT
        assert invoice.sent_at == clock.now

    def test_resend_keeps_status_and_restamps(self, store, sample_invoice, clock):
        invoice_id = store.add(sample_invoice)
        store.send_invoice(invoice_id)
        store.mark_invoice_viewed(invoice_id)
        clock.advance(days=1)

        assert store.send_invoice(invoice_id)

        invoice = store.get_invoice(invoice_id)
        assert invoice.status == InvoiceStatus.VIEWED
        assert invoice.sent_at == clock.now

    def test_mark_viewed_requires_sent(self, store, sample_invoice):
        invoice_id = store.add(sample_invoice)
        assert store.mark_invoice_viewed(invoice_id) is False
        assert store.get_invoice(invoice_id).status == InvoiceStatus.DRAFT

    def test_sent_invoice_becomes_overdue_on_next_write(
        self, store, sample_invoice, clock
    ):
        invoice_id = store.add(sample_invoice)
        store.send_invoice(invoice_id)
        clock.advance(days=20)

        store.update(DocumentKind.INVOICE, invoice_id, notes="Reminder sent")

        assert store.get_invoice(invoice_id).status == InvoiceStatus.OVERDUE

    def test_cancel(self, store, sample_invoice):
        invoice_id = store.add(sample_invoice)
        assert store.cancel_invoice(invoice_id)
        assert store.get_invoice(invoice_id).status == InvoiceStatus.CANCELLED


class TestPayments:
    def test_partial_then_full_payment(self, store, sample_invoice, clock):
        invoice_id = store.add(sample_invoice)
        store.send_invoice(invoice_id)

        store.add_payment(invoice_id, Payment(amount=Decimal("100")))
        invoice = store.get_invoice(invoice_id)
        assert invoice.status == InvoiceStatus.PARTIAL
        assert invoice.totals.balance == Decimal("106.00")
        assert invoice.paid_at is None

        store.add_payment(invoice_id, {"amount": "106", "method": "check"})
        invoice = store.get_invoice(invoice_id)
        assert invoice.status == InvoiceStatus.PAID
        assert invoice.totals.balance == Decimal("0.00")
        assert invoice.paid_at == clock.now
        assert invoice.payments[1].method == PaymentMethod.CHECK

    def test_balance_matches_total_minus_paid(self, store, sample_invoice):
        invoice_id = store.add(sample_invoice)
        for amount in ("10", "20.50", "5.25"):
            store.add_payment(invoice_id, Payment(amount=Decimal(amount)))

        totals = store.get_invoice(invoice_id).totals
        assert totals.amount_paid == Decimal("35.75")
        assert totals.balance == totals.total - totals.amount_paid

    def test_mark_paid_records_balance(self, store, sample_invoice):
        invoice_id = store.add(sample_invoice)

        payment_id = store.mark_invoice_paid(invoice_id, PaymentMethod.ACH)

        invoice = store.get_invoice(invoice_id)
        payment = invoice.find_payment(payment_id)
        assert payment.amount == Decimal("206.00")
        assert payment.method == PaymentMethod.ACH
        assert payment.notes == "Marked as paid"
        assert invoice.status == InvoiceStatus.PAID

    def test_mark_paid_with_nothing_due_returns_none(self, store, sample_invoice):
        invoice_id = store.add(sample_invoice)
        store.mark_invoice_paid(invoice_id)

        assert store.mark_invoice_paid(invoice_id) is None
        assert len(store.get_invoice(invoice_id).payments) == 1

    def test_adding_line_item_after_payment_leaves_paid(self, store, sample_invoice):
        invoice_id = store.add(sample_invoice)
        store.send_invoice(invoice_id)
        store.mark_invoice_paid(invoice_id)

        store.add_line_item(
            DocumentKind.INVOICE,
            invoice_id,
            {"description": "Extra part", "quantity": 1, "rate": 25},
        )

        invoice = store.get_invoice(invoice_id)
        assert invoice.status == InvoiceStatus.PARTIAL
        assert invoice.paid_at is None
        assert invoice.totals.balance == Decimal("26.50")

    def test_update_and_delete_payment(self, store, sample_invoice):
        invoice_id = store.add(sample_invoice)
        store.send_invoice(invoice_id)
        payment_id = store.add_payment(invoice_id, Payment(amount=Decimal("206")))

        assert store.update_payment(invoice_id, payment_id, amount=Decimal("50"))
        assert store.get_invoice(invoice_id).status == InvoiceStatus.PARTIAL

        assert store.delete_payment(invoice_id, payment_id)
        invoice = store.get_invoice(invoice_id)
        assert invoice.status == InvoiceStatus.SENT
        assert invoice.totals.amount_paid == Decimal("0.00")

    def test_unknown_payment(self, store, sample_invoice):
        invoice_id = store.add(sample_invoice)
        assert store.update_payment(invoice_id, uuid4(), amount=1) is False
        assert store.delete_payment(invoice_id, uuid4()) is False
        assert store.add_payment(uuid4(), Payment(amount=Decimal("1"))) is None

    def test_non_positive_payment_rejected_when_configured(
        self, repository, clock, sample_invoice
    ):
        strict = Settings(environment=Environment.TESTING, reject_negative_amounts=True)
        store = DocumentStore(repository=repository, settings=strict, clock=clock)
        invoice_id = store.add(sample_invoice)

        with pytest.raises(InvalidAmountError):
            store.add_payment(invoice_id, Payment(amount=Decimal("0")))


class TestLineItems:
    def test_add_line_item_appends_in_order(self, store, sample_estimate):
        estimate_id = store.add(sample_estimate)

        line_item_id = store.add_line_item(
            DocumentKind.ESTIMATE,
            estimate_id,
            {"description": "Permit", "quantity": 1, "rate": 40, "type": "permit"},
        )

        estimate = store.get_estimate(estimate_id)
        item = estimate.find_line_item(line_item_id)
        assert item.order == 2
        assert item.taxable is False
        assert estimate.totals.subtotal == Decimal("240.00")

    def test_update_line_item_rederives_amount(self, store, sample_estimate):
        estimate_id = store.add(sample_estimate)
        line_item_id = store.get_estimate(estimate_id).line_items[0].id

        assert store.update_line_item(
            DocumentKind.ESTIMATE,
            estimate_id,
            line_item_id,
            quantity=Decimal("4"),
            amount=Decimal("1"),
        )

        estimate = store.get_estimate(estimate_id)
        assert estimate.find_line_item(line_item_id).amount == Decimal("200.00")
        assert estimate.totals.tax_amount == Decimal("12.00")

    def test_delete_line_item(self, store, sample_estimate):
        estimate_id = store.add(sample_estimate)
        line_item_id = store.get_estimate(estimate_id).line_items[1].id

        assert store.delete_line_item(DocumentKind.ESTIMATE, estimate_id, line_item_id)

        estimate = store.get_estimate(estimate_id)
        assert len(estimate.line_items) == 1
        assert estimate.totals.total == Decimal("106.00")

    def test_unknown_line_item(self, store, sample_estimate):
        estimate_id = store.add(sample_estimate)
        assert not store.update_line_item(
            DocumentKind.ESTIMATE, estimate_id, uuid4(), quantity=1
        )
        assert not store.delete_line_item(DocumentKind.ESTIMATE, estimate_id, uuid4())

    def test_reorder_numbers_by_position(self, store, sample_estimate):
        estimate_id = store.add(sample_estimate)
        first, second = store.get_estimate(estimate_id).line_items

        assert store.reorder_line_items(
            DocumentKind.ESTIMATE, estimate_id, [second, first]
        )

        items = store.get_estimate(estimate_id).line_items
        assert [i.id for i in items] == [second.id, first.id]
        assert [i.order for i in items] == [0, 1]


class TestTimeEntriesAndPhotos:
    def test_time_entry_crud(self, store, sample_work_order, clock):
        work_order_id = store.add(sample_work_order)
        before = store.get_work_order(work_order_id)

        entry_id = store.add_time_entry(
            work_order_id, TimeEntry(start_time=clock.now, user_name="Sam")
        )
        assert store.get_work_order(work_order_id).time_tracking[0].is_running

        assert store.update_time_entry(
            work_order_id, entry_id, end_time=clock.now + timedelta(hours=1, minutes=30)
        )
        work_order = store.get_work_order(work_order_id)
        assert work_order.total_hours == Decimal("1.50")
        assert work_order.totals == before.totals
        assert work_order.version == before.version + 2

        assert store.delete_time_entry(work_order_id, entry_id)
        assert store.get_work_order(work_order_id).time_tracking == []

    def test_unknown_time_entry(self, store, sample_work_order):
        work_order_id = store.add(sample_work_order)
        assert store.update_time_entry(work_order_id, uuid4(), notes="x") is False
        assert store.delete_time_entry(work_order_id, uuid4()) is False

    def test_photos(self, store, sample_work_order):
        work_order_id = store.add(sample_work_order)

        assert store.add_photo(work_order_id, "https://img.example/1.jpg")
        assert store.get_work_order(work_order_id).photos == [
            "https://img.example/1.jpg"
        ]
        assert store.remove_photo(work_order_id, "https://img.example/1.jpg")
        assert store.remove_photo(work_order_id, "https://img.example/1.jpg") is False
        assert store.get_work_order(work_order_id).photos == []


class TestPersistence:
    def test_autosave_saves_after_each_write(self, store, repository, sample_estimate):
        estimate_id = store.add(sample_estimate)
        store.send_estimate(estimate_id)

        assert repository.save_count == 2
        assert repository.raw["estimates"][0]["status"] == "sent"

    def test_without_autosave_flush_is_explicit(
        self, repository, clock, sample_estimate
    ):
        manual = Settings(environment=Environment.TESTING, autosave=False)
        store = DocumentStore(repository=repository, settings=manual, clock=clock)
        store.add(sample_estimate)

        assert repository.save_count == 0
        assert store.flush() is True
        assert repository.save_count == 1

    def test_new_store_loads_saved_documents(
        self, store, repository, settings, clock, sample_estimate
    ):
        estimate_id = store.add(sample_estimate)

        reloaded = DocumentStore(repository=repository, settings=settings, clock=clock)

        estimate = reloaded.get_estimate(estimate_id)
        assert estimate.document_number == "EST-0001"
        assert estimate.totals.total == Decimal("206.00")
        assert reloaded.get_estimate(reloaded.add(sample_estimate)).document_number == (
            "EST-0002"
        )

    def test_failed_flush_keeps_mutation(self, settings, clock, sample_estimate):
        store = DocumentStore(
            repository=FailingRepository(), settings=settings, clock=clock
        )

        estimate_id = store.add(sample_estimate)

        assert store.get_estimate(estimate_id) is not None
        assert store.flush() is False

    def test_store_without_repository(self, settings, clock, sample_estimate):
        store = DocumentStore(settings=settings, clock=clock)
        assert store.get_estimate(store.add(sample_estimate)) is not None
        assert store.flush() is False

    def test_load_from_replaces_collections(
        self, store, settings, clock, sample_invoice
    ):
        other = InMemoryDocumentRepository()
        DocumentStore(repository=other, settings=settings, clock=clock).add(
            sample_invoice
        )

        store.load_from(other)

        assert len(store.invoices) == 1
        assert store.estimates == []

    def test_snapshot_is_detached(self, store, sample_estimate):
        estimate_id = store.add(sample_estimate)
        snapshot = store.snapshot()
        snapshot.estimates[0].customer_name = "Other"

        assert store.get_estimate(estimate_id).customer_name != "Other"
        assert isinstance(snapshot.estimates[0], Estimate)
        assert snapshot.invoices == []


class TestConcurrentWriters:
    def test_parallel_adds_get_distinct_numbers(self, store, sample_estimate):
        with ThreadPoolExecutor(max_workers=8) as pool:
            ids = list(pool.map(lambda _: store.add(sample_estimate), range(40)))

        numbers = [store.get_estimate(i).document_number for i in ids]
        assert len(set(ids)) == 40
        assert sorted(numbers) == [f"EST-{n:04d}" for n in range(1, 41)]

    def test_parallel_payments_all_count(self, store, sample_invoice, clock):
        invoice_id = store.add(sample_invoice)

        def pay(_: int) -> None:
            store.add_payment(invoice_id, Payment(amount=Decimal("1"), date=clock.now))

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(pay, range(20)))

        invoice = store.get_invoice(invoice_id)
        assert len(invoice.payments) == 20
        assert invoice.totals.amount_paid == Decimal("20.00")
        assert invoice.version == 21
