"""Tests for the HTTP API."""

from datetime import datetime, timedelta
from uuid import uuid4

import pytest
from starlette.testclient import TestClient

from fieldwork_billing.api.app import create_app
from fieldwork_billing.container import get_conversion_service, get_document_store

ESTIMATE_PAYLOAD = {
    "customer_id": "cust-1",
    "customer_name": "Harper Plumbing Client",
    "customer_email": "client@example.com",
    "tax_rate": "6",
    "line_items": [
        {"description": "Shutoff valve", "quantity": "2", "rate": "50"},
        {
            "description": "Installation labor",
            "quantity": "1",
            "rate": "100",
            "type": "labor",
        },
    ],
}


@pytest.fixture
def client(store, converter):
    app = create_app()
    app.dependency_overrides[get_document_store] = lambda: store
    app.dependency_overrides[get_conversion_service] = lambda: converter
    return TestClient(app)


@pytest.fixture
def estimate(client):
    response = client.post("/estimates", json=ESTIMATE_PAYLOAD)
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def invoice(client):
    payload = dict(ESTIMATE_PAYLOAD, payment_terms="Net 15")
    response = client.post("/invoices", json=payload)
    assert response.status_code == 201
    return response.json()


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "version": "0.1.0"}

    def test_request_id_is_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "req-42"})
        assert response.headers["X-Request-ID"] == "req-42"

        assert client.get("/health").headers["X-Request-ID"]


class TestEstimates:
    def test_create_derives_totals_and_number(self, estimate):
        assert estimate["kind"] == "estimate"
        assert estimate["document_number"] == "EST-0001"
        assert estimate["status"] == "draft"
        assert estimate["version"] == 1
        assert estimate["totals"]["subtotal"] == "200.00"
        assert estimate["totals"]["tax_amount"] == "6.00"
        assert estimate["totals"]["total"] == "206.00"
        assert estimate["line_items"][1]["taxable"] is False
        assert estimate["line_items"][0]["amount"] == "100.00"

    def test_create_validates_payload(self, client):
        response = client.post("/estimates", json={"customer_id": "c"})
        assert response.status_code == 422

    def test_get_and_not_found(self, client, estimate):
        assert client.get(f"/estimates/{estimate['id']}").status_code == 200

        response = client.get(f"/estimates/{uuid4()}")
        assert response.status_code == 404
        assert response.json()["error"] == "DOCUMENT_NOT_FOUND"

    def test_list_with_search(self, client, estimate):
        client.post("/estimates", json=dict(ESTIMATE_PAYLOAD, customer_name="Other"))

        response = client.get("/estimates", params={"search": "harper"})

        assert response.status_code == 200
        assert [e["id"] for e in response.json()] == [estimate["id"]]

    def test_patch_with_version(self, client, estimate):
        url = f"/estimates/{estimate['id']}"

        response = client.patch(
            url, json={"changes": {"tax_rate": "10"}, "expected_version": 1}
        )
        assert response.status_code == 200
        assert response.json()["totals"]["total"] == "210.00"
        assert response.json()["version"] == 2

        stale = client.patch(
            url, json={"changes": {"notes": "late"}, "expected_version": 1}
        )
        assert stale.status_code == 409
        assert stale.json()["error"] == "STALE_DOCUMENT"

    def test_patch_rejects_system_and_unknown_fields(self, client, estimate):
        url = f"/estimates/{estimate['id']}"

        immutable = client.patch(url, json={"changes": {"document_number": "X-1"}})
        unknown = client.patch(url, json={"changes": {"colour": "red"}})

        assert immutable.status_code == 400
        assert immutable.json()["error"] == "IMMUTABLE_FIELD"
        assert unknown.status_code == 400
        assert unknown.json()["error"] == "UNKNOWN_FIELD"

    def test_status_actions(self, client, estimate):
        url = f"/estimates/{estimate['id']}"

        ignored = client.post(f"{url}/mark-viewed")
        assert ignored.status_code == 200
        assert ignored.json()["status"] == "draft"

        client.post(f"{url}/send")
        client.post(f"{url}/mark-viewed")
        accepted = client.post(f"{url}/accept")

        body = accepted.json()
        assert body["status"] == "accepted"
        assert body["sent_at"] is not None
        assert body["accepted_at"] is not None

    def test_delete_and_duplicate(self, client, estimate):
        url = f"/estimates/{estimate['id']}"

        duplicate = client.post(f"{url}/duplicate")
        assert duplicate.status_code == 201
        assert duplicate.json()["document_number"] == "EST-0002"

        assert client.delete(url).status_code == 204
        assert client.delete(url).status_code == 404

    def test_line_item_endpoints(self, client, estimate):
        url = f"/estimates/{estimate['id']}/line-items"

        created = client.post(
            url, json={"description": "Permit fee", "rate": "40", "type": "permit"}
        )
        assert created.status_code == 201
        line_item_id = created.json()["id"]

        updated = client.patch(f"{url}/{line_item_id}", json={"quantity": "2"})
        assert updated.json()["totals"]["subtotal"] == "280.00"

        deleted = client.delete(f"{url}/{line_item_id}")
        assert deleted.json()["totals"]["subtotal"] == "200.00"

        missing = client.delete(f"{url}/{uuid4()}")
        assert missing.status_code == 404
        assert missing.json()["error"] == "LINE_ITEM_NOT_FOUND"

    def test_stats_and_export(self, client, estimate):
        stats = client.get("/estimates/stats").json()
        assert stats["total"] == 1
        assert stats["total_value"] == "206.00"

        export = client.get("/estimates/export")
        assert export.status_code == 200
        assert export.headers["content-type"].startswith("text/csv")
        assert "EST-0001" in export.text

    def test_expired_is_listed_by_status(self, client, estimate, clock):
        client.post(f"/estimates/{estimate['id']}/send")
        clock.advance(days=31)

        response = client.get("/estimates", params={"status": "expired"})

        assert [e["id"] for e in response.json()] == [estimate["id"]]


class TestConversionEndpoints:
    def test_estimate_to_work_order_to_invoice(self, client, estimate):
        work_order = client.post(
            f"/estimates/{estimate['id']}/convert/work-order",
            json={"assigned_to": ["Sam"], "priority": "high"},
        )
        assert work_order.status_code == 201
        work_order_body = work_order.json()
        assert work_order_body["estimate_id"] == estimate["id"]
        assert work_order_body["priority"] == "high"

        invoice = client.post(
            f"/work-orders/{work_order_body['id']}/convert/invoice",
            json={"payment_terms": "Net 45"},
        )
        assert invoice.status_code == 201
        invoice_body = invoice.json()
        assert invoice_body["work_order_id"] == work_order_body["id"]
        assert invoice_body["estimate_id"] == estimate["id"]
        assert invoice_body["totals"]["balance"] == "206.00"

        source = client.get(f"/estimates/{estimate['id']}").json()
        assert source["converted_to_work_order_id"] == work_order_body["id"]

    def test_missing_source(self, client):
        response = client.post(f"/estimates/{uuid4()}/convert/invoice", json={})
        assert response.status_code == 404


class TestWorkOrders:
    def test_schedule_time_and_photos(self, client, clock):
        created = client.post(
            "/work-orders", json=dict(ESTIMATE_PAYLOAD, assigned_to=["Sam"])
        ).json()
        url = f"/work-orders/{created['id']}"

        scheduled = client.post(
            f"{url}/schedule",
            json={
                "scheduled_date": (clock.now + timedelta(days=1)).isoformat(),
                "scheduled_time": "09:00",
            },
        )
        assert scheduled.json()["status"] == "scheduled"

        entry = client.post(
            f"{url}/time-entries",
            json={"start_time": clock.now.isoformat(), "user_name": "Sam"},
        )
        assert entry.status_code == 201
        entry_id = entry.json()["id"]
        closed = client.patch(
            f"{url}/time-entries/{entry_id}",
            json={"end_time": (clock.now + timedelta(hours=2)).isoformat()},
        )
        assert closed.json()["time_tracking"][0]["end_time"] is not None

        with_photo = client.post(f"{url}/photos", json={"url": "https://img/1.jpg"})
        assert with_photo.json()["photos"] == ["https://img/1.jpg"]
        without = client.delete(f"{url}/photos", params={"url": "https://img/1.jpg"})
        assert without.json()["photos"] == []

        assert client.post(f"{url}/start").json()["status"] == "in_progress"
        assert client.post(f"{url}/complete").json()["status"] == "completed"

    def test_filter_by_assignee(self, client):
        client.post("/work-orders", json=dict(ESTIMATE_PAYLOAD, assigned_to=["Sam"]))
        client.post("/work-orders", json=dict(ESTIMATE_PAYLOAD, assigned_to=["Lee"]))

        response = client.get("/work-orders", params={"assigned_to": "Lee"})

        assert len(response.json()) == 1


class TestInvoices:
    def test_payments_drive_status(self, client, invoice):
        url = f"/invoices/{invoice['id']}"
        client.post(f"{url}/send")

        payment = client.post(f"{url}/payments", json={"amount": "100"})
        assert payment.status_code == 201
        partial = client.get(url).json()
        assert partial["status"] == "partial"
        assert partial["totals"]["balance"] == "106.00"

        paid = client.post(f"{url}/mark-paid", json={"method": "check"}).json()
        assert paid["status"] == "paid"
        assert paid["paid_at"] is not None

        reverted = client.delete(f"{url}/payments/{payment.json()['id']}").json()
        assert reverted["status"] == "partial"
        assert reverted["paid_at"] is None

    def test_update_payment_not_found(self, client, invoice):
        response = client.patch(
            f"/invoices/{invoice['id']}/payments/{uuid4()}", json={"amount": "1"}
        )
        assert response.status_code == 404
        assert response.json()["error"] == "PAYMENT_NOT_FOUND"

    def test_overdue_filter(self, client, invoice, clock):
        client.post(f"/invoices/{invoice['id']}/send")
        clock.advance(days=16)

        response = client.get("/invoices", params={"overdue": "true"})

        assert [i["status"] for i in response.json()] == ["overdue"]

    def test_stats(self, client, invoice):
        stats = client.get("/invoices/stats").json()
        assert stats["total"] == 1
        assert stats["total_outstanding"] == "206.00"


class TestTimestampsWithoutTimezone:
    def test_estimate_valid_until_is_read_as_utc(self, client):
        payload = dict(ESTIMATE_PAYLOAD, valid_until="2020-01-01T00:00:00")
        created = client.post("/estimates", json=payload)
        assert created.status_code == 201
        client.post(f"/estimates/{created.json()['id']}/send")

        listed = client.get("/estimates")

        assert listed.status_code == 200
        [estimate] = listed.json()
        assert estimate["status"] == "expired"
        valid_until = datetime.fromisoformat(estimate["valid_until"])
        assert valid_until.utcoffset() == timedelta(0)

    def test_invoice_due_date_allows_later_writes(self, client):
        payload = dict(ESTIMATE_PAYLOAD, due_date="2030-01-01T00:00:00")
        invoice_id = client.post("/invoices", json=payload).json()["id"]

        sent = client.post(f"/invoices/{invoice_id}/send")
        paid = client.post(
            f"/invoices/{invoice_id}/payments",
            json={"amount": "10", "date": "2025-03-01T10:00:00"},
        )

        assert sent.status_code == 200
        assert sent.json()["status"] == "sent"
        assert paid.status_code == 201
        assert client.get(f"/invoices/{invoice_id}").json()["status"] == "partial"

    def test_date_filters(self, client, estimate):
        before = client.get("/estimates", params={"date_from": "2020-01-01T00:00:00"})
        after = client.get("/estimates", params={"date_to": "2020-01-01T00:00:00"})

        assert before.status_code == 200
        assert [e["id"] for e in before.json()] == [estimate["id"]]
        assert after.json() == []

    def test_schedule_and_time_entry(self, client):
        work_order_id = client.post("/work-orders", json=ESTIMATE_PAYLOAD).json()["id"]

        scheduled = client.post(
            f"/work-orders/{work_order_id}/schedule",
            json={"scheduled_date": "2025-03-05T08:00:00"},
        )
        entry = client.post(
            f"/work-orders/{work_order_id}/time-entries",
            json={
                "start_time": "2025-03-05T08:00:00",
                "end_time": "2025-03-05T10:30:00",
            },
        )

        assert scheduled.status_code == 200
        assert entry.status_code == 201
        listed = client.get("/work-orders", params={"date_from": "2025-03-04T00:00:00"})
        assert [w["id"] for w in listed.json()] == [work_order_id]
