"""
Invoice tests.

Verifies:
- Invoice numbers are allocated in order, seeded past legacy numbers
- A number already taken outside the sequence is skipped, never reused
- Exhausted retries surface as 409 with retry=true
- Items replace atomically and status changes notify once
"""

from sqlalchemy import insert

from conftest import make_invoice, make_reservation
from tourops.extensions import db
from tourops.models import ActivityLogEntry, DocumentSequence, Invoice, Notification
from tourops.services import invoice_service


def invoice_payload(client_id, **overrides):
    payload = {
        "clientId": client_id,
        "date": "2024-06-01",
        "dueDate": "2024-06-30",
        "items": [
            {"description": "Safari day", "quantity": 2, "price": 150.5},
            {"description": "Park fees", "quantity": 1, "price": "99"},
        ],
    }
    payload.update(overrides)
    return payload


def insert_raw_invoice(invoice_id, client_id):
    """Insert outside the ORM session, as a second writer would."""
    db.session.execute(insert(Invoice.__table__).values(
        id=invoice_id,
        client_id=client_id,
        amount=10,
        invoice_date="2024-06-01",
        due_date="2024-06-30",
        status="draft",
    ))
    db.session.commit()


class TestInvoiceNumbering:

    def test_sequential_ids(self, client, staff_headers):
        reservation = make_reservation()

        ids = [
            client.post("/api/invoices", headers=staff_headers, json=invoice_payload(reservation.id)).get_json()["id"]
            for _ in range(3)
        ]

        assert ids == ["INV-001", "INV-002", "INV-003"]

    def test_seeded_past_legacy_numbers(self, client, staff_headers):
        reservation = make_reservation()
        make_invoice("INV-007", reservation.id)
        make_invoice("LEGACY-99", reservation.id)

        resp = client.post("/api/invoices", headers=staff_headers, json=invoice_payload(reservation.id))

        assert resp.status_code == 201
        assert resp.get_json()["id"] == "INV-008"

    def test_collision_skips_taken_number(self, client, staff_headers):
        reservation = make_reservation()
        first = client.post("/api/invoices", headers=staff_headers, json=invoice_payload(reservation.id))
        assert first.get_json()["id"] == "INV-001"
        insert_raw_invoice("INV-002", reservation.id)

        resp = client.post("/api/invoices", headers=staff_headers, json=invoice_payload(reservation.id))

        assert resp.status_code == 201
        assert resp.get_json()["id"] == "INV-003"
        sequence = db.session.query(DocumentSequence).filter_by(document_type="INVOICE").one()
        assert sequence.next_number == 4

    def test_deleted_numbers_are_not_reused(self, client, staff_headers):
        reservation = make_reservation()
        for _ in range(2):
            client.post("/api/invoices", headers=staff_headers, json=invoice_payload(reservation.id))
        client.delete("/api/invoices/INV-002", headers=staff_headers)

        resp = client.post("/api/invoices", headers=staff_headers, json=invoice_payload(reservation.id))

        assert resp.get_json()["id"] == "INV-003"

    def test_exhausted_retries_conflict(self, client, staff_headers, monkeypatch):
        reservation = make_reservation()
        insert_raw_invoice("INV-001", reservation.id)
        monkeypatch.setattr(invoice_service, "next_document_number", lambda **kwargs: "INV-001")

        resp = client.post("/api/invoices", headers=staff_headers, json=invoice_payload(reservation.id))

        assert resp.status_code == 409
        assert resp.get_json()["retry"] is True
        assert db.session.query(Invoice).count() == 1
        assert db.session.query(ActivityLogEntry).count() == 0

    def test_document_number_helpers(self):
        from tourops.services.document_service import format_document_number, parse_document_number

        assert format_document_number("INV", 7, 3) == "INV-007"
        assert format_document_number("INV", 1234, 3) == "INV-1234"
        assert parse_document_number("INV-042", "INV") == 42
        assert parse_document_number("INV-4a", "INV") is None
        assert parse_document_number("QUO-001", "INV") is None


class TestInvoiceCrud:

    def test_create_computes_amount_and_notifies(self, client, staff_headers):
        reservation = make_reservation(name="Smith")

        resp = client.post("/api/invoices", headers=staff_headers, json=invoice_payload(reservation.id))

        invoice = db.session.get(Invoice, resp.get_json()["id"])
        assert float(invoice.amount) == 400.0
        assert [item.total for item in invoice.items] == [301, 99]
        assert invoice.status == "draft"
        message = db.session.query(Notification).one().message
        assert message == "New invoice #INV-001 for Smith with amount $400 has been created."

    def test_create_validation(self, client, staff_headers):
        reservation = make_reservation()

        no_items = client.post("/api/invoices", headers=staff_headers, json=invoice_payload(reservation.id, items=[]))
        bad_qty = client.post("/api/invoices", headers=staff_headers, json=invoice_payload(
            reservation.id, items=[{"description": "x", "quantity": 0, "price": 1}],
        ))
        bad_status = client.post("/api/invoices", headers=staff_headers, json=invoice_payload(reservation.id, status="void"))
        unknown_client = client.post("/api/invoices", headers=staff_headers, json=invoice_payload(999))

        assert [r.status_code for r in (no_items, bad_qty, bad_status, unknown_client)] == [400, 400, 400, 404]
        assert db.session.query(DocumentSequence).count() == 0

    def test_non_string_item_description(self, client, staff_headers):
        reservation = make_reservation()

        resp = client.post("/api/invoices", headers=staff_headers, json=invoice_payload(
            reservation.id, items=[{"description": 5, "quantity": 1, "price": 10}],
        ))

        assert resp.status_code == 400
        assert resp.get_json()["error"] == "items[0].description must be a string"
        assert db.session.query(Invoice).count() == 0

    def test_get_includes_items(self, client, staff_headers):
        reservation = make_reservation()
        client.post("/api/invoices", headers=staff_headers, json=invoice_payload(reservation.id))

        body = client.get("/api/invoices/INV-001", headers=staff_headers).get_json()

        assert body["clientName"] == "Smith"
        assert [item["description"] for item in body["items"]] == ["Safari day", "Park fees"]

    def test_update_replaces_items(self, client, staff_headers):
        reservation = make_reservation()
        client.post("/api/invoices", headers=staff_headers, json=invoice_payload(reservation.id))

        resp = client.put("/api/invoices/INV-001", headers=staff_headers, json={
            "items": [{"description": "Transfer", "quantity": 3, "price": 20}],
        })

        assert resp.status_code == 200
        body = resp.get_json()["invoice"]
        assert body["amount"] == 60.0
        assert [item["description"] for item in body["items"]] == ["Transfer"]

    def test_status_change_notifies_once(self, client, staff_headers):
        reservation = make_reservation()
        client.post("/api/invoices", headers=staff_headers, json=invoice_payload(reservation.id))

        client.put("/api/invoices/INV-001", headers=staff_headers, json={"status": "pending"})
        client.put("/api/invoices/INV-001", headers=staff_headers, json={"status": "pending"})

        kinds = [n.type for n in db.session.query(Notification).order_by(Notification.id)]
        assert kinds == ["INVOICE_CREATED", "INVOICE_STATUS_CHANGED"]

    def test_list_filters(self, client, staff_headers):
        smith = make_reservation(name="Smith")
        jones = make_reservation(name="Jones")
        make_invoice("INV-001", smith.id, status="paid")
        make_invoice("INV-002", jones.id, status="pending")

        paid = client.get("/api/invoices?status=paid", headers=staff_headers).get_json()
        for_jones = client.get(f"/api/invoices?clientId={jones.id}", headers=staff_headers).get_json()

        assert [i["id"] for i in paid] == ["INV-001"]
        assert [i["id"] for i in for_jones] == ["INV-002"]

    def test_delete(self, client, staff_headers):
        reservation = make_reservation()
        make_invoice("INV-001", reservation.id)

        resp = client.delete("/api/invoices/INV-001", headers=staff_headers)

        assert resp.status_code == 200
        assert db.session.query(Invoice).count() == 0
        entry = db.session.query(ActivityLogEntry).one()
        assert (entry.action_type, entry.entity_type, entry.entity_id) == ("DELETE", "INVOICE", "INV-001")

    def test_unknown_invoice(self, client, staff_headers):
        assert client.get("/api/invoices/INV-999", headers=staff_headers).status_code == 404
