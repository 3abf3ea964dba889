# Overview: Invoices with line items; numbering through the atomic document sequence.

"""
Invoice numbers (INV-001, INV-002, ...) come from the INVOICE document
sequence, not from reading the highest existing number. An insert can still
collide with an invoice created outside the sequence (legacy import, manual
fix-up): the transaction is rolled back, the sequence moved past the taken
number and the insert retried a bounded number of times. Exhausting the
retries is a ConflictError (409, retry: true). Header and items always
commit together.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Invoice, InvoiceItem, ReservationSubmission
from ..models.invoices import INVOICE_STATUSES
from ..validation import parse_choice, parse_date_field, parse_decimal, parse_int, parse_text, require_fields
from .concurrency import locked_get
from .document_service import (
    advance_document_sequence,
    max_issued_number,
    next_document_number,
    parse_document_number,
)
from .notification_service import notify_safely

logger = logging.getLogger(__name__)

INVOICE_DOCUMENT_TYPE = "INVOICE"
INVOICE_PREFIX = "INV"
INVOICE_NUMBER_PAD = 3
MAX_INSERT_ATTEMPTS = 3

CENT = Decimal("0.01")


def get_invoice(invoice_id: str) -> Invoice:
    invoice = db.session.get(Invoice, invoice_id)
    if not invoice:
        raise NotFoundError("Invoice not found")
    return invoice


def list_invoices(status: Optional[str] = None, client_id: Optional[int] = None) -> list[Invoice]:
    query = db.session.query(Invoice)
    if status:
        query = query.filter(Invoice.status == parse_choice(status, "status", INVOICE_STATUSES))
    if client_id is not None:
        query = query.filter(Invoice.client_id == client_id)
    return query.order_by(Invoice.created_at.desc(), Invoice.id.desc()).all()


def _highest_issued_number() -> int:
    return max_issued_number(Invoice.id, INVOICE_PREFIX)


def _parse_items(raw_items) -> list[dict]:
    if not isinstance(raw_items, list) or not raw_items:
        raise ValidationError("items must be a non-empty list", fields=["items"])

    items = []
    for index, raw in enumerate(raw_items):
        if not isinstance(raw, dict):
            raise ValidationError(f"items[{index}] must be an object")
        description = parse_text(raw.get("description"), f"items[{index}].description")
        quantity = parse_int(raw.get("quantity", 1), f"items[{index}].quantity", minimum=1)
        price = parse_decimal(raw.get("price"), f"items[{index}].price")
        if price < 0:
            raise ValidationError(f"items[{index}].price must be >= 0")
        price = price.quantize(CENT)
        items.append({
            "description": description,
            "quantity": quantity,
            "price": price,
            "total": (price * quantity).quantize(CENT),
        })
    return items


def _require_client(value) -> ReservationSubmission:
    client_id = parse_int(value, "clientId", minimum=1)
    client = db.session.get(ReservationSubmission, client_id)
    if not client:
        raise NotFoundError("Client not found")
    return client


def _date_iso(value, field: str) -> str:
    return parse_date_field(value, field).isoformat()


def create_invoice(payload: dict) -> Invoice:
    """clientId, date, dueDate and at least one item are required."""
    require_fields(payload, "clientId", "date", "dueDate")
    items = _parse_items(payload.get("items"))
    client = _require_client(payload["clientId"])
    client_id, client_name = client.id, client.name

    fields = {
        "client_id": client_id,
        "amount": sum((item["total"] for item in items), Decimal("0")),
        "invoice_date": _date_iso(payload["date"], "date"),
        "due_date": _date_iso(payload["dueDate"], "dueDate"),
        "status": parse_choice(payload.get("status") or "draft", "status", INVOICE_STATUSES),
        "notes": payload.get("notes") or None,
    }
    # Number allocation must start a clean transaction.
    db.session.rollback()

    for attempt in range(1, MAX_INSERT_ATTEMPTS + 1):
        invoice_id = next_document_number(
            document_type=INVOICE_DOCUMENT_TYPE,
            prefix=INVOICE_PREFIX,
            pad=INVOICE_NUMBER_PAD,
            seed=_highest_issued_number,
        )
        invoice = Invoice(id=invoice_id, items=[InvoiceItem(**item) for item in items], **fields)
        db.session.add(invoice)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            logger.warning("Invoice number %s already taken (attempt %s)", invoice_id, attempt)
            taken = parse_document_number(invoice_id, INVOICE_PREFIX) or 0
            advance_document_sequence(
                document_type=INVOICE_DOCUMENT_TYPE,
                floor=max(taken, _highest_issued_number()),
            )
            continue

        notify_safely(
            "INVOICE_CREATED",
            {"invoice_id": invoice_id, "client_name": client_name, "amount": fields["amount"]},
            client_id=client_id,
        )
        return invoice

    raise ConflictError("Could not allocate a unique invoice number, please retry")


def update_invoice(invoice_id: str, payload: dict) -> Invoice:
    """
    Partial update. Sending `items` replaces every line and recomputes the
    amount. A status change raises one INVOICE_STATUS_CHANGED notification.
    """
    if not payload:
        raise ValidationError("No fields to update")

    invoice = locked_get(Invoice, invoice_id)
    if not invoice:
        raise NotFoundError("Invoice not found")
    old_status = invoice.status

    if "clientId" in payload:
        invoice.client_id = _require_client(payload["clientId"]).id
    if "date" in payload:
        invoice.invoice_date = _date_iso(payload["date"], "date")
    if "dueDate" in payload:
        invoice.due_date = _date_iso(payload["dueDate"], "dueDate")
    if "notes" in payload:
        invoice.notes = payload["notes"] or None
    if "status" in payload:
        invoice.status = parse_choice(payload["status"], "status", INVOICE_STATUSES)
    if "items" in payload:
        items = _parse_items(payload["items"])
        invoice.items = [InvoiceItem(**item) for item in items]
        invoice.amount = sum((item["total"] for item in items), Decimal("0"))

    db.session.commit()

    if invoice.status != old_status:
        notify_safely(
            "INVOICE_STATUS_CHANGED",
            {
                "invoice_id": invoice.id,
                "client_name": invoice.client.name if invoice.client else "",
                "new_status": invoice.status,
            },
            client_id=invoice.client_id,
        )
    return invoice


def delete_invoice(invoice_id: str) -> dict:
    """Delete an invoice and its items. Returns its last state."""
    invoice = get_invoice(invoice_id)
    snapshot = invoice.to_dict(include_items=True)
    db.session.delete(invoice)
    db.session.commit()
    return snapshot
