from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


INVOICE_STATUSES = ("draft", "pending", "paid", "overdue", "partially_paid", "deposit_paid")


class Invoice(db.Model):
    """
    Client invoice. The primary key is the human-facing number (INV-001).

    amount is always the sum of the items' totals; invoice_service keeps the
    two in step inside one transaction.
    """
    __tablename__ = "invoices"

    id = db.Column(db.String(32), primary_key=True)
    client_id = db.Column(db.Integer, db.ForeignKey("reservation_submissions.id"), nullable=False, index=True)
    amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    invoice_date = db.Column(db.String(32), nullable=False)
    due_date = db.Column(db.String(32), nullable=False, index=True)
    status = db.Column(db.String(32), nullable=False, default="draft", index=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    client = db.relationship("ReservationSubmission", backref=db.backref("invoices", lazy=True))
    items = db.relationship(
        "InvoiceItem",
        backref="invoice",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="InvoiceItem.id",
    )

    def to_dict(self, include_items: bool = False) -> dict:
        data = {
            "id": self.id,
            "clientId": self.client_id,
            "clientName": self.client.name if self.client else None,
            "amount": float(self.amount or 0),
            "date": self.invoice_date,
            "dueDate": self.due_date,
            "status": self.status,
            "notes": self.notes,
            "createdAt": to_utc_z(self.created_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class InvoiceItem(db.Model):
    __tablename__ = "invoice_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    invoice_id = db.Column(
        db.String(32),
        db.ForeignKey("invoices.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    description = db.Column(db.String(512), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=1)
    price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    total = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "invoiceId": self.invoice_id,
            "description": self.description,
            "quantity": self.quantity,
            "price": float(self.price or 0),
            "total": float(self.total or 0),
        }


class DocumentSequence(db.Model):
    """
    Atomic per-type document sequences.

    WHY: Prevent race conditions when generating invoice numbers.
    """
    __tablename__ = "document_sequences"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    document_type = db.Column(db.String(32), nullable=False, unique=True, index=True)
    next_number = db.Column(db.Integer, nullable=False, default=1)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "documentType": self.document_type,
            "nextNumber": self.next_number,
            "updatedAt": to_utc_z(self.updated_at),
        }
