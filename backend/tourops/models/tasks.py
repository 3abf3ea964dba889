from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


TASK_PRIORITIES = ("high", "medium", "low")
TASK_STATUSES = ("pending", "completed")


class Task(db.Model):
    """Back-office to-do item, optionally linked to a client."""
    __tablename__ = "tasks"
    __table_args__ = (
        db.Index("ix_tasks_due_date", "due_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    due_date = db.Column(db.String(32), nullable=False)
    priority = db.Column(db.String(16), nullable=False, default="medium")
    status = db.Column(db.String(16), nullable=False, default="pending", index=True)

    client_id = db.Column(
        db.Integer,
        db.ForeignKey("reservation_submissions.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    client = db.relationship("ReservationSubmission", backref=db.backref("tasks", lazy=True, passive_deletes=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "dueDate": self.due_date,
            "priority": self.priority,
            "status": self.status,
            "clientId": self.client_id,
            "clientName": self.client.name if self.client else None,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }
