from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


NOTIFICATION_TYPES = (
    "CLIENT_CREATED",
    "CLIENT_STATUS_CHANGED",
    "CLIENT_DELETED",
    "INVOICE_CREATED",
    "INVOICE_STATUS_CHANGED",
    "INVOICE_DUE_SOON",
    "TASK_CREATED",
    "TASK_DUE_SOON",
    "TASK_COMPLETED",
    "ARRIVAL_SOON",
    "DEPARTURE_SOON",
)


class Notification(db.Model):
    """
    In-app notification.

    Content (type, title, message) never changes after insert; only the read
    flag toggles.
    """
    __tablename__ = "notifications"
    __table_args__ = (
        db.Index("ix_notifications_created", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    type = db.Column(db.String(32), nullable=False, index=True)
    title = db.Column(db.String(255), nullable=False)
    message = db.Column(db.Text, nullable=False)

    # Not a foreign key: notifications outlive the client they mention.
    client_id = db.Column(db.Integer, nullable=True, index=True)

    read = db.Column(db.Boolean, nullable=False, default=False, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self, client_name: str | None = None) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "title": self.title,
            "message": self.message,
            "clientId": self.client_id,
            "clientName": client_name,
            "read": bool(self.read),
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }


class NotificationWatermark(db.Model):
    """
    Records which target date an upcoming-event notification was raised for.

    One row per (kind, entity). The scanner only notifies when the entity's
    current target date differs from the recorded one, so re-running it is a
    no-op and rescheduling notifies again.
    """
    __tablename__ = "notification_watermarks"
    __table_args__ = (
        db.UniqueConstraint("kind", "entity_type", "entity_id", name="uq_notification_watermarks_entity"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    kind = db.Column(db.String(32), nullable=False)
    entity_type = db.Column(db.String(32), nullable=False)
    entity_id = db.Column(db.String(64), nullable=False)
    target_date = db.Column(db.String(10), nullable=False)
    last_notified_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "kind": self.kind,
            "entityType": self.entity_type,
            "entityId": self.entity_id,
            "targetDate": self.target_date,
            "lastNotifiedAt": to_utc_z(self.last_notified_at),
        }
