from __future__ import annotations

from sqlalchemy import event

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


ACTION_TYPES = ("CREATE", "UPDATE", "DELETE")


class ActivityLogEntry(db.Model):
    """
    Audit trail of user mutations.

    IMMUTABLE: Append-only. ORM updates are rejected below; bulk deletes are
    only issued by the retention cleanup command.
    """
    __tablename__ = "activity_logs"
    __table_args__ = (
        db.Index("ix_activity_logs_created", "created_at"),
        db.Index("ix_activity_logs_entity", "entity_type", "entity_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    action_type = db.Column(db.String(16), nullable=False)
    action_description = db.Column(db.Text, nullable=False)
    entity_type = db.Column(db.String(32), nullable=False)
    # String so invoice numbers and integer ids share the column.
    entity_id = db.Column(db.String(64), nullable=True)

    ip_address = db.Column(db.String(45), nullable=True)
    user_agent = db.Column(db.String(512), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    user = db.relationship("User", backref=db.backref("activity_logs", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "actionType": self.action_type,
            "actionDescription": self.action_description,
            "entityType": self.entity_type,
            "entityId": self.entity_id,
            "ipAddress": self.ip_address,
            "userAgent": self.user_agent,
            "createdAt": to_utc_z(self.created_at),
        }


@event.listens_for(ActivityLogEntry, "before_update")
def _reject_activity_update(mapper, connection, target):
    raise ValueError("Activity log entries are append-only")


class LoginLogEntry(db.Model):
    """One row per successful login."""
    __tablename__ = "login_logs"
    __table_args__ = (
        db.Index("ix_login_logs_login_time", "login_time"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    ip_address = db.Column(db.String(45), nullable=True)
    user_agent = db.Column(db.String(512), nullable=True)
    login_time = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    user = db.relationship("User", backref=db.backref("login_logs", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "ipAddress": self.ip_address,
            "userAgent": self.user_agent,
            "loginTime": to_utc_z(self.login_time),
        }
