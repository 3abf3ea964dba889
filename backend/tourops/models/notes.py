from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class Note(db.Model):
    """Free-form CRM note, optionally about a client. Tags are owned by the note."""
    __tablename__ = "notes"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    content = db.Column(db.Text, nullable=False)
    client_id = db.Column(
        db.Integer,
        db.ForeignKey("reservation_submissions.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=True, onupdate=utcnow)

    client = db.relationship("ReservationSubmission", backref=db.backref("notes", lazy=True, passive_deletes=True))
    tags = db.relationship(
        "NoteTag",
        backref="note",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="NoteTag.id",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "clientId": self.client_id,
            "clientName": self.client.name if self.client else None,
            "date": self.created_at.date().isoformat() if self.created_at else None,
            "tags": [tag.tag_name for tag in self.tags],
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }


class NoteTag(db.Model):
    __tablename__ = "note_tags"
    __table_args__ = (
        db.UniqueConstraint("note_id", "tag_name", name="uq_note_tags_note_tag"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    note_id = db.Column(db.Integer, db.ForeignKey("notes.id", ondelete="CASCADE"), nullable=False, index=True)
    tag_name = db.Column(db.String(64), nullable=False, index=True)
