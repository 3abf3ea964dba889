# Overview: CRM notes with tags; note and tags always commit together.

from __future__ import annotations

from typing import Optional

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import Note, NoteTag, ReservationSubmission
from ..validation import parse_optional_int, parse_text, require_fields

MAX_TAG_LENGTH = 64


def get_note(note_id: int) -> Note:
    note = db.session.get(Note, note_id)
    if not note:
        raise NotFoundError("Note not found")
    return note


def list_notes(client_id: Optional[int] = None, tag: Optional[str] = None) -> list[Note]:
    query = db.session.query(Note)
    if client_id is not None:
        query = query.filter(Note.client_id == client_id)
    if tag:
        query = query.filter(Note.tags.any(NoteTag.tag_name == tag.strip()))
    return query.order_by(Note.created_at.desc(), Note.id.desc()).all()


def _parse_tags(raw) -> list[str]:
    """Trimmed, de-duplicated, order preserved."""
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValidationError("tags must be a list of strings")
    tags: list[str] = []
    for value in raw:
        if not isinstance(value, str):
            raise ValidationError("tags must be a list of strings")
        tag = value.strip()
        if not tag:
            continue
        if len(tag) > MAX_TAG_LENGTH:
            raise ValidationError(f"tags must be at most {MAX_TAG_LENGTH} characters")
        if tag not in tags:
            tags.append(tag)
    return tags


def _resolve_client_id(value) -> Optional[int]:
    client_id = parse_optional_int(value, "clientId", minimum=1)
    if client_id is not None and db.session.get(ReservationSubmission, client_id) is None:
        raise NotFoundError("Client not found")
    return client_id


def create_note(payload: dict) -> Note:
    require_fields(payload, "title", "content")
    note = Note(
        title=parse_text(payload["title"], "title"),
        content=parse_text(payload["content"], "content"),
        client_id=_resolve_client_id(payload.get("clientId")),
        tags=[NoteTag(tag_name=tag) for tag in _parse_tags(payload.get("tags"))],
    )
    db.session.add(note)
    db.session.commit()
    return note


def update_note(note_id: int, payload: dict) -> Note:
    """Partial update; `tags` replaces the whole tag set."""
    if not payload:
        raise ValidationError("No fields to update")

    note = get_note(note_id)
    if "title" in payload:
        note.title = parse_text(payload["title"], "title")
    if "content" in payload:
        note.content = parse_text(payload["content"], "content")
    if "clientId" in payload:
        note.client_id = _resolve_client_id(payload["clientId"])
    if "tags" in payload:
        wanted = _parse_tags(payload["tags"])
        existing = {tag.tag_name: tag for tag in note.tags}
        note.tags = [existing.get(name) or NoteTag(tag_name=name) for name in wanted]

    db.session.commit()
    return note


def delete_note(note_id: int) -> dict:
    note = get_note(note_id)
    snapshot = note.to_dict()
    db.session.delete(note)
    db.session.commit()
    return snapshot
