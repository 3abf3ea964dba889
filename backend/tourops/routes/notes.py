# Overview: Flask API routes for client notes and their tags.

from flask import Blueprint, jsonify, request

from ..decorators import handle_errors, require_auth
from ..request_context import audit, json_body
from ..services import note_service
from ..validation import parse_optional_int


notes_bp = Blueprint("notes", __name__, url_prefix="/api/notes")


@notes_bp.get("")
@handle_errors("fetch notes")
@require_auth
def list_notes_route():
    notes = note_service.list_notes(
        client_id=parse_optional_int(request.args.get("clientId"), "clientId", minimum=1),
        tag=request.args.get("tag"),
    )
    return jsonify([note.to_dict() for note in notes])


@notes_bp.post("")
@handle_errors("create note")
@require_auth
def create_note_route():
    note = note_service.create_note(json_body())
    audit("CREATE", f"Created note: {note.title}", "NOTE", note.id)
    return jsonify({"success": True, "id": note.id, "note": note.to_dict()}), 201


@notes_bp.get("/<int:note_id>")
@handle_errors("fetch note")
@require_auth
def get_note_route(note_id: int):
    return jsonify(note_service.get_note(note_id).to_dict())


@notes_bp.put("/<int:note_id>")
@handle_errors("update note")
@require_auth
def update_note_route(note_id: int):
    note = note_service.update_note(note_id, json_body())
    audit("UPDATE", f"Updated note: {note.title}", "NOTE", note.id)
    return jsonify({"success": True, "note": note.to_dict()})


@notes_bp.delete("/<int:note_id>")
@handle_errors("delete note")
@require_auth
def delete_note_route(note_id: int):
    deleted = note_service.delete_note(note_id)
    audit("DELETE", f"Deleted note: {deleted['title']}", "NOTE", note_id)
    return jsonify({"success": True})
