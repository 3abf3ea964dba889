# Overview: Flask API routes for the calendar; derived events and event-shaped edits of clients and tasks.

from flask import Blueprint, jsonify, request

from ..decorators import handle_errors, require_auth
from ..errors import ValidationError
from ..request_context import audit, json_body
from ..services import calendar_service, reservation_service, task_service
from ..time_utils import today
from ..validation import parse_date_field, parse_int, parse_text


calendar_bp = Blueprint("calendar", __name__, url_prefix="/api/calendar")

RESERVATION_EVENT_TYPES = ("arrival", "departure")


def _window_from_args():
    start_raw = request.args.get("startDate")
    end_raw = request.args.get("endDate")
    if start_raw or end_raw:
        if not (start_raw and end_raw):
            raise ValidationError("startDate and endDate must be given together")
        return parse_date_field(start_raw, "startDate"), parse_date_field(end_raw, "endDate")

    months_ahead = parse_int(request.args.get("monthsAhead", "1"), "monthsAhead", minimum=0)
    months_behind = parse_int(request.args.get("monthsBehind", "0"), "monthsBehind", minimum=0)
    return calendar_service.default_window(today(), months_ahead, months_behind)


def _types_from_args():
    raw = request.args.get("types")
    return raw.split(",") if raw else None


def _event_type(data: dict) -> str:
    raw = data.get("type")
    if raw in (None, ""):
        raw = request.args.get("type")
    event_type = (parse_text(raw, "type", required=False) or "").lower()
    if event_type not in calendar_service.EVENT_TYPES:
        raise ValidationError(f"type must be one of: {', '.join(calendar_service.EVENT_TYPES)}")
    return event_type


def _client_payload(event_type: str, data: dict) -> dict:
    """Map an arrival/departure event body onto client fields."""
    payload = {}
    for key in ("name", "status", "adults", "children", "email", "phone", "tourName"):
        if key in data:
            payload[key] = data[key]
    if "guests" in data and "adults" not in data:
        payload["adults"] = data["guests"]
    for key in ("arrivalDate", "departureDate"):
        if key in data:
            payload[key] = data[key]
    if "date" in data:
        payload["arrivalDate" if event_type == "arrival" else "departureDate"] = data["date"]
    return payload


def _task_payload(data: dict) -> dict:
    payload = {
        key: data[key]
        for key in ("title", "description", "dueDate", "priority", "status", "clientId")
        if key in data
    }
    if "date" in data:
        payload["dueDate"] = data["date"]
    return payload


@calendar_bp.get("")
@handle_errors("fetch calendar events")
@require_auth
def list_events():
    """
    Events in a date window, ascending by date.

    Query: startDate & endDate (together), or monthsAhead (default 1) and
    monthsBehind (default 0) around the current month; types=arrival,departure,task.
    """
    start_date, end_date = _window_from_args()
    events = calendar_service.list_events(start_date, end_date, _types_from_args())
    return jsonify([event.to_dict() for event in events])


@calendar_bp.get("/day")
@handle_errors("fetch day events")
@require_auth
def day_events():
    day = parse_date_field(request.args.get("date"), "date")
    return jsonify([event.to_dict() for event in calendar_service.list_events_for_day(day)])


@calendar_bp.post("/events")
@handle_errors("create event")
@require_auth
def create_event():
    data = json_body()
    event_type = _event_type(data)

    if event_type in RESERVATION_EVENT_TYPES:
        payload = _client_payload(event_type, data)
        payload.setdefault("adults", 1)
        client = reservation_service.create_client(payload)
        audit("CREATE", f"Created {event_type} event: {client.name}", "CLIENT", client.id)
        source_id = client.id
    else:
        payload = _task_payload(data)
        payload.setdefault("priority", "medium")
        task = task_service.create_task(payload)
        audit("CREATE", f"Created task event: {task.title}", "TASK", task.id)
        source_id = task.id

    return jsonify({
        "success": True,
        "id": source_id,
        "eventId": calendar_service.event_id(source_id, event_type),
        "key": calendar_service.event_key(source_id, event_type),
    }), 201


@calendar_bp.put("/events/<int:source_id>")
@handle_errors("update event")
@require_auth
def update_event(source_id: int):
    """`source_id` is the client or task id; `type` says which."""
    data = json_body()
    event_type = _event_type(data)

    if event_type in RESERVATION_EVENT_TYPES:
        client = reservation_service.update_client(source_id, _client_payload(event_type, data))
        audit("UPDATE", f"Updated {event_type} event: {client.name}", "CLIENT", client.id)
    else:
        task = task_service.update_task(source_id, _task_payload(data))
        audit("UPDATE", f"Updated task event: {task.title}", "TASK", task.id)

    return jsonify({"success": True})


@calendar_bp.delete("/events/<int:source_id>")
@handle_errors("delete event")
@require_auth
def delete_event(source_id: int):
    data = json_body()
    event_type = _event_type(data)

    if event_type in RESERVATION_EVENT_TYPES:
        deleted = reservation_service.delete_client(source_id)
        audit("DELETE", f"Deleted {event_type} event: {deleted['name']}", "CLIENT", source_id)
    else:
        deleted = task_service.delete_task(source_id)
        audit("DELETE", f"Deleted task event: {deleted['title']}", "TASK", source_id)

    return jsonify({"success": True})
