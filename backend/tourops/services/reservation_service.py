# Overview: Client (reservation submission) pipeline: CRUD, status transitions and dashboard figures.

from __future__ import annotations

from datetime import date, timedelta
from typing import Optional

from sqlalchemy import case, func, or_

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Invoice, Note, ReservationSubmission, Task
from ..models.reservations import ACTIVE_RESERVATION_STATUSES, RESERVATION_STATUSES
from ..time_utils import parse_iso_date
from ..validation import parse_choice, parse_date_field, parse_int, parse_text, require_fields
from .concurrency import locked_get
from .notification_service import notify_safely

# Request key -> column. Dates and counts are validated separately.
TEXT_FIELDS = {
    "name": "name",
    "email": "email",
    "phone": "phone",
    "location": "location",
    "passport": "passport",
    "tourName": "tour_name",
    "flightDetails": "flight_details",
    "partnerDetails": "partner_details",
    "specialRequirements": "special_requirements",
    "nextOfKin": "next_of_kin",
    "nextOfKinEmail": "next_of_kin_email",
    "additionalInfo": "additional_info",
}
DATE_FIELDS = {"arrivalDate": "arrival_date", "departureDate": "departure_date"}
COUNT_FIELDS = {"adults": "adults", "children": "children"}

UPCOMING_ARRIVALS_DAYS = 7
UPCOMING_ARRIVALS_LIMIT = 3


def get_client(client_id: int) -> ReservationSubmission:
    client = db.session.get(ReservationSubmission, client_id)
    if not client:
        raise NotFoundError("Client not found")
    return client


def list_clients(status: Optional[str] = None, search: Optional[str] = None) -> list[ReservationSubmission]:
    """Clients with both travel dates set, newest submission first."""
    query = db.session.query(ReservationSubmission).filter(
        ReservationSubmission.arrival_date.isnot(None),
        ReservationSubmission.arrival_date != "",
        ReservationSubmission.departure_date.isnot(None),
        ReservationSubmission.departure_date != "",
    )
    if status:
        query = query.filter(
            ReservationSubmission.status == parse_choice(status, "status", RESERVATION_STATUSES)
        )
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(
            or_(ReservationSubmission.name.like(pattern), ReservationSubmission.email.like(pattern))
        )
    return query.order_by(ReservationSubmission.submission_date.desc(), ReservationSubmission.id.desc()).all()


def _stored_date(value) -> Optional[date]:
    try:
        return parse_iso_date(value)
    except (TypeError, ValueError):
        return None


def _apply_fields(client: ReservationSubmission, payload: dict) -> None:
    for key, column in TEXT_FIELDS.items():
        if key in payload:
            value = payload[key]
            setattr(client, column, parse_text(value, key, required=False))
    for key, column in DATE_FIELDS.items():
        if key in payload:
            setattr(client, column, parse_date_field(payload[key], key).isoformat())
    for key, column in COUNT_FIELDS.items():
        if key in payload:
            setattr(client, column, parse_int(payload[key], key, minimum=0) if payload[key] is not None else 0)
    if "processed" in payload:
        client.processed = bool(payload["processed"])

    if not client.name:
        raise ValidationError("Missing required field(s): name", fields=["name"])

    arrival = _stored_date(client.arrival_date)
    departure = _stored_date(client.departure_date)
    if arrival and departure and departure < arrival:
        raise ValidationError("departureDate must be on or after arrivalDate")


def create_client(payload: dict) -> ReservationSubmission:
    """
    Register a client. name, arrivalDate and departureDate are required;
    status defaults to planning.
    """
    require_fields(payload, "name", "arrivalDate", "departureDate")

    client = ReservationSubmission(status="planning", processed=False, adults=0, children=0)
    _apply_fields(client, payload)
    if payload.get("status"):
        client.status = parse_choice(payload["status"], "status", RESERVATION_STATUSES)

    db.session.add(client)
    db.session.commit()

    notify_safely("CLIENT_CREATED", {"name": client.name}, client_id=client.id)
    return client


def update_client(client_id: int, payload: dict) -> ReservationSubmission:
    """
    Partial update. A status change raises exactly one CLIENT_STATUS_CHANGED
    notification; re-sending the current status raises none.
    """
    if not payload:
        raise ValidationError("No fields to update")

    client = locked_get(ReservationSubmission, client_id)
    if not client:
        raise NotFoundError("Client not found")
    old_status = client.status

    _apply_fields(client, payload)
    if "status" in payload:
        client.status = parse_choice(payload["status"], "status", RESERVATION_STATUSES)

    db.session.commit()

    if client.status != old_status:
        notify_safely(
            "CLIENT_STATUS_CHANGED",
            {"name": client.name, "old_status": old_status, "new_status": client.status},
            client_id=client.id,
        )
    return client


def delete_client(client_id: int) -> dict:
    """
    Delete a client. Linked tasks and notes are kept and unlinked; a client
    with invoices cannot be deleted.
    """
    client = get_client(client_id)

    has_invoices = db.session.query(Invoice.id).filter(Invoice.client_id == client.id).first()
    if has_invoices:
        raise ConflictError("Client has invoices and cannot be deleted", retry=False)

    db.session.query(Task).filter(Task.client_id == client.id).update(
        {Task.client_id: None}, synchronize_session=False
    )
    db.session.query(Note).filter(Note.client_id == client.id).update(
        {Note.client_id: None}, synchronize_session=False
    )
    snapshot = client.to_dict()
    db.session.delete(client)
    db.session.commit()

    notify_safely("CLIENT_DELETED", {"name": snapshot["name"]})
    return snapshot


def pipeline_stats() -> dict:
    """Client counts per pipeline stage."""
    counts = {
        status: func.coalesce(func.sum(case((ReservationSubmission.status == status, 1), else_=0)), 0)
        for status in ("planning", "confirmed", "booked", "completed")
    }
    row = db.session.query(
        func.count(ReservationSubmission.id),
        *counts.values(),
    ).one()
    stats = {"totalClients": int(row[0] or 0)}
    for index, status in enumerate(counts, start=1):
        stats[status] = int(row[index] or 0)
    return stats


def upcoming_arrivals(today: date, days: int = UPCOMING_ARRIVALS_DAYS, limit: int = UPCOMING_ARRIVALS_LIMIT) -> list[dict]:
    """Confirmed/booked arrivals between today and today + days, soonest first."""
    end = today + timedelta(days=days)
    arrival_prefix = func.substr(ReservationSubmission.arrival_date, 1, 10)
    clients = (
        db.session.query(ReservationSubmission)
        .filter(
            ReservationSubmission.status.in_(ACTIVE_RESERVATION_STATUSES),
            arrival_prefix.between(today.isoformat(), end.isoformat()),
        )
        .order_by(arrival_prefix.asc(), ReservationSubmission.id.asc())
        .limit(limit)
        .all()
    )
    return [
        {
            "id": client.id,
            "name": client.name,
            "arrivalDate": client.arrival_date[:10],
            "totalGuests": client.total_guests,
            "status": client.status,
        }
        for client in clients
    ]
