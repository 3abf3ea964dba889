# Overview: Derives calendar events (arrivals, departures, task due dates) from reservations and tasks.

"""
Event Synthesizer

Calendar events are never stored. Each reservation yields an arrival and a
departure event, each task a due-date event. Event ids are integers the UI
can key on:

    id = source_id * 100 + slot        slot: arrival 0, departure 1, task 2

Every source id maps to three different residues mod 100, so ids of
different event types never collide. `key` ("arrival:42") carries the same
identity as a string. Source ids beyond (2**53 - 1) // 100 would overflow a
JavaScript number once multiplied; such rows are skipped and logged.

Stored dates are strings and legacy rows hold garbage. A date that doesn't
parse drops that one event (with a warning), never the whole listing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from sqlalchemy import case, func, or_

from ..errors import ValidationError
from ..extensions import db
from ..models import ReservationSubmission, Task
from ..models.tasks import TASK_PRIORITIES
from ..time_utils import add_months, month_bounds, parse_iso_date

logger = logging.getLogger(__name__)


EVENT_TYPES = ("arrival", "departure", "task")
EVENT_SLOTS = {"arrival": 0, "departure": 1, "task": 2}
ID_STRIDE = 100
MAX_SOURCE_ID = (2 ** 53 - 1) // ID_STRIDE


@dataclass(frozen=True)
class CalendarEvent:
    id: int
    key: str
    title: str
    date: date
    type: str
    status: str
    details: str
    client_id: Optional[int]
    client_name: Optional[str]
    total_guests: Optional[int] = None
    priority: Optional[str] = None

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "key": self.key,
            "title": self.title,
            "date": self.date.isoformat(),
            "type": self.type,
            "status": self.status,
            "details": self.details,
            "clientId": self.client_id,
            "clientName": self.client_name,
            "totalGuests": self.total_guests,
        }
        if self.type == "task":
            data["priority"] = self.priority
        return data


def event_id(source_id: int, event_type: str) -> int:
    """Synthesized integer id. Raises ValueError outside the safe id range."""
    if source_id < 0 or source_id > MAX_SOURCE_ID:
        raise ValueError(f"source id {source_id} outside calendar id range")
    return source_id * ID_STRIDE + EVENT_SLOTS[event_type]


def event_key(source_id: int, event_type: str) -> str:
    return f"{event_type}:{source_id}"


def split_event_id(calendar_id: int) -> tuple[int, str]:
    """Inverse of event_id(): (source_id, event_type)."""
    source_id, slot = divmod(calendar_id, ID_STRIDE)
    for event_type, event_slot in EVENT_SLOTS.items():
        if event_slot == slot:
            return source_id, event_type
    raise ValueError(f"{calendar_id} is not a calendar event id")


def guest_label(count: int) -> str:
    return f"{count} guest" if count == 1 else f"{count} guests"


def normalize_types(types: Optional[Iterable[str]]) -> tuple[str, ...]:
    """
    Validate requested event types, preserving canonical order.

    None or empty means all types.
    """
    if not types:
        return EVENT_TYPES
    requested = {t.strip().lower() for t in types if t and t.strip()}
    if not requested:
        return EVENT_TYPES
    unknown = sorted(requested - set(EVENT_TYPES))
    if unknown:
        raise ValidationError(
            f"Unknown event type(s): {', '.join(unknown)}. Expected: {', '.join(EVENT_TYPES)}"
        )
    return tuple(t for t in EVENT_TYPES if t in requested)


def default_window(today: date, months_ahead: int = 1, months_behind: int = 0) -> tuple[date, date]:
    """First day of the month `months_behind` back through the last day `months_ahead` forward."""
    start, _ = month_bounds(add_months(today, -months_behind))
    _, end = month_bounds(add_months(today, months_ahead))
    return start, end


def _date_prefix(column):
    return func.substr(column, 1, 10)


def _parse_event_date(value, event_type: str, source_id: int) -> Optional[date]:
    try:
        parsed = parse_iso_date(value)
    except (TypeError, ValueError):
        parsed = None
    if parsed is None:
        logger.warning("Skipping %s event for id %s: unparseable date %r", event_type, source_id, value)
    return parsed


def _in_id_range(source_id: int, kind: str) -> bool:
    if 0 <= source_id <= MAX_SOURCE_ID:
        return True
    logger.warning("Skipping %s %s: id exceeds calendar id range", kind, source_id)
    return False


def _reservation_event(reservation: ReservationSubmission, event_type: str, when: date) -> CalendarEvent:
    guests = reservation.total_guests
    suffix = "Arrival" if event_type == "arrival" else "Departure"
    return CalendarEvent(
        id=event_id(reservation.id, event_type),
        key=event_key(reservation.id, event_type),
        title=f"{reservation.name} {suffix}",
        date=when,
        type=event_type,
        status=reservation.status,
        details=guest_label(guests),
        client_id=reservation.id,
        client_name=reservation.name,
        total_guests=guests,
    )


def _task_event(task: Task, client_name: Optional[str], when: date) -> CalendarEvent:
    return CalendarEvent(
        id=event_id(task.id, "task"),
        key=event_key(task.id, "task"),
        title=task.title or "",
        date=when,
        type="task",
        status=task.status,
        details=f"Client: {client_name}" if client_name else (task.description or ""),
        client_id=task.client_id,
        client_name=client_name,
        priority=task.priority,
    )


def _reservation_events(reservations, types: tuple[str, ...], on_day: Optional[date] = None) -> list[CalendarEvent]:
    events: list[CalendarEvent] = []
    for reservation in reservations:
        if not _in_id_range(reservation.id, "reservation"):
            continue
        for event_type, raw in (
            ("arrival", reservation.arrival_date),
            ("departure", reservation.departure_date),
        ):
            if event_type not in types:
                continue
            when = _parse_event_date(raw, event_type, reservation.id)
            if when is None or (on_day is not None and when != on_day):
                continue
            events.append(_reservation_event(reservation, event_type, when))
    return events


def _task_events(rows, on_day: Optional[date] = None) -> list[CalendarEvent]:
    events: list[CalendarEvent] = []
    for task, client_name in rows:
        if not _in_id_range(task.id, "task"):
            continue
        when = _parse_event_date(task.due_date, "task", task.id)
        if when is None or (on_day is not None and when != on_day):
            continue
        events.append(_task_event(task, client_name, when))
    return events


def _task_query():
    return (
        db.session.query(Task, ReservationSubmission.name)
        .outerjoin(ReservationSubmission, Task.client_id == ReservationSubmission.id)
    )


def list_events(start_date: date, end_date: date, types: Optional[Iterable[str]] = None) -> list[CalendarEvent]:
    """
    Events dated within [start_date, end_date], ascending by date.

    A reservation matches when either of its dates falls in the window; both
    of its events are then returned. Ties keep fetch order: reservation
    events (by arrival date, id) before task events (by due date, id).
    """
    if start_date > end_date:
        raise ValidationError("startDate must be on or before endDate")
    selected = normalize_types(types)
    start_iso, end_iso = start_date.isoformat(), end_date.isoformat()

    events: list[CalendarEvent] = []

    if "arrival" in selected or "departure" in selected:
        reservations = (
            db.session.query(ReservationSubmission)
            .filter(
                ReservationSubmission.arrival_date.isnot(None),
                ReservationSubmission.arrival_date != "",
                ReservationSubmission.departure_date.isnot(None),
                ReservationSubmission.departure_date != "",
                or_(
                    _date_prefix(ReservationSubmission.arrival_date).between(start_iso, end_iso),
                    _date_prefix(ReservationSubmission.departure_date).between(start_iso, end_iso),
                ),
            )
            .order_by(ReservationSubmission.arrival_date.asc(), ReservationSubmission.id.asc())
            .all()
        )
        events.extend(_reservation_events(reservations, selected))

    if "task" in selected:
        rows = (
            _task_query()
            .filter(_date_prefix(Task.due_date).between(start_iso, end_iso))
            .order_by(Task.due_date.asc(), Task.id.asc())
            .all()
        )
        events.extend(_task_events(rows))

    return sorted(events, key=lambda event: event.date)


def list_events_for_day(day: date) -> list[CalendarEvent]:
    """
    Events on one day: reservation events ordered by guest name, then task
    events ordered by priority (high, medium, low, anything else) and title.
    """
    day_iso = day.isoformat()

    reservations = (
        db.session.query(ReservationSubmission)
        .filter(
            or_(
                _date_prefix(ReservationSubmission.arrival_date) == day_iso,
                _date_prefix(ReservationSubmission.departure_date) == day_iso,
            )
        )
        .order_by(ReservationSubmission.name.asc(), ReservationSubmission.id.asc())
        .all()
    )

    priority_rank = case(
        {priority: rank for rank, priority in enumerate(TASK_PRIORITIES)},
        value=Task.priority,
        else_=len(TASK_PRIORITIES),
    )
    rows = (
        _task_query()
        .filter(_date_prefix(Task.due_date) == day_iso)
        .order_by(priority_rank.asc(), Task.title.asc(), Task.id.asc())
        .all()
    )

    return _reservation_events(reservations, EVENT_TYPES, on_day=day) + _task_events(rows, on_day=day)
