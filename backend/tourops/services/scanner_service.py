# Overview: Upcoming-events scanner; raises "due soon" notifications once per entity and target date.

"""
Upcoming-Events Scanner

Invoked on an external cadence (GET /api/cron/notifications or
`flask notifications scan`). Looks `horizon_days` ahead for:

- arrivals and departures of confirmed/booked reservations
- pending tasks by due date
- pending invoices by due date

Each category runs in its own unit of work: a failure is logged, rolled back
and reported, and the other categories still run and persist.

Re-running is safe. A NotificationWatermark row per (kind, entity) remembers
the target date already notified; the same date is skipped, a rescheduled
date notifies again. Two overlapping runs race on the watermark's unique
constraint and the loser backs off without notifying.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Callable, Iterator, Optional

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from ..errors import ValidationError
from ..extensions import db
from ..models import Invoice, NotificationWatermark, ReservationSubmission, Task
from ..models.reservations import ACTIVE_RESERVATION_STATUSES
from ..time_utils import parse_iso_date, today as utc_today, utcnow
from .notification_service import notify

logger = logging.getLogger(__name__)

DEFAULT_HORIZON_DAYS = 30


@dataclass(frozen=True)
class Candidate:
    kind: str
    entity_type: str
    entity_id: str
    target_date: date
    payload: dict
    client_id: Optional[int] = None


@dataclass
class ScanReport:
    today: date
    horizon_end: date
    notified: dict[str, int] = field(default_factory=dict)
    suppressed: dict[str, int] = field(default_factory=dict)
    failed: list[str] = field(default_factory=list)

    @property
    def status(self) -> str:
        if not self.failed:
            return "success"
        if len(self.failed) >= len(CATEGORY_SCANNERS):
            return "failed"
        return "partial"

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "today": self.today.isoformat(),
            "horizonEnd": self.horizon_end.isoformat(),
            "notified": dict(self.notified),
            "suppressed": dict(self.suppressed),
            "failed": list(self.failed),
        }


def _date_prefix(column):
    return func.substr(column, 1, 10)


def _parse_target(value, label: str, entity_id) -> Optional[date]:
    try:
        parsed = parse_iso_date(value)
    except (TypeError, ValueError):
        parsed = None
    if parsed is None:
        logger.warning("Scanner skipping %s %s: unparseable date %r", label, entity_id, value)
    return parsed


def _reservation_candidates(kind: str, column_name: str, start: date, end: date) -> Iterator[Candidate]:
    column = getattr(ReservationSubmission, column_name)
    reservations = (
        db.session.query(ReservationSubmission)
        .filter(
            ReservationSubmission.status.in_(ACTIVE_RESERVATION_STATUSES),
            _date_prefix(column).between(start.isoformat(), end.isoformat()),
        )
        .order_by(column.asc(), ReservationSubmission.id.asc())
        .all()
    )
    for reservation in reservations:
        target = _parse_target(getattr(reservation, column_name), "reservation", reservation.id)
        if target is None:
            continue
        yield Candidate(
            kind=kind,
            entity_type="reservation",
            entity_id=str(reservation.id),
            target_date=target,
            payload={"name": reservation.name, "days": (target - start).days},
            client_id=reservation.id,
        )


def _arrival_candidates(start: date, end: date) -> Iterator[Candidate]:
    return _reservation_candidates("ARRIVAL_SOON", "arrival_date", start, end)


def _departure_candidates(start: date, end: date) -> Iterator[Candidate]:
    return _reservation_candidates("DEPARTURE_SOON", "departure_date", start, end)


def _task_candidates(start: date, end: date) -> Iterator[Candidate]:
    rows = (
        db.session.query(Task, ReservationSubmission.name)
        .outerjoin(ReservationSubmission, Task.client_id == ReservationSubmission.id)
        .filter(
            Task.status == "pending",
            _date_prefix(Task.due_date).between(start.isoformat(), end.isoformat()),
        )
        .order_by(Task.due_date.asc(), Task.id.asc())
        .all()
    )
    for task, client_name in rows:
        target = _parse_target(task.due_date, "task", task.id)
        if target is None:
            continue
        yield Candidate(
            kind="TASK_DUE_SOON",
            entity_type="task",
            entity_id=str(task.id),
            target_date=target,
            payload={"title": task.title, "client_name": client_name, "days": (target - start).days},
            client_id=task.client_id,
        )


def _invoice_candidates(start: date, end: date) -> Iterator[Candidate]:
    rows = (
        db.session.query(Invoice, ReservationSubmission.name)
        .join(ReservationSubmission, Invoice.client_id == ReservationSubmission.id)
        .filter(
            Invoice.status == "pending",
            _date_prefix(Invoice.due_date).between(start.isoformat(), end.isoformat()),
        )
        .order_by(Invoice.due_date.asc(), Invoice.id.asc())
        .all()
    )
    for invoice, client_name in rows:
        target = _parse_target(invoice.due_date, "invoice", invoice.id)
        if target is None:
            continue
        yield Candidate(
            kind="INVOICE_DUE_SOON",
            entity_type="invoice",
            entity_id=invoice.id,
            target_date=target,
            payload={"invoice_id": invoice.id, "client_name": client_name, "days": (target - start).days},
            client_id=invoice.client_id,
        )


CATEGORY_SCANNERS: dict[str, Callable[[date, date], Iterator[Candidate]]] = {
    "arrivals": _arrival_candidates,
    "departures": _departure_candidates,
    "tasks": _task_candidates,
    "invoices": _invoice_candidates,
}


def _claim_watermark(candidate: Candidate) -> bool:
    """
    Stage the watermark for this candidate's target date.

    Returns False when the date was already notified, or when a concurrent
    run claimed it first (that run's transaction is the one that notifies).
    """
    target = candidate.target_date.isoformat()
    watermark = (
        db.session.query(NotificationWatermark)
        .filter_by(kind=candidate.kind, entity_type=candidate.entity_type, entity_id=candidate.entity_id)
        .first()
    )
    if watermark is not None:
        if watermark.target_date == target:
            return False
        watermark.target_date = target
        watermark.last_notified_at = utcnow()
    else:
        db.session.add(NotificationWatermark(
            kind=candidate.kind,
            entity_type=candidate.entity_type,
            entity_id=candidate.entity_id,
            target_date=target,
        ))
    try:
        db.session.flush()
    except IntegrityError:
        db.session.rollback()
        logger.info("Watermark race lost for %s %s:%s", candidate.kind, candidate.entity_type, candidate.entity_id)
        return False
    return True


def _scan_category(scanner, start: date, end: date) -> tuple[int, int]:
    notified = suppressed = 0
    for candidate in list(scanner(start, end)):
        if not _claim_watermark(candidate):
            suppressed += 1
            continue
        # Commits the watermark together with the notification.
        notify(candidate.kind, candidate.payload, client_id=candidate.client_id)
        notified += 1
    return notified, suppressed


def scan_upcoming_events(today: Optional[date] = None, horizon_days: Optional[int] = None) -> ScanReport:
    """Run every category over [today, today + horizon_days]."""
    today = today or utc_today()
    if horizon_days is None:
        configured = current_app.config.get("UPCOMING_HORIZON_DAYS")
        horizon_days = int(configured) if configured is not None else DEFAULT_HORIZON_DAYS
    if horizon_days < 0:
        raise ValidationError("horizon_days must be >= 0")

    end = today + timedelta(days=horizon_days)
    report = ScanReport(today=today, horizon_end=end)

    for category, scanner in CATEGORY_SCANNERS.items():
        try:
            notified, suppressed = _scan_category(scanner, today, end)
        except Exception:
            db.session.rollback()
            logger.exception("Upcoming-events scan failed for %s", category)
            report.failed.append(category)
            continue
        report.notified[category] = notified
        report.suppressed[category] = suppressed

    logger.info(
        "Upcoming-events scan %s: notified=%s suppressed=%s failed=%s",
        report.status, report.notified, report.suppressed, report.failed,
    )
    return report
