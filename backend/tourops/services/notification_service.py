# Overview: Notification emitter (templated, persisted, mailed) and the in-app notification inbox.

"""
Notification Emitter

Every notification kind has exactly one (title, message) template. notify()
renders it, persists the row, commits, and only then queues the e-mail copy,
so a mail problem can never undo or block the write.

Mutation paths call notify_safely(): the primary write has already committed
by the time a notification is raised, and a failing notification must not
turn that success into an error.
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from string import Formatter

from sqlalchemy import update

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import Notification, ReservationSubmission
from .mail_service import dispatch_notification_email

logger = logging.getLogger(__name__)


TEMPLATES: dict[str, tuple[str, str]] = {
    "CLIENT_CREATED": (
        "New Client Added",
        'New client "{name}" has been added to the system.',
    ),
    "CLIENT_STATUS_CHANGED": (
        "Client Status Updated",
        'Client "{name}" status changed from {old_status} to {new_status}.',
    ),
    "CLIENT_DELETED": (
        "Client Deleted",
        'Client "{name}" has been removed from the system.',
    ),
    "INVOICE_CREATED": (
        "New Invoice Created",
        "New invoice #{invoice_id} for {client_name} with amount ${amount} has been created.",
    ),
    "INVOICE_STATUS_CHANGED": (
        "Invoice Status Updated",
        "Invoice #{invoice_id} for {client_name} status changed to {new_status}.",
    ),
    "INVOICE_DUE_SOON": (
        "Invoice Due Soon",
        "Invoice #{invoice_id} for {client_name} is due in {days} days.",
    ),
    "TASK_CREATED": (
        "New Task Created",
        'New task "{title}"{client_suffix} has been created.',
    ),
    "TASK_DUE_SOON": (
        "Task Due Soon",
        'Task "{title}"{client_suffix} is due in {days} days.',
    ),
    "TASK_COMPLETED": (
        "Task Completed",
        'Task "{title}"{client_suffix} has been completed.',
    ),
    "ARRIVAL_SOON": (
        "Client Arrival Soon",
        "{name} is arriving in {days} days.",
    ),
    "DEPARTURE_SOON": (
        "Client Departure Soon",
        "{name} is departing in {days} days.",
    ),
}

NOTIFICATION_LIST_LIMIT = 100


def template_fields(kind: str) -> set[str]:
    """Placeholder names the kind's message template expects."""
    _, message = TEMPLATES[kind]
    return {name for _, name, _, _ in Formatter().parse(message) if name}


def format_amount(value) -> str:
    """Whole amounts without decimals, everything else to the cent."""
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return str(value)
    if amount == amount.to_integral_value():
        return str(int(amount))
    return f"{amount:.2f}"


def render(kind: str, payload: dict) -> tuple[str, str]:
    """
    Render (title, message) for a notification kind.

    Task kinds take an optional `client_name` and render it as a
    " for <name>" suffix. Raises ValidationError for an unknown kind or a
    missing payload key.
    """
    if kind not in TEMPLATES:
        raise ValidationError(f"Unknown notification type: {kind}")

    values = dict(payload)
    if "client_suffix" not in values:
        client_name = values.get("client_name")
        values["client_suffix"] = f" for {client_name}" if client_name else ""
    if "amount" in values:
        values["amount"] = format_amount(values["amount"])

    title, message = TEMPLATES[kind]
    try:
        return title, message.format_map(values)
    except KeyError as exc:
        raise ValidationError(f"Missing notification field for {kind}: {exc.args[0]}")


def email_subject(kind: str, title: str) -> str:
    return f"[{kind.upper()}] {title}"


def notify(kind: str, payload: dict, *, client_id: int | None = None) -> Notification:
    """
    Render, persist and commit one notification, then queue its e-mail copy.

    Persistence failures propagate. E-mail never raises.
    """
    title, message = render(kind, payload)

    notification = Notification(
        type=kind,
        title=title,
        message=message,
        client_id=client_id,
        read=False,
    )
    db.session.add(notification)
    db.session.commit()

    try:
        dispatch_notification_email(email_subject(kind, title), message)
    except Exception:
        logger.exception("Failed to dispatch email for notification %s", notification.id)

    return notification


def notify_safely(kind: str, payload: dict, *, client_id: int | None = None) -> Notification | None:
    """notify(), rolled back and logged on failure. Returns None on failure."""
    try:
        return notify(kind, payload, client_id=client_id)
    except Exception:
        db.session.rollback()
        logger.exception("Failed to create %s notification", kind)
        return None


# =============================================================================
# Inbox
# =============================================================================

def list_notifications(limit: int = NOTIFICATION_LIST_LIMIT) -> list[dict]:
    """Newest first, with the linked client's current name when it still exists."""
    rows = (
        db.session.query(Notification, ReservationSubmission.name)
        .outerjoin(ReservationSubmission, Notification.client_id == ReservationSubmission.id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit)
        .all()
    )
    return [notification.to_dict(client_name=client_name) for notification, client_name in rows]


def get_notification(notification_id: int) -> Notification:
    notification = db.session.get(Notification, notification_id)
    if not notification:
        raise NotFoundError("Notification not found")
    return notification


def set_read(notification_id: int, read: bool) -> Notification:
    notification = get_notification(notification_id)
    notification.read = read
    db.session.commit()
    return notification


def mark_all_read() -> int:
    """Returns the number of notifications that flipped to read."""
    result = db.session.execute(
        update(Notification).where(Notification.read.is_(False)).values(read=True)
    )
    db.session.commit()
    return result.rowcount


def delete_notification(notification_id: int) -> dict:
    notification = get_notification(notification_id)
    snapshot = notification.to_dict()
    db.session.delete(notification)
    db.session.commit()
    return snapshot


def unread_count() -> int:
    return db.session.query(Notification).filter(Notification.read.is_(False)).count()
