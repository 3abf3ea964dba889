# Overview: Task CRUD and the task notification boundary (created / completed).

from __future__ import annotations

from typing import Optional

from sqlalchemy import case

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import ReservationSubmission, Task
from ..models.tasks import TASK_PRIORITIES, TASK_STATUSES
from ..validation import parse_choice, parse_date_field, parse_optional_int, parse_text, require_fields
from .concurrency import locked_get
from .notification_service import notify_safely


def get_task(task_id: int) -> Task:
    task = db.session.get(Task, task_id)
    if not task:
        raise NotFoundError("Task not found")
    return task


def list_tasks(status: Optional[str] = None) -> list[Task]:
    """High priority first, then soonest due."""
    priority_rank = case(
        {priority: rank for rank, priority in enumerate(TASK_PRIORITIES)},
        value=Task.priority,
        else_=len(TASK_PRIORITIES),
    )
    query = db.session.query(Task)
    if status:
        query = query.filter(Task.status == parse_choice(status, "status", TASK_STATUSES))
    return query.order_by(priority_rank.asc(), Task.due_date.asc(), Task.id.asc()).all()


def _client_name(client_id: Optional[int]) -> Optional[str]:
    if client_id is None:
        return None
    client = db.session.get(ReservationSubmission, client_id)
    return client.name if client else None


def _resolve_client_id(value) -> Optional[int]:
    client_id = parse_optional_int(value, "clientId", minimum=1)
    if client_id is not None and db.session.get(ReservationSubmission, client_id) is None:
        raise NotFoundError("Client not found")
    return client_id


def create_task(payload: dict) -> Task:
    """title, dueDate and priority are required; new tasks start pending."""
    require_fields(payload, "title", "dueDate", "priority")

    task = Task(
        title=parse_text(payload["title"], "title"),
        description=parse_text(payload.get("description"), "description", required=False) or None,
        due_date=parse_date_field(payload["dueDate"], "dueDate").isoformat(),
        priority=parse_choice(payload["priority"], "priority", TASK_PRIORITIES),
        status=parse_choice(payload.get("status") or "pending", "status", TASK_STATUSES),
        client_id=_resolve_client_id(payload.get("clientId")),
    )
    db.session.add(task)
    db.session.commit()

    notify_safely("TASK_CREATED", {"title": task.title, "client_name": _client_name(task.client_id)})
    return task


def update_task(task_id: int, payload: dict) -> Task:
    """
    Partial update.

    TASK_COMPLETED is raised only on a transition into completed; saving a
    task that is already completed, or any other field change, raises
    nothing. The previous status is read under a row lock so two concurrent
    completions notify once.
    """
    if not payload:
        raise ValidationError("No fields to update")

    task = locked_get(Task, task_id)
    if not task:
        raise NotFoundError("Task not found")
    old_status = task.status

    if "title" in payload:
        task.title = parse_text(payload["title"], "title")
    if "description" in payload:
        task.description = parse_text(payload["description"], "description", required=False) or None
    if "dueDate" in payload:
        task.due_date = parse_date_field(payload["dueDate"], "dueDate").isoformat()
    if "priority" in payload:
        task.priority = parse_choice(payload["priority"], "priority", TASK_PRIORITIES)
    if "status" in payload:
        task.status = parse_choice(payload["status"], "status", TASK_STATUSES)
    if "clientId" in payload:
        task.client_id = _resolve_client_id(payload["clientId"])

    db.session.commit()

    if task.status == "completed" and old_status != "completed":
        notify_safely("TASK_COMPLETED", {"title": task.title, "client_name": _client_name(task.client_id)})
    return task


def delete_task(task_id: int) -> dict:
    """Delete a task. Returns its last state."""
    task = get_task(task_id)
    snapshot = task.to_dict()
    db.session.delete(task)
    db.session.commit()
    return snapshot
