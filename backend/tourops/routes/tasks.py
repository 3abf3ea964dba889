# Overview: Flask API routes for tasks; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request

from ..decorators import handle_errors, require_auth
from ..request_context import audit, json_body
from ..services import task_service


tasks_bp = Blueprint("tasks", __name__, url_prefix="/api/tasks")


@tasks_bp.get("")
@handle_errors("fetch tasks")
@require_auth
def list_tasks_route():
    tasks = task_service.list_tasks(status=request.args.get("status"))
    return jsonify([task.to_dict() for task in tasks])


@tasks_bp.post("")
@handle_errors("create task")
@require_auth
def create_task_route():
    task = task_service.create_task(json_body())
    audit("CREATE", f"Created task: {task.title}", "TASK", task.id)
    return jsonify({"success": True, "id": task.id, "task": task.to_dict()}), 201


@tasks_bp.put("/<int:task_id>")
@handle_errors("update task")
@require_auth
def update_task_route(task_id: int):
    """
    Partial update. Moving a task into "completed" raises one TASK_COMPLETED
    notification; saving an already completed task raises none.
    """
    task = task_service.update_task(task_id, json_body())
    audit("UPDATE", f"Updated task: {task.title}", "TASK", task.id)
    return jsonify({"success": True, "task": task.to_dict()})


@tasks_bp.delete("/<int:task_id>")
@handle_errors("delete task")
@require_auth
def delete_task_route(task_id: int):
    deleted = task_service.delete_task(task_id)
    audit("DELETE", f"Deleted task: {deleted['title']}", "TASK", task_id)
    return jsonify({"success": True})
