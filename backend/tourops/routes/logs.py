# Overview: Flask API route for the audit trail (login and activity logs); admin only.

from flask import Blueprint, jsonify

from ..decorators import handle_errors, require_auth, require_role
from ..services import audit_service


logs_bp = Blueprint("logs", __name__, url_prefix="/api/logs")


@logs_bp.get("")
@handle_errors("fetch logs")
@require_auth
@require_role("admin")
def list_logs_route():
    """
    Login and activity entries merged, newest first, at most 100.

    The trail is append-only: there is no endpoint that edits or clears it.
    """
    return jsonify({"status": "OK", "logs": audit_service.list_logs()})
