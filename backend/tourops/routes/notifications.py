# Overview: Flask API routes for the notification inbox and ad-hoc notification e-mail.

from flask import Blueprint, current_app, jsonify, request

from ..decorators import handle_errors, require_auth
from ..errors import DependencyError
from ..request_context import audit, json_body
from ..services import notification_service
from ..services.mail_service import MailSettings, send_notification_email
from ..models.notifications import NOTIFICATION_TYPES
from ..validation import parse_bool, parse_choice, parse_int, parse_text, require_fields


notifications_bp = Blueprint("notifications", __name__, url_prefix="/api/notifications")


@notifications_bp.get("")
@handle_errors("fetch notifications")
@require_auth
def list_notifications_route():
    """Newest first, at most 100."""
    return jsonify(notification_service.list_notifications())


@notifications_bp.get("/unread-count")
@handle_errors("count unread notifications")
@require_auth
def unread_count_route():
    return jsonify({"unread": notification_service.unread_count()})


@notifications_bp.patch("")
@handle_errors("update notification")
@require_auth
def mark_notification_route():
    """Body: {id, read: bool}."""
    data = json_body()
    require_fields(data, "id", "read")
    notification_id = parse_int(data["id"], "id", minimum=1)
    read = parse_bool(data["read"], "read")

    notification = notification_service.set_read(notification_id, read)
    audit(
        "UPDATE",
        f"Marked notification {'read' if read else 'unread'}: {notification.title}",
        "NOTIFICATION",
        notification_id,
    )
    return jsonify({"success": True})


@notifications_bp.delete("")
@handle_errors("delete notification")
@require_auth
def delete_notification_route():
    """Id from the JSON body or ?id=."""
    data = json_body()
    raw_id = data.get("id", request.args.get("id"))
    require_fields({"id": raw_id}, "id")
    notification_id = parse_int(raw_id, "id", minimum=1)

    deleted = notification_service.delete_notification(notification_id)
    audit("DELETE", f"Deleted notification: {deleted['title']}", "NOTIFICATION", notification_id)
    return jsonify({"success": True})


@notifications_bp.post("/read-all")
@handle_errors("mark notifications read")
@require_auth
def read_all_route():
    updated = notification_service.mark_all_read()
    if updated:
        audit("UPDATE", f"Marked {updated} notification(s) read", "NOTIFICATION")
    return jsonify({"success": True, "updated": updated})


@notifications_bp.post("/email")
@handle_errors("send notification email")
@require_auth
def send_email_route():
    """
    Send an ad-hoc notification e-mail synchronously.

    Body: {title, message, type, clientName?}. 503 when mail is not
    configured, 500 (MAIL_ERROR) when the SMTP exchange fails.
    """
    data = json_body()
    require_fields(data, "title", "message", "type")
    kind = parse_choice(data["type"], "type", (t.lower() for t in NOTIFICATION_TYPES)).upper()

    title = parse_text(data["title"], "title")
    text = parse_text(data["message"], "message")
    client_name = parse_text(data.get("clientName"), "clientName", required=False)
    if client_name:
        text = f"{text}\n\nClient: {client_name}"

    settings = MailSettings.from_config(current_app.config)
    if settings is None:
        return jsonify({"error": "Email notifications are not configured"}), 503

    result = send_notification_email(notification_service.email_subject(kind, title), text, settings)
    if not result["success"]:
        raise DependencyError("Failed to send email", code="MAIL_ERROR")
    return jsonify({"success": True})
