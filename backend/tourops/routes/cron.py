# Overview: Flask API route that triggers the upcoming-events scanner from an external scheduler.

import hmac

from flask import Blueprint, current_app, jsonify, request

from ..decorators import handle_errors
from ..services import scanner_service


cron_bp = Blueprint("cron", __name__, url_prefix="/api/cron")


def _cron_authorized() -> bool:
    secret = current_app.config.get("CRON_SECRET")
    if not secret:
        return True
    supplied = request.headers.get("X-Cron-Secret") or ""
    return hmac.compare_digest(supplied.encode(), secret.encode())


@cron_bp.get("/notifications")
@handle_errors("run upcoming-events scan")
def run_scan_route():
    """
    Run the scanner once.

    200 {status: "success"} or {status: "partial", failed: [...]};
    500 when every category failed. When CRON_SECRET is set the caller must
    send it in X-Cron-Secret.
    """
    if not _cron_authorized():
        return jsonify({"error": "Invalid cron secret"}), 401

    report = scanner_service.scan_upcoming_events()
    body = report.to_dict()
    if report.status == "failed":
        body["error"] = "Upcoming-events scan failed"
        return jsonify(body), 500
    return jsonify(body)
