# Overview: Flask API routes for the dashboard summary widgets.

from flask import Blueprint, jsonify

from ..decorators import handle_errors, require_auth
from ..services import notification_service, reservation_service
from ..time_utils import today


dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@dashboard_bp.get("/stats")
@handle_errors("fetch dashboard stats")
@require_auth
def stats_route():
    """Client counts per pipeline stage plus unread notifications."""
    stats = reservation_service.pipeline_stats()
    stats["unreadNotifications"] = notification_service.unread_count()
    return jsonify(stats)


@dashboard_bp.get("/arrivals")
@handle_errors("fetch upcoming arrivals")
@require_auth
def arrivals_route():
    """Confirmed or booked arrivals in the next 7 days, soonest first, at most 3."""
    return jsonify(reservation_service.upcoming_arrivals(today()))
