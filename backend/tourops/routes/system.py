# Overview: Health endpoint reporting the state of the relational store and session table.

"""
System health

Each check reports status, latency and a few counts. Any unhealthy check
turns the endpoint into a 503 so load balancers can route around the
instance.
"""

import time

from flask import Blueprint, current_app

from ..extensions import db
from ..models import NotificationWatermark, ReservationSubmission, SessionToken, User
from ..services.mail_service import MailSettings
from ..time_utils import utcnow

system_bp = Blueprint("system", __name__, url_prefix="/api")


def _elapsed_ms(start_time: float) -> float:
    return round((time.time() - start_time) * 1000, 2)


def check_database_health() -> dict:
    start_time = time.time()
    try:
        clients = db.session.query(ReservationSubmission).count()
        users = db.session.query(User).count()
        watermarks = db.session.query(NotificationWatermark).count()
        return {
            "status": "healthy",
            "latency_ms": _elapsed_ms(start_time),
            "details": {"clients": clients, "users": users, "watermarks": watermarks},
        }
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Database health check failed")
        return {"status": "unhealthy", "latency_ms": _elapsed_ms(start_time), "error": "Database error"}


def check_session_health() -> dict:
    start_time = time.time()
    try:
        active = db.session.query(SessionToken).filter(SessionToken.is_revoked.is_(False)).count()
        expired = db.session.query(SessionToken).filter(
            SessionToken.expires_at < utcnow(),
            SessionToken.is_revoked.is_(False),
        ).count()
        return {
            "status": "healthy",
            "latency_ms": _elapsed_ms(start_time),
            "details": {"active_sessions": active, "expired_pending_cleanup": expired},
        }
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Session health check failed")
        return {"status": "unhealthy", "latency_ms": _elapsed_ms(start_time), "error": "Session service error"}


def check_mail_configuration() -> dict:
    """Mail is optional; an unconfigured transport only degrades."""
    if MailSettings.from_config(current_app.config) is None:
        return {"status": "degraded", "warning": "Notification e-mail disabled or SMTP_HOST unset"}
    return {"status": "healthy"}


@system_bp.get("/health")
def health():
    """200 when healthy or degraded, 503 when any check is unhealthy."""
    start_time = time.time()
    checks = {
        "database": check_database_health(),
        "session_service": check_session_health(),
        "mail": check_mail_configuration(),
    }

    statuses = [check["status"] for check in checks.values()]
    if "unhealthy" in statuses:
        overall_status, http_status = "unhealthy", 503
    elif "degraded" in statuses:
        overall_status, http_status = "degraded", 200
    else:
        overall_status, http_status = "healthy", 200

    return {
        "status": overall_status,
        "timestamp": utcnow().isoformat() + "Z",
        "total_latency_ms": _elapsed_ms(start_time),
        "checks": checks,
    }, http_status
