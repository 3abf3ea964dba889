# Overview: Administrative retention cleanups, run from the CLI outside the request path.

from __future__ import annotations

from datetime import date, timedelta
from typing import Optional

from ..errors import ValidationError
from ..extensions import db
from ..models import ActivityLogEntry, NotificationWatermark
from ..time_utils import today as utc_today, utcnow
from .session_service import cleanup_expired_sessions


def cleanup_activity_logs(*, retention_days: int = 365) -> int:
    """
    Delete activity log entries older than retention_days.

    The only path that removes audit entries. Returns count deleted.
    """
    if retention_days < 1:
        raise ValidationError("retention_days must be >= 1")
    cutoff = utcnow() - timedelta(days=retention_days)
    deleted = db.session.query(ActivityLogEntry).filter(
        ActivityLogEntry.created_at < cutoff
    ).delete(synchronize_session=False)
    db.session.commit()
    return deleted


def cleanup_notification_watermarks(*, before: Optional[date] = None) -> int:
    """
    Delete watermarks whose target date is before `before` (default: today).

    The scanner never looks behind today, so a past target date can no
    longer suppress anything. Returns count deleted.
    """
    cutoff = (before or utc_today()).isoformat()
    deleted = db.session.query(NotificationWatermark).filter(
        NotificationWatermark.target_date < cutoff
    ).delete(synchronize_session=False)
    db.session.commit()
    return deleted


def cleanup_sessions() -> int:
    """Delete expired and revoked session tokens."""
    return cleanup_expired_sessions()
