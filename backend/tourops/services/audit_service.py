# Overview: Append-only audit trail of user actions and logins, plus the combined log view.

"""
Audit Logger

log_activity() is best-effort: it is called after the audited mutation has
committed, and nothing it does can turn that mutation into a failure. The
actor is the one resolved by require_auth for the current request; there is
no second token lookup here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping, Optional

from sqlalchemy import literal, null, union_all, select

from ..extensions import db
from ..models import ActivityLogEntry, LoginLogEntry, User
from ..models.activity import ACTION_TYPES
from ..time_utils import to_utc_z
from .session_service import Actor

logger = logging.getLogger(__name__)

UNKNOWN = "unknown"
LOG_LIST_LIMIT = 100


@dataclass(frozen=True)
class RequestMetadata:
    ip_address: str = UNKNOWN
    user_agent: str = UNKNOWN

    @classmethod
    def from_headers(cls, headers: Optional[Mapping[str, str]]) -> "RequestMetadata":
        """
        Client address from X-Forwarded-For (first hop) and User-Agent,
        each "unknown" when absent.
        """
        if not headers:
            return cls()
        forwarded = (headers.get("X-Forwarded-For") or "").split(",")[0].strip()
        user_agent = (headers.get("User-Agent") or "").strip()
        return cls(
            ip_address=forwarded[:45] or UNKNOWN,
            user_agent=user_agent[:512] or UNKNOWN,
        )


def log_activity(
    actor: Optional[Actor],
    action_type: str,
    description: str,
    entity_type: str,
    entity_id=None,
    metadata: Optional[RequestMetadata] = None,
) -> Optional[ActivityLogEntry]:
    """
    Append one audit entry. Never raises.

    Returns None when the entry was abandoned: no actor, unknown action type,
    or a failed write (rolled back and logged).
    """
    if actor is None:
        logger.warning("Activity not logged, no authenticated actor: %s %s", action_type, entity_type)
        return None
    if action_type not in ACTION_TYPES:
        logger.error("Activity not logged, unknown action type %r", action_type)
        return None

    metadata = metadata or RequestMetadata()
    entry = ActivityLogEntry(
        user_id=actor.user_id,
        action_type=action_type,
        action_description=description,
        entity_type=entity_type,
        entity_id=str(entity_id) if entity_id is not None else None,
        ip_address=metadata.ip_address,
        user_agent=metadata.user_agent,
    )
    try:
        db.session.add(entry)
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.exception("Failed to log activity: %s %s %s", action_type, entity_type, entity_id)
        return None
    return entry


def log_login(user_id: int, metadata: Optional[RequestMetadata] = None) -> Optional[LoginLogEntry]:
    """Record a successful login. Never raises."""
    metadata = metadata or RequestMetadata()
    entry = LoginLogEntry(
        user_id=user_id,
        ip_address=metadata.ip_address,
        user_agent=metadata.user_agent,
    )
    try:
        db.session.add(entry)
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.exception("Failed to log login for user %s", user_id)
        return None
    return entry


def list_logs(limit: int = LOG_LIST_LIMIT) -> list[dict]:
    """
    Login and activity entries in one newest-first list, with the acting
    user's name, email and role.
    """
    logins = select(
        LoginLogEntry.id.label("id"),
        LoginLogEntry.user_id.label("user_id"),
        literal("login").label("log_type"),
        null().label("action_type"),
        null().label("action_description"),
        null().label("entity_type"),
        null().label("entity_id"),
        LoginLogEntry.login_time.label("timestamp"),
        LoginLogEntry.ip_address.label("ip_address"),
        LoginLogEntry.user_agent.label("user_agent"),
    )
    activities = select(
        ActivityLogEntry.id,
        ActivityLogEntry.user_id,
        literal("activity"),
        ActivityLogEntry.action_type,
        ActivityLogEntry.action_description,
        ActivityLogEntry.entity_type,
        ActivityLogEntry.entity_id,
        ActivityLogEntry.created_at,
        ActivityLogEntry.ip_address,
        ActivityLogEntry.user_agent,
    )
    combined = union_all(logins, activities).subquery("l")

    stmt = (
        select(combined, User.name, User.email, User.role)
        .join(User, User.id == combined.c.user_id)
        .order_by(combined.c.timestamp.desc(), combined.c.id.desc())
        .limit(limit)
    )

    rows = db.session.execute(stmt).mappings().all()
    return [
        {
            "id": row["id"],
            "userId": row["user_id"],
            "logType": row["log_type"],
            "actionType": row["action_type"],
            "actionDescription": row["action_description"],
            "entityType": row["entity_type"],
            "entityId": row["entity_id"],
            "timestamp": to_utc_z(row["timestamp"]),
            "ipAddress": row["ip_address"],
            "userAgent": row["user_agent"],
            "userName": row["name"],
            "userEmail": row["email"],
            "userRole": row["role"],
        }
        for row in rows
    ]

