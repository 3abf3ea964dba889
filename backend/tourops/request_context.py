# Overview: Per-request helpers: the resolved actor, client metadata and best-effort auditing.

from __future__ import annotations

from flask import g, request

from .services import audit_service
from .services.audit_service import RequestMetadata
from .services.session_service import Actor


def current_actor() -> Actor | None:
    """Actor resolved by require_auth for this request, if any."""
    return g.get("actor")


def request_metadata() -> RequestMetadata:
    return RequestMetadata.from_headers(request.headers)


def json_body() -> dict:
    """Request JSON object, or {} for an empty/invalid body."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def audit(action_type: str, description: str, entity_type: str, entity_id=None):
    """Write the audit entry for the current request's mutation. Never raises."""
    return audit_service.log_activity(
        current_actor(),
        action_type,
        description,
        entity_type,
        entity_id=entity_id,
        metadata=request_metadata(),
    )
