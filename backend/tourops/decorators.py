# Overview: Request decorators for API routes: authentication, role checks and error translation.

from functools import wraps

from flask import current_app, g, jsonify, request
from sqlalchemy.exc import DBAPIError, OperationalError, TimeoutError as PoolTimeoutError

from .errors import AppError, AuthError, DependencyError, QueryTimeoutError
from .extensions import db
from .services import session_service


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require a valid bearer token and resolve the acting user once.

    Sets g.actor (session_service.Actor). Everything downstream that needs
    attribution receives this value; nothing re-reads the token.

    Returns 401 for a missing, invalid, expired or revoked token.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            g.actor = session_service.resolve_actor(bearer_token())
        except AuthError as e:
            return jsonify(e.to_dict()), e.status_code
        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles: str):
    """Require the authenticated actor to hold one of `roles` (403 otherwise)."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            actor = g.get("actor")
            if actor is None:
                return jsonify({"error": "Authentication required"}), 401
            if actor.role not in roles:
                return jsonify({
                    "error": "Permission denied",
                    "requiredRoles": list(roles),
                }), 403
            return f(*args, **kwargs)

        return decorated_function
    return decorator


def handle_errors(action: str):
    """
    Translate service errors into JSON responses.

    - AppError subclasses -> their own status and body
    - pool acquire/connect timeouts -> 500 DB_TIMEOUT
    - other driver failures -> 500 DB_ERROR
    - anything else -> logged with traceback, generic 500

    `action` completes the log line "Failed to <action>".
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            try:
                return f(*args, **kwargs)
            except AppError as e:
                db.session.rollback()
                if isinstance(e, DependencyError):
                    current_app.logger.error("Failed to %s: %s", action, e.message)
                return jsonify(e.to_dict()), e.status_code
            except PoolTimeoutError:
                db.session.rollback()
                current_app.logger.exception("Failed to %s: database pool timeout", action)
                error = QueryTimeoutError()
                return jsonify(error.to_dict()), error.status_code
            except (OperationalError, DBAPIError):
                db.session.rollback()
                current_app.logger.exception("Failed to %s: database error", action)
                error = DependencyError()
                return jsonify(error.to_dict()), error.status_code
            except Exception:
                db.session.rollback()
                current_app.logger.exception("Failed to %s", action)
                return jsonify({"error": "Internal server error"}), 500

        return decorated_function
    return decorator
