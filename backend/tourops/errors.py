# Overview: Error taxonomy shared by services and routes.

"""
Every error a service raises on purpose is an AppError subclass carrying the
HTTP status the route layer answers with. Anything else reaching a route is
an unexpected failure: logged server-side, reported as a generic 500.
"""

from __future__ import annotations


class AppError(Exception):
    """Base class for errors with a client-facing message."""
    status_code = 500

    def __init__(self, message: str, **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        return {"error": self.message, **self.details}


class ValidationError(AppError, ValueError):
    """400-level input problem. Message names the offending field(s)."""
    status_code = 400


class AuthError(AppError):
    """Missing, invalid or expired credential."""
    status_code = 401


class ForbiddenError(AppError):
    """Valid credential, insufficient role."""
    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError, ValueError):
    """409-level conflict (e.g. invoice number collision). Safe to retry."""
    status_code = 409

    def __init__(self, message: str, **details):
        details.setdefault("retry", True)
        super().__init__(message, **details)


class DependencyError(AppError):
    """
    Relational store or mail transport unreachable.

    The client only ever sees the generic message; the cause is logged.
    """
    status_code = 500
    code = "DB_ERROR"

    def __init__(self, message: str = "Service temporarily unavailable", **details):
        details.setdefault("code", self.code)
        super().__init__(message, **details)


class QueryTimeoutError(DependencyError):
    """Connection pool acquire / connect timeout."""
    code = "DB_TIMEOUT"
