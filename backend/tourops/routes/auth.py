# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

Login issues an opaque bearer token (see session_service). Every successful
login is written to the login log shown on /api/logs.
"""

from flask import Blueprint, g, jsonify

from ..decorators import bearer_token, handle_errors, require_auth
from ..request_context import json_body, request_metadata
from ..services import audit_service, auth_service, session_service


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
@handle_errors("log in")
def login_route():
    """
    Authenticate by email and password.

    Returns {token, user}. The token goes in the Authorization header
    ("Bearer <token>") of every protected request.
    """
    data = json_body()
    email = data.get("email")
    password = data.get("password")
    if not email or not password:
        return jsonify({"error": "Email and password are required"}), 400
    if not isinstance(email, str) or not isinstance(password, str):
        return jsonify({"error": "Email and password must be strings"}), 400

    user = auth_service.authenticate(email, password)
    if not user:
        return jsonify({"error": "Invalid credentials"}), 401

    metadata = request_metadata()
    session, token = session_service.create_session(
        user_id=user.id,
        user_agent=metadata.user_agent,
        ip_address=metadata.ip_address,
    )
    audit_service.log_login(user.id, metadata)

    return jsonify({
        "token": token,
        "expiresAt": session.to_dict()["expiresAt"],
        "user": user.to_dict(),
    })


@auth_bp.post("/logout")
@handle_errors("log out")
@require_auth
def logout_route():
    session_service.revoke_session(bearer_token())
    return jsonify({"success": True})


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"user": g.actor.to_dict()})
