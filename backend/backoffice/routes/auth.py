# Overview: Flask API routes for login/logout; issues and revokes bearer sessions.

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth
from ..services.auth_service import get_auth_provider, get_session_registry
from ..time_utils import to_utc_z


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate and create a session token.

    Expects JSON: {"email": "...", "password": "..."}
    """
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        password = data.get("password")

        if not all([email, password]):
            return jsonify({"error": "email and password required"}), 400

        principal = get_auth_provider().authenticate(email, password)
        if not principal:
            current_app.logger.warning("Failed login attempt for %s", email)
            return jsonify({"error": "Invalid credentials"}), 401

        session, token = get_session_registry().create(principal)

        return jsonify({
            "token": token,
            "principal": principal,
            "expires_at": to_utc_z(session.expires_at),
            "message": "Login successful",
        }), 200

    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
@require_auth
def logout_route():
    """Revoke the caller's session token."""
    get_session_registry().revoke(g.token)
    return jsonify({"message": "Logout successful"}), 200
