# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/shoppos/routes/auth.py
"""
Authentication API routes

There is no self-registration; accounts are created from the CLI
(flask users create). Every authenticated user has full access.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import auth_service
from ..services import session_service
from ..decorators import require_auth


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _terminals():
    return current_app.extensions["pos_terminals"]


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Token must be included in Authorization header for protected routes.
    """
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        password = data.get("password")

        if not all([email, password]):
            return jsonify({"error": "email and password required"}), 400

        user = auth_service.authenticate(email, password)
        if not user:
            return jsonify({"error": "Invalid credentials"}), 401

        session, token = session_service.create_session(
            user_id=user.id,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )

        return jsonify({
            "user": user.to_dict(),
            "token": token,
            "session": session.to_dict(),
            "message": "Login successful"
        }), 200

    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
@require_auth
def logout_route():
    """Revoke the caller's token and drop its till state (cart included)."""
    session = session_service.revoke_session(g.session_token, reason="User logout")
    _terminals().discard(g.session_context.session.id)

    if not session:
        return jsonify({"error": "Session not found"}), 404

    return jsonify({"message": "Logged out"}), 200


@auth_bp.post("/validate")
@require_auth
def validate_route():
    return jsonify({
        "valid": True,
        "user": g.current_user.to_dict(),
        "session": g.session_context.session.to_dict(),
    }), 200
