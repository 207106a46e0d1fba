# Overview: Request decorators for API routes.

from functools import wraps
from flask import request, jsonify, g, current_app

from .services import session_service


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def _evict_terminal(token: str) -> None:
    """Drop the till of a session that no longer validates."""
    registry = current_app.extensions.get("pos_terminals")
    if registry is None:
        return
    session_id = session_service.find_session_id(token)
    if session_id is not None:
        registry.discard(session_id)


def require_auth(f):
    """
    Require a live session token.

    Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.session_token: The plaintext bearer token (used as the till key)
    - g.session_context: The full SessionContext object

    Returns 401 if the Authorization header is missing, the token is
    unknown, expired, idle too long, revoked, or the user is deactivated.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if not token:
            return jsonify({"error": "Authentication required"}), 401

        context = session_service.validate_session(token)
        if not context:
            _evict_terminal(token)
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = context.user
        g.session_token = token
        g.session_context = context

        return f(*args, **kwargs)

    return decorated_function
