# Overview: Request decorators for API routes.

import inspect
from functools import wraps
from flask import request, jsonify, g

from .services.auth_service import get_session_registry


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def _establish_session():
    """Validate the bearer token; returns an error response or None."""
    token = _bearer_token()
    if not token:
        return jsonify({"error": "Authentication required"}), 401

    session = get_session_registry().validate(token)
    if not session:
        return jsonify({"error": "Invalid or expired token"}), 401

    g.principal = session.principal
    g.session = session
    g.token = token
    return None


def require_auth(f):
    """
    Require a valid bearer session.

    Sets g.principal, g.session and g.token for the route. Returns 401 if the
    Authorization header is missing, or the token is unknown or expired.
    Works for both sync and async views.
    """
    if inspect.iscoroutinefunction(f):
        @wraps(f)
        async def decorated_async(*args, **kwargs):
            denied = _establish_session()
            if denied is not None:
                return denied
            return await f(*args, **kwargs)

        return decorated_async

    @wraps(f)
    def decorated_function(*args, **kwargs):
        denied = _establish_session()
        if denied is not None:
            return denied
        return f(*args, **kwargs)

    return decorated_function
