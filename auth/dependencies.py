"""
auth/dependencies.py -- FastAPI Depends() helpers for session authentication.

The session token is located in priority order:
  1. Session cookie (name from Settings.session_cookie_name) -- browser flow.
  2. Authorization: Bearer <token> header -- scripts and API clients.

Both carry the same opaque token; the core does not care which framing the
client used.

try_get_session() is the soft variant (returns None on failure).
get_current_session() wraps it and raises InvalidSessionError, which the app's
AuthError handler turns into a 401.

Layer rule: no imports from api/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.errors import InvalidSessionError
from auth.models import SessionInfo
from auth.service import AuthService


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def token_from_request(request: Request) -> str | None:
    """Return the raw session token from cookie or Bearer header, if any."""
    cookie_name = request.app.state.settings.session_cookie_name
    token = request.cookies.get(cookie_name)
    if token:
        return token
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return None


def try_get_session(request: Request) -> SessionInfo | None:
    """Return the SessionInfo for the request's token, or None.

    Store outages are not swallowed here: StoreUnavailableError propagates so
    the client sees 503, not a spurious "please log in".
    """
    token = token_from_request(request)
    if not token:
        return None
    try:
        return get_auth_service(request).validate_session(token)
    except InvalidSessionError:
        return None


def get_current_session(request: Request) -> SessionInfo:
    """Require a valid session. Raises InvalidSessionError (401) otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(session: SessionInfo = Depends(get_current_session)): ...
    """
    session = try_get_session(request)
    if session is None:
        raise InvalidSessionError()
    return session
