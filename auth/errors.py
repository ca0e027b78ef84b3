"""
auth/errors.py -- Exception taxonomy for the session and credential core.

Every error the core raises derives from AuthError and carries:
  code         -- machine-readable identifier, stable across releases
  message      -- user-safe text; never contains usernames, tokens or SQL
  http_status  -- the status the transport layer should answer with

Information-leak policy:
  InvalidCredentialsError covers BOTH "no such user" and "wrong password".
  InvalidSessionError covers BOTH "no such token" and "token expired".
  Both share status 401 so an external observer cannot tell a failed login
  from an absent session by status alone. Callers must never construct these
  with a custom message that distinguishes the underlying cause.

  StoreUnavailableError is deliberately NOT a subclass of either -- a database
  outage is reported as 503, never disguised as bad credentials.

NotFoundError and ConflictError are store-level signals. SessionManager and
AuthService translate them; they should not reach HTTP clients from the auth
routes.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from http import HTTPStatus


class AuthError(Exception):
    """Base class for all core auth errors."""

    code: str = "auth_error"
    message: str = "Authentication error."
    http_status: HTTPStatus = HTTPStatus.BAD_REQUEST

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


class InvalidInputError(AuthError):
    code = "invalid_input"
    message = "Username and password are required."
    http_status = HTTPStatus.BAD_REQUEST


class DuplicateUsernameError(AuthError):
    code = "duplicate_username"
    message = "Username already exists."
    http_status = HTTPStatus.CONFLICT


class InvalidCredentialsError(AuthError):
    code = "bad_credentials"
    message = "Invalid credentials"
    http_status = HTTPStatus.UNAUTHORIZED


class InvalidSessionError(AuthError):
    code = "invalid_session"
    message = "Authentication required."
    http_status = HTTPStatus.UNAUTHORIZED


class SessionCreationFailedError(AuthError):
    code = "session_creation_failed"
    message = "Failed to create session"
    http_status = HTTPStatus.INTERNAL_SERVER_ERROR


class NotFoundError(AuthError):
    code = "not_found"
    message = "Record not found."
    http_status = HTTPStatus.NOT_FOUND


class ConflictError(AuthError):
    code = "conflict"
    message = "Record already exists."
    http_status = HTTPStatus.CONFLICT


class StoreUnavailableError(AuthError):
    code = "service_unavailable"
    message = "Service temporarily unavailable."
    http_status = HTTPStatus.SERVICE_UNAVAILABLE
