"""
api/routes/v1/auth.py -- Authentication and session REST endpoints.

Routes:
  POST /api/v1/auth/login     -- password login (form or JSON); sets session cookie
  POST /api/v1/auth/logout    -- deletes the session, clears cookie; 303 /login
  GET  /api/v1/auth/session   -- current session info (requires session)
  POST /api/v1/auth/users     -- create user (requires session)

Login answers in the shape the client asked for:
  form post  -> 303 redirect to "/" on success, "/login?error=..." on failure
  JSON post  -> 200 / 401 / 500 JSON envelopes

Security:
  AuthService.authenticate() provides timing equalization -- use it, never
  inline find_by_username() + verify().
  Wrong username and wrong password produce the same response.
  Cache-Control: no-store on every login response.
  The token is only ever sent in the Set-Cookie header, never in a body.
"""

from __future__ import annotations

import logging
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, RedirectResponse, Response
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from api.cookies import clear_session_cookie, set_session_cookie
from api.models import (
    ErrorDetail,
    ErrorResponse,
    LoginRequest,
    LoginResponse,
    SessionResponse,
    UserCreate,
    UserCreatedResponse,
)
from api.negotiation import is_form_submission
from auth.dependencies import get_auth_service, get_current_session, token_from_request
from auth.errors import AuthError, InvalidCredentialsError, SessionCreationFailedError, StoreUnavailableError
from auth.models import SessionInfo
from auth.service import AuthService

logger = logging.getLogger("canary.api")

# Auth policy:
# - POST /api/v1/auth/login:    public -- login endpoint must be unauthenticated
# - POST /api/v1/auth/logout:   public -- logging out needs no valid session
# - GET  /api/v1/auth/session:  requires session (get_current_session)
# - POST /api/v1/auth/users:    requires session (get_current_session)
router = APIRouter()


def _error_json(exc: AuthError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.http_status,
        content=ErrorResponse(error=ErrorDetail(code=exc.code, message=exc.message)).model_dump(),
    )


def _form_text(value: object) -> str:
    # File parts (UploadFile) are not credentials.
    return value if isinstance(value, str) else ""


def _login_error_redirect(exc: AuthError) -> RedirectResponse:
    return RedirectResponse("/login?" + urlencode({"error": exc.message}), status_code=303)


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/auth/login", response_model=LoginResponse)
async def login(request: Request) -> Response:
    """Authenticate with username and password; set the session cookie.

    Content-Type decides both how the body is parsed and how the outcome is
    reported. A JSON body that cannot be parsed is answered with 400; missing
    fields simply fail authentication.
    """
    settings = request.app.state.settings
    service: AuthService = get_auth_service(request)
    form_submit = is_form_submission(request.headers.get("content-type"))

    if form_submit:
        form = await request.form()
        username = _form_text(form.get("username"))
        password = _form_text(form.get("password"))
    else:
        try:
            body = LoginRequest.model_validate(await request.json())
        except (ValueError, ValidationError):
            return JSONResponse(
                status_code=400,
                content=ErrorResponse(
                    error=ErrorDetail(code="invalid_request", message="Invalid request")
                ).model_dump(),
            )
        username, password = body.username, body.password

    try:
        # bcrypt is deliberately slow; keep it off the event loop.
        token = await run_in_threadpool(service.login, username, password)
    except (InvalidCredentialsError, SessionCreationFailedError) as exc:
        failure = _login_error_redirect(exc) if form_submit else _error_json(exc)
        failure.headers["Cache-Control"] = "no-store"
        return failure

    resp: Response
    if form_submit:
        resp = RedirectResponse("/", status_code=303)
    else:
        resp = JSONResponse(content=LoginResponse(username=username).model_dump())
    set_session_cookie(resp, token, settings)
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/auth/logout")
def logout(request: Request) -> RedirectResponse:
    """Delete the session named by the cookie (if any), clear it, redirect to /login.

    Logout always completes from the client's point of view. If the store is
    down the row is left for the sweep to reclaim at its natural expiry.
    """
    token = token_from_request(request)
    if token:
        try:
            get_auth_service(request).logout(token)
        except StoreUnavailableError:
            logger.warning("Logout could not delete session; store unavailable")
    resp = RedirectResponse("/login", status_code=303)
    clear_session_cookie(resp, request.app.state.settings)
    return resp


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/auth/session", response_model=SessionResponse)
def current_session(session: SessionInfo = Depends(get_current_session)) -> SessionResponse:
    """Return identity and expiry for the caller's session."""
    return SessionResponse(
        user_id=session.user_id,
        username=session.username,
        created_at=session.created_at,
        expires_at=session.expires_at,
    )


@router.post("/auth/users", response_model=UserCreatedResponse, status_code=201)
def create_user(
    request: Request,
    body: UserCreate,
    session: SessionInfo = Depends(get_current_session),
) -> UserCreatedResponse:
    """Create a local account.

    Raises InvalidInputError (400) for empty fields and
    DuplicateUsernameError (409) for a taken username; the app's AuthError
    handler renders both.
    """
    user = get_auth_service(request).create_user(body.username, body.password)
    logger.info("User %r created by %r", user.username, session.username)
    return UserCreatedResponse(username=user.username)
