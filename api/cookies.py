"""
api/cookies.py -- Session cookie framing.

The core hands out an opaque token; this module is the only place that knows
it travels as a cookie.

httponly=True: JS cannot read the cookie (XSS mitigation).
samesite="lax": cookie sent on same-site navigations and GET cross-site
    links, but not on cross-site POST -- CSRF mitigation for most cases.
secure: only sent over HTTPS when SECURE_COOKIES=true (set in production).
max_age: matches the session TTL so cookie and server row expire together.
"""

from __future__ import annotations

from datetime import datetime, timezone

from starlette.responses import Response

from core.config import Settings


def set_session_cookie(response: Response, token: str, settings: Settings) -> None:
    response.set_cookie(
        settings.session_cookie_name,
        value=token,
        path="/",
        max_age=settings.session_ttl_seconds,
        httponly=True,
        samesite="lax",
        secure=settings.secure_cookies,
    )


def clear_session_cookie(response: Response, settings: Settings) -> None:
    """Expire the cookie with both Max-Age and Expires for older browsers."""
    response.set_cookie(
        settings.session_cookie_name,
        value="",
        path="/",
        max_age=0,
        expires=datetime(1970, 1, 1, tzinfo=timezone.utc),
        httponly=True,
        samesite="lax",
        secure=settings.secure_cookies,
    )
