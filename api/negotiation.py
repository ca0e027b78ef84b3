"""
api/negotiation.py -- Decide how a login request wants to be answered.

Browsers posting the login form send application/x-www-form-urlencoded (or,
from some clients, no Content-Type at all) and expect redirects. Scripts send
JSON and expect JSON. This is a pure function of the header so route code and
tests can use it without a request object.
"""

from __future__ import annotations

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def media_type(content_type: str | None) -> str:
    """Return the lowercased media type without parameters ("; charset=...")."""
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def is_form_submission(content_type: str | None) -> bool:
    """True for urlencoded form posts and for requests with no Content-Type."""
    return media_type(content_type) in ("", FORM_CONTENT_TYPE)
