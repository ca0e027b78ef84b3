"""Unit tests for api/negotiation.py -- form vs JSON login detection."""

import pytest

from api.negotiation import is_form_submission, media_type


@pytest.mark.parametrize(
    "content_type,expected",
    [
        (None, True),
        ("", True),
        ("application/x-www-form-urlencoded", True),
        ("application/x-www-form-urlencoded; charset=UTF-8", True),
        ("Application/X-WWW-Form-Urlencoded", True),
        ("application/json", False),
        ("application/json; charset=utf-8", False),
        ("text/plain", False),
    ],
)
def test_is_form_submission(content_type, expected) -> None:
    assert is_form_submission(content_type) is expected


def test_media_type_strips_parameters() -> None:
    assert media_type("application/json; charset=utf-8") == "application/json"
    assert media_type(None) == ""
