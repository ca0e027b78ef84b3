"""Unit tests for auth/service.py -- the AuthService façade.

Covers the end-to-end properties callers rely on:
- authenticate() succeeds for every created (username, password) pair
- wrong password and unknown username fail identically
- unknown username still pays one bcrypt verification (timing equalization)
- store outages propagate as StoreUnavailableError, never as bad credentials
- login / validate / logout scenario
"""

import pytest

from auth.errors import InvalidCredentialsError, InvalidSessionError, NotFoundError, StoreUnavailableError
from auth.service import AuthService
from tests.conftest import FakeClock


@pytest.mark.parametrize(
    "username,password",
    [("alice", "s3cret"), ("bob", "correct horse battery staple"), ("ünïcode", "pässwörd")],
)
def test_authenticate_created_user(service: AuthService, username: str, password: str) -> None:
    service.create_user(username, password)
    user = service.authenticate(username, password)
    assert user.username == username


def test_wrong_password_and_unknown_user_fail_identically(service: AuthService) -> None:
    service.create_user("alice", "s3cret")

    with pytest.raises(InvalidCredentialsError) as wrong_password:
        service.authenticate("alice", "nope")
    with pytest.raises(InvalidCredentialsError) as unknown_user:
        service.authenticate("mallory", "s3cret")

    assert type(wrong_password.value) is type(unknown_user.value)
    assert wrong_password.value.to_dict() == unknown_user.value.to_dict()
    assert str(wrong_password.value) == str(unknown_user.value)


def test_unknown_user_runs_dummy_verification(service: AuthService, monkeypatch) -> None:
    calls = []
    hasher = service.users.hasher
    real_verify = hasher.verify

    def counting_verify(password, stored_hash):
        calls.append(stored_hash)
        return real_verify(password, stored_hash)

    monkeypatch.setattr(hasher, "verify", counting_verify)
    with pytest.raises(InvalidCredentialsError):
        service.authenticate("ghost", "whatever")
    assert len(calls) == 1


def test_not_found_is_not_leaked(service: AuthService) -> None:
    with pytest.raises(InvalidCredentialsError) as info:
        service.authenticate("ghost", "whatever")
    assert not isinstance(info.value, NotFoundError)
    assert info.value.__cause__ is None


def test_store_outage_is_not_bad_credentials(service: AuthService, monkeypatch) -> None:
    def unavailable(username):
        raise StoreUnavailableError()

    monkeypatch.setattr(service.users, "find_by_username", unavailable)
    with pytest.raises(StoreUnavailableError):
        service.authenticate("alice", "s3cret")


def test_login_validate_logout_scenario(service: AuthService) -> None:
    service.create_user("alice", "s3cret")

    token = service.login("alice", "s3cret")
    assert token

    info = service.validate_session(token)
    assert info.username == "alice"

    service.logout(token)
    with pytest.raises(InvalidSessionError):
        service.validate_session(token)
    service.logout(token)


def test_login_with_bad_password_creates_no_session(service: AuthService) -> None:
    service.create_user("alice", "s3cret")
    with pytest.raises(InvalidCredentialsError):
        service.login("alice", "wrong")
    assert service.sessions.store.count() == 0


def test_each_login_gets_its_own_session(service: AuthService) -> None:
    user = service.create_user("alice", "s3cret")
    first = service.login("alice", "s3cret")
    second = service.login("alice", "s3cret")
    assert first != second
    service.logout(first)
    assert service.validate_session(second).user_id == user.id


def test_create_session_for_existing_identity(service: AuthService) -> None:
    user = service.create_user("alice", "s3cret")
    token = service.create_session(user.id, user.username)
    assert service.validate_session(token).user_id == user.id
    service.end_session(token)
    with pytest.raises(InvalidSessionError):
        service.validate_session(token)


def test_sweep_through_facade(service: AuthService, clock: FakeClock) -> None:
    service.create_user("alice", "s3cret")
    service.login("alice", "s3cret")
    clock.advance(days=31)
    assert service.sweep_expired() == 1
    assert service.sweep_expired() == 0
