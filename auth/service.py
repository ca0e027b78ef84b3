"""
auth/service.py -- AuthService, the façade the transport layer talks to.

AuthService composes UserStore, PasswordHasher and SessionManager into the
operations routes need. Routes never touch the stores directly.

Security:
  authenticate() collapses "no such user" and "wrong password" into one
  InvalidCredentialsError with identical code and message. It also runs a
  dummy bcrypt verification when the user does not exist, so both failure
  paths pay the same hashing cost and response time does not reveal whether
  a username is registered.

  Store outages are NOT collapsed: StoreUnavailableError propagates so the
  transport answers 503 instead of a misleading 401.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from auth.db import Database
from auth.errors import InvalidCredentialsError, NotFoundError
from auth.lifecycle import SessionManager
from auth.models import SessionInfo, User
from auth.passwords import PasswordHasher
from auth.sessions import SessionStore
from auth.store import UserStore

if TYPE_CHECKING:
    from core.config import Settings

logger = logging.getLogger("canary.auth")


class AuthService:
    def __init__(self, users: UserStore, sessions: SessionManager) -> None:
        self.users = users
        self.sessions = sessions

    @classmethod
    def from_database(
        cls,
        db: Database,
        *,
        bcrypt_rounds: int = 12,
        session_ttl: timedelta | None = None,
        token_bytes: int = 32,
        max_attempts: int = 3,
    ) -> AuthService:
        """Wire the default store and manager stack over one Database handle."""
        manager_kwargs: dict = {"token_bytes": token_bytes, "max_attempts": max_attempts}
        if session_ttl is not None:
            manager_kwargs["ttl"] = session_ttl
        return cls(
            users=UserStore(db, PasswordHasher(rounds=bcrypt_rounds)),
            sessions=SessionManager(SessionStore(db), **manager_kwargs),
        )

    @classmethod
    def from_settings(cls, db: Database, settings: Settings) -> AuthService:
        """Wire the stack from application Settings (API lifespan and CLI)."""
        return cls.from_database(
            db,
            bcrypt_rounds=settings.bcrypt_rounds,
            session_ttl=timedelta(seconds=settings.session_ttl_seconds),
            token_bytes=settings.session_token_bytes,
            max_attempts=settings.session_create_attempts,
        )

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------

    def create_user(self, username: str, password: str) -> User:
        return self.users.create_user(username, password)

    def authenticate(self, username: str, password: str) -> User:
        """Return the User if the password matches, else raise InvalidCredentialsError."""
        hasher = self.users.hasher
        try:
            user = self.users.find_by_username(username)
        except NotFoundError:
            hasher.verify_dummy(password or "")
            logger.debug("Failed login attempt")
            raise InvalidCredentialsError() from None
        if not hasher.verify(password or "", user.hashed_password):
            logger.debug("Failed login attempt")
            raise InvalidCredentialsError()
        return user

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def login(self, username: str, password: str) -> str:
        """Authenticate and open a session. Returns the session token."""
        user = self.authenticate(username, password)
        return self.sessions.create_session(user.id, user.username)

    def logout(self, token: str) -> None:
        self.sessions.end_session(token)

    def create_session(self, user_id: int, username: str) -> str:
        return self.sessions.create_session(user_id, username)

    def validate_session(self, token: str) -> SessionInfo:
        return self.sessions.validate_session(token)

    def end_session(self, token: str) -> None:
        self.sessions.end_session(token)

    def sweep_expired(self, now: datetime | None = None) -> int:
        return self.sessions.sweep_expired(now)
