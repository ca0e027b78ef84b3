"""
auth/lifecycle.py -- Session issuance, validation, logout and expiry sweep.

A session moves through three states, all derived from the store row and the
clock rather than tracked in memory:

    Active   row exists, now <  expires_at
    Expired  row exists, now >= expires_at   (not yet swept)
    Purged   row gone -- via sweep_expired() or end_session() (logout)

validate_session() observes Active -> Expired lazily by comparing timestamps.
It never deletes on the read path; reclaiming rows is the sweep's job.

Tokens:
  secrets.token_urlsafe(n) draws n bytes from the OS CSPRNG and base64url
  encodes them. The default n=32 gives 256 bits of entropy. Collisions are
  practically impossible, but PRIMARY KEY(token) still rejects one, and
  create_session() retries with a fresh token a bounded number of times.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging
import secrets
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from auth.errors import (
    ConflictError,
    InvalidSessionError,
    NotFoundError,
    SessionCreationFailedError,
    StoreUnavailableError,
)
from auth.models import Session, SessionInfo
from auth.sessions import SessionStore

logger = logging.getLogger("canary.auth")

SESSION_TTL = timedelta(days=30)
TOKEN_BYTES = 32
MAX_CREATE_ATTEMPTS = 3


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_token(nbytes: int = TOKEN_BYTES) -> str:
    """Return a URL-safe token carrying nbytes of CSPRNG output."""
    return secrets.token_urlsafe(nbytes)


class SessionManager:
    """Owns the session state machine on top of a SessionStore.

    clock and token_factory are injectable so tests can pin time and force
    token collisions without monkeypatching.
    """

    def __init__(
        self,
        store: SessionStore,
        ttl: timedelta = SESSION_TTL,
        token_bytes: int = TOKEN_BYTES,
        max_attempts: int = MAX_CREATE_ATTEMPTS,
        clock: Callable[[], datetime] = utcnow,
        token_factory: Callable[[], str] | None = None,
    ) -> None:
        if token_bytes < 16:
            raise ValueError("token_bytes must be at least 16 (128 bits)")
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.store = store
        self.ttl = ttl
        self.max_attempts = max_attempts
        self.clock = clock
        self._token_factory = token_factory or (lambda: generate_token(token_bytes))

    def create_session(self, user_id: int, username: str) -> str:
        """Issue a new session for the user and return its token.

        expires_at is fixed at created_at + ttl. Raises
        SessionCreationFailedError if every attempt collides or the store is
        unavailable.
        """
        for attempt in range(1, self.max_attempts + 1):
            now = self.clock()
            session = Session(
                token=self._token_factory(),
                user_id=user_id,
                username=username,
                created_at=now,
                expires_at=now + self.ttl,
            )
            try:
                self.store.put(session)
            except ConflictError:
                logger.warning("Session token collision (attempt %d/%d)", attempt, self.max_attempts)
                continue
            except StoreUnavailableError as exc:
                raise SessionCreationFailedError() from exc
            logger.info("Session created for user %r (id=%s)", username, user_id)
            return session.token

        logger.error("Session creation failed after %d token collisions", self.max_attempts)
        raise SessionCreationFailedError()

    def validate_session(self, token: str) -> SessionInfo:
        """Return the SessionInfo for an Active session.

        Raises InvalidSessionError for an empty, unknown, or expired token --
        the three cases are indistinguishable to the caller.
        """
        if not token:
            raise InvalidSessionError()
        try:
            session = self.store.get(token)
        except NotFoundError:
            raise InvalidSessionError() from None
        if session.is_expired(self.clock()):
            raise InvalidSessionError()
        return SessionInfo(
            user_id=session.user_id,
            username=session.username,
            created_at=session.created_at,
            expires_at=session.expires_at,
        )

    def end_session(self, token: str) -> None:
        """Delete the session (logout). Idempotent; an empty token is a no-op."""
        if not token:
            return
        self.store.delete(token)

    def sweep_expired(self, now: datetime | None = None) -> int:
        """Purge every session with expires_at < now. Returns rows removed."""
        cutoff = now if now is not None else self.clock()
        removed = self.store.delete_expired_before(cutoff)
        if removed:
            logger.info("Swept %d expired session(s)", removed)
        return removed
