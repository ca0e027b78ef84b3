"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic beyond one expiry
predicate). Dataclasses own domain shape; stores and services do the work.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class User:
    """A local account that can log in with a password.

    Users are immutable once created -- there is no update or delete path.
    hashed_password is a bcrypt modular-crypt string; the salt and cost factor
    are embedded in it, so no separate salt column exists.
    """

    username: str
    hashed_password: str
    id: int | None = None
    created_at: str | None = None

    def __repr__(self) -> str:
        # Keep the hash out of logs and tracebacks.
        return f"User(id={self.id!r}, username={self.username!r})"


@dataclass(frozen=True)
class Session:
    """A server-side login session keyed by an opaque bearer token.

    user_id is a non-owning reference: the user may disappear while sessions
    referencing it remain (they simply stop being useful). username is a
    denormalized copy so validation does not need a join.

    expires_at is fixed at creation (created_at + TTL). Use never extends it.
    """

    token: str
    user_id: int
    username: str
    created_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    def __repr__(self) -> str:
        return (
            f"Session(user_id={self.user_id!r}, username={self.username!r}, "
            f"expires_at={self.expires_at.isoformat()})"
        )


@dataclass(frozen=True)
class SessionInfo:
    """Read-side view of a valid session. The token itself is not echoed back."""

    user_id: int
    username: str
    created_at: datetime
    expires_at: datetime
