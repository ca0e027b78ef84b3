"""
auth/sessions.py -- SQLAlchemy Core persistence for login sessions.

Pattern: Repository + Data Mapper, same shape as auth/store.py.

Every operation is a single SQL statement on its own pooled connection, so
the database supplies the atomicity. There is no in-process cache or lock
over session rows:
  put()                    INSERT; PRIMARY KEY(token) rejects collisions
  get()                    SELECT by primary key
  delete()                 DELETE by primary key (0 or 1 rows, both fine)
  delete_expired_before()  one range DELETE -- never select-then-delete-many,
                           so a sweep interrupted at shutdown cannot leave a
                           half-applied batch behind

get() returns expired rows as-is. Expiry is a policy decision made by
SessionManager.validate_session(); keeping it out of the store avoids a
write on the read path.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from auth.db import Database, sessions
from auth.errors import ConflictError, NotFoundError
from auth.models import Session


def _to_epoch(moment: datetime) -> float:
    if moment.tzinfo is None:
        raise ValueError("session timestamps must be timezone-aware")
    return moment.timestamp()


def _from_epoch(seconds: float) -> datetime:
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


class SessionStore:
    """Repository for Session entities, keyed by token."""

    def __init__(self, db: Database) -> None:
        self._db = db

    def put(self, session: Session) -> None:
        """Insert a new session. Raises ConflictError if the token already exists."""
        with self._db.guard("put_session"):
            try:
                with self._db.engine.begin() as conn:
                    conn.execute(
                        sessions.insert().values(
                            token=session.token,
                            user_id=session.user_id,
                            username=session.username,
                            created_at=_to_epoch(session.created_at),
                            expires_at=_to_epoch(session.expires_at),
                        )
                    )
            except IntegrityError:
                raise ConflictError() from None

    def get(self, token: str) -> Session:
        """Fetch a session by token. Raises NotFoundError if absent."""
        with self._db.guard("get_session"):
            with self._db.engine.connect() as conn:
                row = conn.execute(sessions.select().where(sessions.c.token == token)).fetchone()
        if row is None:
            raise NotFoundError()
        return _row_to_session(row)

    def delete(self, token: str) -> None:
        """Remove a session. Deleting a token that does not exist is not an error."""
        with self._db.guard("delete_session"):
            with self._db.engine.begin() as conn:
                conn.execute(sessions.delete().where(sessions.c.token == token))

    def delete_expired_before(self, moment: datetime) -> int:
        """Delete every session with expires_at < moment. Returns number of rows removed."""
        cutoff = _to_epoch(moment)
        with self._db.guard("delete_expired_sessions"):
            with self._db.engine.begin() as conn:
                result = conn.execute(sessions.delete().where(sessions.c.expires_at < cutoff))
        return result.rowcount

    def count(self) -> int:
        """Return the number of stored sessions, expired ones included."""
        with self._db.guard("count_sessions"):
            with self._db.engine.connect() as conn:
                total = conn.execute(select(func.count()).select_from(sessions)).scalar()
        return total or 0


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_session(row) -> Session:
    return Session(
        token=row.token,
        user_id=row.user_id,
        username=row.username,
        created_at=_from_epoch(row.created_at),
        expires_at=_from_epoch(row.expires_at),
    )
