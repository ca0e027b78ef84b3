"""
auth/store.py -- SQLAlchemy Core persistence for user accounts (credential store).

Pattern: Repository + Data Mapper.
UserStore is the repository; _row_to_user is the mapper. Route and service
code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

  Username uniqueness is enforced by the UNIQUE constraint on users.username.
  create_user() inserts unconditionally and maps IntegrityError to
  DuplicateUsernameError. A check-then-insert sequence would race: two
  concurrent requests could both pass the check before either inserts.

  Passwords are hashed here, at the only write path, so plaintext never
  leaves this module's call stack.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from auth.db import Database, users
from auth.errors import DuplicateUsernameError, InvalidInputError, NotFoundError
from auth.models import User
from auth.passwords import MAX_PASSWORD_BYTES, PasswordHasher, password_too_long

logger = logging.getLogger("canary.auth")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class UserStore:
    """Repository for User entities.

    Usage:
        store = UserStore(db, PasswordHasher())
        user = store.create_user("admin", "secret")
        same = store.find_by_username("admin")
    """

    def __init__(self, db: Database, hasher: PasswordHasher) -> None:
        self._db = db
        self.hasher = hasher

    def create_user(self, username: str, password: str) -> User:
        """Hash the password and insert a new user. Returns the stored User.

        Raises InvalidInputError if username (after stripping) or password is
        empty or the password exceeds MAX_PASSWORD_BYTES UTF-8 bytes, and
        DuplicateUsernameError if the username is taken. A rejected duplicate
        leaves the existing row untouched.
        """
        username = (username or "").strip()
        if not username or not password:
            raise InvalidInputError()
        if password_too_long(password):
            raise InvalidInputError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes.")

        hashed = self.hasher.hash(password)
        created_at = _now_iso()
        with self._db.guard("create_user"):
            try:
                with self._db.engine.begin() as conn:
                    result = conn.execute(
                        users.insert().values(
                            username=username,
                            hashed_password=hashed,
                            created_at=created_at,
                        )
                    )
            except IntegrityError:
                logger.info("Rejected duplicate username %r", username)
                raise DuplicateUsernameError() from None

        user_id = result.inserted_primary_key[0]
        logger.info("Created user %r (id=%d)", username, user_id)
        return User(id=user_id, username=username, hashed_password=hashed, created_at=created_at)

    def find_by_username(self, username: str) -> User:
        """Look up a user by exact username (case-sensitive). Raises NotFoundError if absent."""
        with self._db.guard("find_by_username"):
            with self._db.engine.connect() as conn:
                row = conn.execute(users.select().where(users.c.username == username)).fetchone()
        if row is None:
            raise NotFoundError()
        return _row_to_user(row)

    def get_by_id(self, user_id: int) -> User:
        """Look up a user by primary key. Raises NotFoundError if absent."""
        with self._db.guard("get_by_id"):
            with self._db.engine.connect() as conn:
                row = conn.execute(users.select().where(users.c.id == user_id)).fetchone()
        if row is None:
            raise NotFoundError()
        return _row_to_user(row)

    def has_users(self) -> bool:
        """Return True if at least one user record exists (first-run detection)."""
        with self._db.guard("has_users"):
            with self._db.engine.connect() as conn:
                count = conn.execute(select(func.count()).select_from(users)).scalar()
        return (count or 0) > 0


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        hashed_password=row.hashed_password,
        created_at=row.created_at,
    )
