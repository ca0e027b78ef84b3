"""
auth/db.py -- Shared store handle and schema for the auth core.

Pattern: explicit handle, injected. Database owns the SQLAlchemy engine and the
table definitions; UserStore and SessionStore each receive the same Database
instance through their constructor. Nothing in auth/ reaches for a module-level
engine, so tests can hand every component an isolated in-memory database.

Schema:
  users     -- one row per account. UNIQUE(username) is the ONLY guard against
               duplicate accounts; create paths insert and catch IntegrityError
               rather than checking first.
  sessions  -- one row per issued token. token is the primary key, so a
               colliding insert fails atomically. user_id carries no foreign
               key: sessions do not own users and may outlive them.
               expires_at is indexed for the sweep's range delete.

Timestamps on sessions are stored as UTC epoch seconds (REAL). Numeric
comparison in SQL is then exact regardless of the backend's datetime support.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import Column, Float, Index, Integer, MetaData, String, Table, Text, create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.errors import StoreUnavailableError

logger = logging.getLogger("canary.auth")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(255), nullable=False, unique=True),
    Column("hashed_password", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
)

sessions = Table(
    "sessions",
    metadata,
    Column("token", String(255), primary_key=True),
    Column("user_id", Integer, nullable=False),  # non-owning, no FK
    Column("username", String(255), nullable=False),
    Column("created_at", Float, nullable=False),  # UTC epoch seconds
    Column("expires_at", Float, nullable=False),  # UTC epoch seconds
    Index("ix_sessions_expires_at", "expires_at"),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    WAL lets request threads keep reading sessions while the sweeper's bulk
    delete is writing. Set per-connection because SQLite PRAGMAs are not
    inherited by new connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Handle
# ---------------------------------------------------------------------------


class Database:
    """Engine + schema owner shared by UserStore and SessionStore.

    Usage:
        db = Database("sqlite:///auth.db")
        users = UserStore(db, PasswordHasher())
        sessions = SessionStore(db)
        ...
        db.close()
    """

    def __init__(self, db_url: str, timeout: float = 5.0) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
            connect_args["timeout"] = timeout
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        metadata.create_all(self.engine)

    @contextmanager
    def guard(self, operation: str) -> Iterator[None]:
        """Translate driver failures into StoreUnavailableError.

        IntegrityError passes through untouched -- stores catch it themselves
        and turn it into DuplicateUsernameError / ConflictError. Everything
        else from the driver (locked database, lost connection, timeout) is an
        infrastructure failure and must not be mistaken for a domain outcome.
        """
        try:
            yield
        except IntegrityError:
            raise
        except SQLAlchemyError as exc:
            logger.error("Store failure during %s: %s", operation, exc.__class__.__name__)
            raise StoreUnavailableError() from exc

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError:
            logger.warning("Database ping failed", exc_info=True)
            return False
        return True

    def close(self) -> None:
        self.engine.dispose()
