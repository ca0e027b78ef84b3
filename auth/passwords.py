"""
auth/passwords.py -- bcrypt password hashing and verification.

Using bcrypt directly rather than passlib[bcrypt] because passlib's internal
wrap-bug detection creates a password longer than 72 bytes, which bcrypt 4.x
rejects with an explicit error. Direct bcrypt usage is simpler, has no
compatibility shim, and is actively maintained.

bcrypt embeds the random per-call salt and the cost factor in its output
("$2b$12$<salt><digest>"), so a stored hash is self-describing and no separate
salt column is needed. checkpw() compares digests in constant time.

Timing equalization:
  PasswordHasher computes one dummy hash at construction. When a login names
  a user that does not exist, AuthService calls verify_dummy() so the request
  still pays one full bcrypt verification. Response time then does not reveal
  whether the username exists.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import bcrypt

_DEFAULT_ROUNDS = 12

# bcrypt only ever reads this many bytes; longer inputs are rejected.
MAX_PASSWORD_BYTES = 72


def password_too_long(password: str) -> bool:
    return len(password.encode("utf-8")) > MAX_PASSWORD_BYTES


class PasswordHasher:
    """Slow, salted, one-way password hashing.

    rounds is the bcrypt cost factor (log2 of iterations). Tests pass 4 to keep
    the suite fast; production uses the configured value.
    """

    def __init__(self, rounds: int = _DEFAULT_ROUNDS) -> None:
        self.rounds = rounds
        # Computed once so the first unknown-user login is not measurably
        # slower than later ones.
        self._dummy_hash = self.hash("canary_timing_dummy")

    def hash(self, password: str) -> str:
        """Return a bcrypt hash of the given plaintext password.

        Raises ValueError for a password over MAX_PASSWORD_BYTES UTF-8 bytes.
        UserStore rejects those with InvalidInputError before hashing.
        """
        if password_too_long(password):
            raise ValueError(f"password exceeds {MAX_PASSWORD_BYTES} bytes")
        return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")

    def verify(self, password: str, stored_hash: str) -> bool:
        """Return True if the plaintext password matches the bcrypt hash.

        A malformed stored hash (ValueError from bcrypt) is treated as a
        mismatch, never as an error the caller could distinguish. So is a
        password over MAX_PASSWORD_BYTES, which no stored hash can match.
        """
        if password_too_long(password):
            return False
        try:
            return bcrypt.checkpw(password.encode("utf-8"), stored_hash.encode("utf-8"))
        except ValueError:
            return False

    def verify_dummy(self, password: str) -> bool:
        """Burn one bcrypt verification. Always returns False."""
        self.verify(password, self._dummy_hash)
        return False
