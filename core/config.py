"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for Canary happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call. This is
      the official FastAPI dependency injection pattern for config.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. session_ttl_seconds -> SESSION_TTL_SECONDS). Type coercion and
      validation are built in.

Security notes:
  SESSION_TOKEN_BYTES below 16 (128 bits) is rejected outright. Session tokens
  are bearer credentials; their only protection is entropy.

  BCRYPT_ROUNDS is bounded to bcrypt's supported range (4..31). Tests run with
  4; production should keep the default 12 or raise it.

Layer rule: core/ is the kernel. This module may not import from api/ or auth/.
"""

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("canary.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'auth' / 'canary_auth.db'}"

SESSION_TTL_DEFAULT = 30 * 24 * 60 * 60  # 30 days in seconds

# Name under which the transport carries the session token. The core treats it
# as an opaque identifier; cookie vs header framing is the transport's concern.
SESSION_COOKIE_NAME = "canary_session"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    database_url: str = _DEFAULT_DB_URL
    # SQLite busy timeout. Bounds every store call so no request blocks
    # indefinitely behind a writer.
    db_timeout_seconds: float = 5.0

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    secure_cookies: bool = False
    session_cookie_name: str = SESSION_COOKIE_NAME
    session_ttl_seconds: int = SESSION_TTL_DEFAULT
    session_token_bytes: int = 32
    session_create_attempts: int = 3
    sweep_interval_seconds: float = 3600.0

    # ------------------------------------------------------------------
    # Passwords
    # ------------------------------------------------------------------

    bcrypt_rounds: int = 12

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @field_validator("session_token_bytes")
    @classmethod
    def validate_token_bytes(cls, value: int) -> int:
        if value < 16:
            raise ValueError("SESSION_TOKEN_BYTES must be at least 16 (128 bits of entropy).")
        return value

    @field_validator("session_create_attempts")
    @classmethod
    def validate_create_attempts(cls, value: int) -> int:
        if value < 1:
            raise ValueError("SESSION_CREATE_ATTEMPTS must be at least 1.")
        return value

    @field_validator("session_ttl_seconds", "sweep_interval_seconds", "db_timeout_seconds")
    @classmethod
    def validate_positive(cls, value):
        if value <= 0:
            raise ValueError("must be greater than zero.")
        return value

    @field_validator("bcrypt_rounds")
    @classmethod
    def validate_bcrypt_rounds(cls, value: int) -> int:
        if not 4 <= value <= 31:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 31.")
        return value

    @field_validator("session_cookie_name")
    @classmethod
    def validate_cookie_name(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("SESSION_COOKIE_NAME must not be empty.")
        return value.strip()


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    Uses lru_cache so Settings() is instantiated exactly once -- at first call.
    All modules should call get_settings() rather than constructing Settings() directly.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    settings = Settings()
    if settings.debug:
        logger.warning("DEBUG mode enabled -- do not run this configuration in production.")
    return settings
