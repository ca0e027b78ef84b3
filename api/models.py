"""
API request and response models for Canary REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

Empty usernames and passwords, and passwords over bcrypt's 72-byte limit, are
NOT rejected here. The credential store owns those rules (InvalidInputError ->
400 invalid_input) so the HTTP answer matches what the CLI and any other
caller get. At login an over-long password simply fails authentication.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

USERNAME_MAX_LENGTH = 255


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    """JSON body for POST /api/v1/auth/login.

    Missing fields default to "" and fail authentication like any other wrong
    credential, rather than producing a distinguishable validation error.
    """

    username: str = Field(default="", max_length=USERNAME_MAX_LENGTH)
    password: str = ""


class UserCreate(BaseModel):
    """Request body for POST /api/v1/auth/users."""

    username: str = Field(max_length=USERNAME_MAX_LENGTH)
    password: str


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class LoginResponse(BaseModel):
    """Response for a successful JSON login. The token travels in the cookie only."""

    model_config = ConfigDict(frozen=True)

    success: bool = True
    username: str


class UserCreatedResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    username: str


class SessionResponse(BaseModel):
    """Response for GET /api/v1/auth/session."""

    model_config = ConfigDict(frozen=True)

    user_id: int
    username: str
    created_at: datetime
    expires_at: datetime


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
