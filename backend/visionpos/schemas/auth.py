"""Auth request/response schemas."""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

from visionpos.schemas.user import UserResponse


# ── Login ──────────────────────────────────────────
class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime
    user: UserResponse


# ── Passwords ──────────────────────────────────────
class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8)


class ResetPasswordRequest(BaseModel):
    new_password: str = Field(..., min_length=8)


# ── Session ────────────────────────────────────────
class Session(BaseModel):
    """An authenticated caller, as carried by a bearer token."""
    model_config = ConfigDict(frozen=True)

    user_id: str
    username: str = ""
    role: str
    store_id: str
    permissions: frozenset[str]
    token_id: str
    issued_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime | None = None) -> bool:
        return (now or datetime.now(timezone.utc)) >= self.expires_at
