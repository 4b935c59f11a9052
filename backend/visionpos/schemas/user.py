"""User schemas."""

from datetime import datetime, timezone
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from visionpos.models.role import RoleType


def new_user_id() -> str:
    return f"user_{uuid4().hex[:12]}"


class UserBase(BaseModel):
    username: str = Field(..., min_length=1, max_length=100)
    first_name: str = Field(default="", max_length=100)
    last_name: str = Field(default="", max_length=100)
    email: EmailStr
    role: RoleType = RoleType.CASHIER


class UserCreate(UserBase):
    password: str = Field(..., min_length=8)
    permissions: list[str] | None = None


class UserUpdate(BaseModel):
    username: str | None = Field(None, min_length=1, max_length=100)
    first_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)
    email: EmailStr | None = None
    role: RoleType | None = None
    reset_permissions: bool = True
    permissions: list[str] | None = None


class User(UserBase):
    """Stored user record, password hash included."""
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(default_factory=new_user_id)
    password_hash: str = Field(..., min_length=1)
    permissions: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    last_login: datetime | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class UserResponse(UserBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    permissions: list[str]
    created_at: datetime
    last_login: datetime | None = None
