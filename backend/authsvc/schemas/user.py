"""Pydantic schemas for request/response bodies."""
import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from authsvc.core.tiers import SubscriptionType


class UserType(str, Enum):
    CLIENT = "Client"
    ENTERPRISE = "Enterprise"
    BOT = "Bot"
    SUPER_USER = "SuperUser"
    ADMIN = "Admin"


# ── Requests ───────────────────────────────────────────────────────────────

class RegisterRequest(BaseModel):
    full_name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=1)
    user_type: UserType

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()


class CreateUserRequest(RegisterRequest):
    """Admin-side creation; the caller may pin the id."""
    id: Optional[uuid.UUID] = None


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        v = v.strip().lower()
        if not v:
            raise ValueError("email must not be empty")
        return v


class UserUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    full_name: Optional[str] = Field(None, min_length=2, max_length=100)
    user_type: Optional[UserType] = None

    @model_validator(mode="after")
    def require_a_change(self) -> "UserUpdateRequest":
        if self.full_name is None and self.user_type is None:
            raise ValueError("at least one of full_name, user_type is required")
        return self


class AdminStatusRequest(BaseModel):
    isAdmin: bool


class SubscriptionUpdateRequest(BaseModel):
    subscription_type: SubscriptionType


# ── Responses ──────────────────────────────────────────────────────────────

class UserProfile(BaseModel):
    id: uuid.UUID
    full_name: str
    email: str
    user_type: str
    subscription_type: Optional[str] = None
    rate_limit: Optional[int] = None
    created_at: Optional[datetime] = None


class LoginUser(BaseModel):
    id: uuid.UUID
    full_name: str
    email: str
    user_type: str
    api_key: Optional[str] = None
    subscription_type: Optional[str] = None


class LoginResponse(BaseModel):
    success: bool
    token: str
    user: LoginUser


class RegisterResponse(BaseModel):
    id: uuid.UUID
    apiKey: str
    token: str


class CredentialOut(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    subscription_type: str
    api_key: str
    rate_limit: int
    rate_limit_reset_at: datetime
    created_at: Optional[datetime] = None
    expires_at: datetime
