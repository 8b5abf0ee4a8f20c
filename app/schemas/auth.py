"""Request/response schemas for signup, login and token renewal."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.security import (
    NAME_MAX_LEN,
    NAME_MIN_LEN,
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
)

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class SignupRequest(BaseModel):
    """Fields of the multipart signup form (profile image handled separately)."""

    name: str = Field(..., min_length=NAME_MIN_LEN, max_length=NAME_MAX_LEN)
    email: str = Field(..., max_length=255, pattern=EMAIL_PATTERN)
    description: str = Field(..., min_length=1, max_length=2000)
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)

    @field_validator("name", "description")
    @classmethod
    def strip_required_text(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class LoginRequest(BaseModel):
    """Credentials for login."""

    email: str = Field(..., max_length=255, pattern=EMAIL_PATTERN, description="Email")
    password: str = Field(
        ..., min_length=1, max_length=PASSWORD_MAX_LEN, description="Password"
    )


class UserRead(BaseModel):
    """Public view of a user (no password hash)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    description: str
    role: str
    status: str
    profile_img_url: str | None = None
    created_at: datetime | None = None


class SignupResponse(BaseModel):
    status: str = "success"
    message: str = "User created"
    user: UserRead


class TokenResponse(BaseModel):
    """JWT access token returned after login or renewal."""

    status: str = "success"
    token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    user: UserRead
