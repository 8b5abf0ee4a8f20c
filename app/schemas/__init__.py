"""Pydantic request/response schemas."""

from app.schemas.auth import (
    LoginRequest,
    SignupRequest,
    SignupResponse,
    TokenResponse,
    UserRead,
)
from app.schemas.health import HealthResponse
from app.schemas.post import (
    MessageResponse,
    PostImageRead,
    PostOwner,
    PostRead,
    PostResponse,
    PostsListResponse,
    PostWrite,
)

__all__ = [
    "HealthResponse",
    "LoginRequest",
    "MessageResponse",
    "PostImageRead",
    "PostOwner",
    "PostRead",
    "PostResponse",
    "PostWrite",
    "PostsListResponse",
    "SignupRequest",
    "SignupResponse",
    "TokenResponse",
    "UserRead",
]
