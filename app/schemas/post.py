"""Request/response schemas for post endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PostWrite(BaseModel):
    """Title and content for creating or updating a post."""

    title: str = Field(..., min_length=1, max_length=255, description="Post title")
    content: str = Field(..., min_length=1, max_length=20000, description="Post content")

    @field_validator("title", "content")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()


class PostImageRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    url: str
    position: int


class PostOwner(BaseModel):
    """Owner summary embedded in post responses."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    profile_img_url: str | None = None


class PostRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    content: str
    user_id: int
    owner: PostOwner | None = None
    images: list[PostImageRead] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None


class PostResponse(BaseModel):
    status: str = "success"
    post: PostRead


class PostsListResponse(BaseModel):
    status: str = "success"
    results: int
    posts: list[PostRead]


class MessageResponse(BaseModel):
    status: str = "success"
    message: str
