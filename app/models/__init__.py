"""SQLAlchemy ORM models."""

from app.models.base import Base
from app.models.post import Post, PostImage
from app.models.user import User

__all__ = ["Base", "Post", "PostImage", "User"]
