"""ORM models for blog posts and their ordered images."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import relationship

from app.models.base import Base


class Post(Base):
    """
    A blog post owned by the user who created it.

    user_id is fixed at creation; only the owner may update or delete the post.
    """

    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    owner = relationship("User", back_populates="posts")
    images = relationship(
        "PostImage",
        back_populates="post",
        order_by="PostImage.position",
        cascade="all, delete-orphan",
    )


class PostImage(Base):
    """Stored image reference attached to a post, ordered by position."""

    __tablename__ = "post_images"

    id = Column(Integer, primary_key=True, autoincrement=True)
    post_id = Column(
        Integer,
        ForeignKey("posts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    url = Column(String(1024), nullable=False)
    position = Column(Integer, nullable=False, default=0)

    post = relationship("Post", back_populates="images")
