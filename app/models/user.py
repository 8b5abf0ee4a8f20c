"""ORM model for blog users (auth, roles and profile)."""

from sqlalchemy import Column, DateTime, Integer, String, Text, func
from sqlalchemy.orm import relationship

from app.models.base import Base

USER_ROLES = ("user", "admin")
USER_STATUSES = ("active", "inactive")


class User(Base):
    """
    User account for JWT authentication and post ownership.

    role: 'admin' or 'user'
    status: 'active' or 'inactive'; inactive users cannot log in or use tokens
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    description = Column(Text, nullable=False, default="")
    password_hash = Column(String(255), nullable=False)
    role = Column(String(32), nullable=False, default="user")
    status = Column(String(32), nullable=False, default="active")
    profile_img_url = Column(String(1024), nullable=True)
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

    posts = relationship("Post", back_populates="owner")

    @property
    def is_active(self) -> bool:
        return self.status == "active"
