"""User lookups and creation backed by the users table."""

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import Conflict
from app.models.user import User


class CredentialStore:
    """Looks up user records by id or email and stores new accounts."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def find_by_id(self, user_id: int) -> User | None:
        return self.db.query(User).filter(User.id == user_id).first()

    def find_by_email(self, email: str) -> User | None:
        return self.db.query(User).filter(User.email == email.strip().lower()).first()

    def create(
        self,
        *,
        name: str,
        email: str,
        description: str,
        password_hash: str,
        role: str = "user",
        profile_img_url: str | None = None,
    ) -> User:
        """Persist a new active user. Emails are stored lower-cased."""
        user = User(
            name=name,
            email=email.strip().lower(),
            description=description,
            password_hash=password_hash,
            role=role,
            status="active",
            profile_img_url=profile_img_url,
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError as e:
            # Another request registered the same email after the lookup.
            self.db.rollback()
            raise Conflict("Email already registered") from e
        self.db.refresh(user)
        return user
