"""
Create a user (e.g. an admin, which signup never creates). Run from project root:
  python -m app.scripts.create_user NAME EMAIL PASSWORD [role] [--description TEXT]
Example:
  python -m app.scripts.create_user "Site Admin" admin@example.com your-secure-password admin
"""
import argparse
import sys

from pydantic import ValidationError

from app.core.database import SessionLocal
from app.core.security import hash_password
from app.models.user import USER_ROLES
from app.schemas.auth import SignupRequest
from app.services.credential_store import CredentialStore


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a blog user from the command line.")
    parser.add_argument("name", help="Display name (1-255 chars)")
    parser.add_argument("email", help="Unique email address")
    parser.add_argument("password", help="Password (8-128 chars)")
    parser.add_argument("role", nargs="?", default="user", choices=list(USER_ROLES))
    parser.add_argument("--description", default="Created from the command line")
    args = parser.parse_args(argv)

    try:
        body = SignupRequest(
            name=args.name,
            email=args.email,
            description=args.description,
            password=args.password,
        )
    except ValidationError as e:
        for err in e.errors():
            field = ".".join(str(p) for p in err["loc"])
            print(f"Invalid {field}: {err['msg']}", file=sys.stderr)
        return 1

    db = SessionLocal()
    try:
        credentials = CredentialStore(db)
        if credentials.find_by_email(body.email) is not None:
            print(f"User '{body.email}' already exists.", file=sys.stderr)
            return 1
        credentials.create(
            name=body.name,
            email=body.email,
            description=body.description,
            password_hash=hash_password(body.password),
            role=args.role,
        )
        print(f"Created user '{body.email}' with role '{args.role}'.")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
