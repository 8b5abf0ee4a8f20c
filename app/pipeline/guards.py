"""
Request guards: authentication, resource existence and ownership.

Each guard takes a GuardContext and returns a new one with more fields
populated, or raises an AppError that ends the request. Guards never write
to the stores.
"""

import logging
import re
from dataclasses import dataclass, replace
from typing import Callable

from app.core.errors import Forbidden, GuardOrderError, NotFound, Unauthenticated
from app.core.security import TokenClaims, TokenService
from app.models.post import Post
from app.models.user import User
from app.services.credential_store import CredentialStore
from app.services.post_store import PostStore

logger = logging.getLogger(__name__)

# Largest value a 32-bit signed INTEGER primary key can hold.
MAX_RESOURCE_ID = 2**31 - 1
_ID_PATTERN = re.compile(r"[1-9][0-9]*")

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class GuardContext:
    """
    Request inputs, collaborators and whatever earlier guards resolved.

    authorization: raw Authorization header, if any
    resource_id: raw path identifier for resource-scoped routes
    """

    credentials: CredentialStore
    posts: PostStore
    tokens: TokenService
    authorization: str | None = None
    resource_id: str | None = None
    admin_bypass: bool = False
    claims: TokenClaims | None = None
    user: User | None = None
    post: Post | None = None
    target_user: User | None = None


Guard = Callable[[GuardContext], GuardContext]


def extract_bearer_token(authorization: str | None) -> str:
    """Return the token from 'Bearer <token>'; raise Unauthenticated otherwise."""
    if not authorization:
        raise Unauthenticated("Not authenticated")
    if not authorization.startswith(BEARER_PREFIX):
        raise Unauthenticated("Authorization header must use the Bearer scheme")
    token = authorization[len(BEARER_PREFIX):].strip()
    if not token:
        raise Unauthenticated("Not authenticated")
    return token


def _parse_id(raw: str | None) -> int | None:
    # Only canonical ASCII decimals that fit the integer primary key columns.
    if raw is None or not _ID_PATTERN.fullmatch(raw):
        return None
    value = int(raw)
    return value if value <= MAX_RESOURCE_ID else None


def authenticate(ctx: GuardContext) -> GuardContext:
    """Verify the bearer token and resolve it to a live user."""
    token = extract_bearer_token(ctx.authorization)
    claims = ctx.tokens.verify(token)
    user = ctx.credentials.find_by_id(claims.user_id)
    if user is None:
        raise Unauthenticated("User not found")
    if not user.is_active:
        raise Unauthenticated("User is not active")
    return replace(ctx, claims=claims, user=user)


def require_post(ctx: GuardContext) -> GuardContext:
    """Load the post named by the path id; NotFound if it does not resolve."""
    post_id = _parse_id(ctx.resource_id)
    post = ctx.posts.find_by_id(post_id) if post_id is not None else None
    if post is None:
        raise NotFound("Post not found")
    return replace(ctx, post=post)


def require_target_user(ctx: GuardContext) -> GuardContext:
    """Load the active user named by the path id for profile-scoped listings."""
    user_id = _parse_id(ctx.resource_id)
    target = ctx.credentials.find_by_id(user_id) if user_id is not None else None
    if target is None or not target.is_active:
        raise NotFound("User not found")
    return replace(ctx, target_user=target)


def require_owner(ctx: GuardContext) -> GuardContext:
    """Reject unless the authenticated user owns the loaded post."""
    if ctx.user is None or ctx.post is None:
        raise GuardOrderError(
            "require_owner needs authenticate and require_post to run first"
        )
    if ctx.post.user_id == ctx.user.id:
        return ctx
    if ctx.admin_bypass and ctx.user.role == "admin":
        logger.info(
            "Admin override of post ownership",
            extra={"post_id": ctx.post.id, "user_id": ctx.user.id},
        )
        return ctx
    raise Forbidden("You are not the owner of this post")
