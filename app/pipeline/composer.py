"""
Per-route guard ordering and the FastAPI dependency that runs it.

Every route declares a RouteClass; GUARD_TABLE maps it to an ordered tuple of
guards. Authentication always comes first so anonymous callers never trigger
resource lookups, and existence comes before ownership so an absent resource
is reported as NotFound whoever asks.
"""

import logging
from collections.abc import Iterable
from enum import Enum
from typing import Annotated, Callable

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.core.errors import AppError, GuardOrderError
from app.core.security import TokenService
from app.pipeline.guards import (
    Guard,
    GuardContext,
    authenticate,
    require_owner,
    require_post,
    require_target_user,
)
from app.services.credential_store import CredentialStore
from app.services.post_store import PostStore

logger = logging.getLogger(__name__)


class RouteClass(str, Enum):
    PUBLIC_LIST = "public_list"
    PUBLIC_DETAIL = "public_detail"
    CREDENTIALS = "credentials"
    AUTHENTICATED = "authenticated"
    MY_RESOURCES = "my_resources"
    PROFILE_SCOPED = "profile_scoped"
    MUTATE = "mutate"


GUARD_TABLE: dict[RouteClass, tuple[Guard, ...]] = {
    RouteClass.PUBLIC_LIST: (),
    RouteClass.PUBLIC_DETAIL: (require_post,),
    RouteClass.CREDENTIALS: (),
    RouteClass.AUTHENTICATED: (authenticate,),
    RouteClass.MY_RESOURCES: (authenticate,),
    RouteClass.PROFILE_SCOPED: (authenticate, require_target_user),
    RouteClass.MUTATE: (authenticate, require_post, require_owner),
}

# Path parameter holding the resource id, for resource-scoped route classes.
RESOURCE_PARAM: dict[RouteClass, str] = {
    RouteClass.PUBLIC_DETAIL: "post_id",
    RouteClass.PROFILE_SCOPED: "user_id",
    RouteClass.MUTATE: "post_id",
}


def validate_chain(guards: Iterable[Guard]) -> None:
    """Raise GuardOrderError if a chain orders its guards incorrectly."""
    chain = list(guards)
    if authenticate in chain and chain[0] is not authenticate:
        raise GuardOrderError("authenticate must be the first guard in a chain")
    seen: set[Guard] = set()
    for guard in chain:
        if guard is require_owner and not {authenticate, require_post} <= seen:
            raise GuardOrderError(
                "require_owner must come after authenticate and require_post"
            )
        seen.add(guard)


for _guards in GUARD_TABLE.values():
    validate_chain(_guards)


def run_guards(
    guards: Iterable[Guard],
    ctx: GuardContext,
    route_class: RouteClass | None = None,
) -> GuardContext:
    """Run guards in order; the first failure propagates and stops the chain."""
    for guard in guards:
        try:
            ctx = guard(ctx)
        except AppError as e:
            logger.info(
                "Request rejected by %s",
                guard.__name__,
                extra={
                    "route_class": route_class.value if route_class else None,
                    "kind": e.kind,
                },
            )
            raise
    return ctx


def get_token_service(
    settings: Annotated[Settings, Depends(get_settings)],
) -> TokenService:
    """Dependency: token service configured from settings."""
    return TokenService.from_settings(settings)


def guarded(route_class: RouteClass) -> Callable[..., GuardContext]:
    """Build a FastAPI dependency that runs the guard chain for route_class."""
    guards = GUARD_TABLE[route_class]
    resource_param = RESOURCE_PARAM.get(route_class)

    def dependency(
        request: Request,
        db: Annotated[Session, Depends(get_db)],
        tokens: Annotated[TokenService, Depends(get_token_service)],
        settings: Annotated[Settings, Depends(get_settings)],
        authorization: Annotated[str | None, Header()] = None,
    ) -> GuardContext:
        ctx = GuardContext(
            credentials=CredentialStore(db),
            posts=PostStore(db),
            tokens=tokens,
            authorization=authorization,
            resource_id=request.path_params.get(resource_param) if resource_param else None,
            admin_bypass=settings.OWNER_ADMIN_BYPASS,
        )
        return run_guards(guards, ctx, route_class)

    dependency.__name__ = f"guard_{route_class.value}"
    return dependency
