"""Error taxonomy for the request pipeline and its mapping to HTTP responses."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base for errors that surface to the caller with a kind and a message."""

    kind = "error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class Unauthenticated(AppError):
    """Missing or unusable credentials, or the user is gone or inactive."""

    kind = "unauthenticated"
    status_code = status.HTTP_401_UNAUTHORIZED


class AuthError(Unauthenticated):
    """Token verification failure; subclasses name the reason."""


class ExpiredToken(AuthError):
    kind = "token_expired"


class InvalidToken(AuthError):
    kind = "token_invalid"


class MalformedToken(AuthError):
    kind = "token_malformed"


class Forbidden(AppError):
    kind = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN


class NotFound(AppError):
    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class Conflict(AppError):
    kind = "conflict"
    status_code = status.HTTP_409_CONFLICT


class ValidationFailed(AppError):
    kind = "validation_error"
    status_code = 422


class StorageUnavailable(AppError):
    """An uploaded file could not be written to the blob store."""

    kind = "storage_unavailable"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class GuardOrderError(RuntimeError):
    """A guard ran before the guards it depends on populated the context."""


def _error_body(kind: str, detail: object) -> dict[str, object]:
    return {"detail": detail, "kind": kind}


async def _app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    headers = None
    if exc.status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.kind, exc.message),
        headers=headers,
    )


async def _request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=ValidationFailed.status_code,
        content=_error_body(ValidationFailed.kind, jsonable_encoder(exc.errors())),
    )


async def _store_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception(
        "Store call failed",
        extra={"path": request.url.path, "method": request.method},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("server_error", "Internal server error"),
    )


async def _guard_order_handler(request: Request, exc: GuardOrderError) -> JSONResponse:
    logger.error(
        "Guard chain misconfigured: %s",
        exc,
        extra={"path": request.url.path, "method": request.method},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("server_error", "Internal server error"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the JSON error handlers on the application."""
    app.add_exception_handler(AppError, _app_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(SQLAlchemyError, _store_error_handler)
    app.add_exception_handler(GuardOrderError, _guard_order_handler)
