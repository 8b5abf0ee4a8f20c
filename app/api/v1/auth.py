"""Signup, login and token renewal."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from app.api.v1.uploads import discard_images, is_present_upload, store_images
from app.core.config import Settings, get_settings
from app.core.errors import Conflict, Unauthenticated
from app.core.security import hash_password, verify_password
from app.pipeline import GuardContext, RouteClass, guarded
from app.schemas.auth import (
    LoginRequest,
    SignupRequest,
    SignupResponse,
    TokenResponse,
    UserRead,
)
from app.services.blob_store import LocalBlobStore, get_blob_store

logger = logging.getLogger(__name__)
router = APIRouter()

PROFILE_IMAGES_FOLDER = "profiles"


@router.post("/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    name: Annotated[str, Form()],
    email: Annotated[str, Form()],
    description: Annotated[str, Form()],
    password: Annotated[str, Form()],
    ctx: Annotated[GuardContext, Depends(guarded(RouteClass.CREDENTIALS))],
    blobs: Annotated[LocalBlobStore, Depends(get_blob_store)],
    settings: Annotated[Settings, Depends(get_settings)],
    profile_img: Annotated[UploadFile | None, File(alias="profileImgUrl")] = None,
) -> SignupResponse:
    """
    Register a user from a multipart form.

    Fields: name, email, description, password, and an optional image file in
    `profileImgUrl`. New accounts always get role 'user' and status 'active'.
    """
    try:
        body = SignupRequest(
            name=name, email=email, description=description, password=password
        )
    except ValidationError as e:
        raise RequestValidationError(e.errors(include_url=False)) from e

    credentials = ctx.credentials
    if credentials.find_by_email(body.email) is not None:
        raise Conflict("Email already registered")

    image_urls: list[str] = []
    if profile_img is not None and is_present_upload(profile_img):
        image_urls = await store_images(
            [profile_img], blobs, PROFILE_IMAGES_FOLDER, settings.MAX_UPLOAD_FILE_BYTES
        )
    try:
        password_hash = await run_in_threadpool(hash_password, body.password)
        user = credentials.create(
            name=body.name,
            email=body.email,
            description=body.description,
            password_hash=password_hash,
            profile_img_url=image_urls[0] if image_urls else None,
        )
    except Exception:
        discard_images(image_urls, blobs)
        raise

    logger.info("User signed up", extra={"user_id": user.id})
    return SignupResponse(user=UserRead.model_validate(user))


@router.post("/login", response_model=TokenResponse)
def login(
    body: LoginRequest,
    ctx: Annotated[GuardContext, Depends(guarded(RouteClass.CREDENTIALS))],
) -> TokenResponse:
    """
    Authenticate with email and password; returns a JWT access token.
    Include the token in the Authorization header as: Bearer <token>
    """
    user = ctx.credentials.find_by_email(body.email)
    if user is None or not verify_password(body.password, user.password_hash):
        raise Unauthenticated("Invalid email or password.")
    if not user.is_active:
        raise Unauthenticated("Account is not active.")

    logger.info("User logged in", extra={"user_id": user.id})
    return TokenResponse(token=ctx.tokens.issue(user), user=UserRead.model_validate(user))


@router.get("/renew", response_model=TokenResponse)
def renew(
    ctx: Annotated[GuardContext, Depends(guarded(RouteClass.AUTHENTICATED))],
) -> TokenResponse:
    """Exchange a valid token for a fresh one with a new expiry."""
    return TokenResponse(
        token=ctx.tokens.issue(ctx.user),
        user=UserRead.model_validate(ctx.user),
    )
