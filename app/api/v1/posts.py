"""Post endpoints: public reads, authenticated create, owner-only update/delete."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from app.api.v1.uploads import discard_images, is_present_upload, store_images
from app.core.config import Settings, get_settings
from app.core.errors import ValidationFailed
from app.models.post import Post
from app.pipeline import GuardContext, RouteClass, guarded
from app.schemas.post import (
    MessageResponse,
    PostRead,
    PostResponse,
    PostsListResponse,
    PostWrite,
)
from app.services.blob_store import LocalBlobStore, get_blob_store

logger = logging.getLogger(__name__)
router = APIRouter()

POST_IMAGES_FOLDER = "posts"


def _list_response(posts: list[Post]) -> PostsListResponse:
    return PostsListResponse(
        results=len(posts),
        posts=[PostRead.model_validate(p) for p in posts],
    )


@router.get("", response_model=PostsListResponse)
def list_posts(
    ctx: Annotated[GuardContext, Depends(guarded(RouteClass.PUBLIC_LIST))],
) -> PostsListResponse:
    """Return all posts, newest first. No authentication required."""
    return _list_response(ctx.posts.list_all())


@router.post("", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    ctx: Annotated[GuardContext, Depends(guarded(RouteClass.AUTHENTICATED))],
    title: Annotated[str, Form()],
    content: Annotated[str, Form()],
    blobs: Annotated[LocalBlobStore, Depends(get_blob_store)],
    settings: Annotated[Settings, Depends(get_settings)],
    post_imgs: Annotated[list[UploadFile] | None, File(alias="postImgs")] = None,
) -> PostResponse:
    """
    Create a post owned by the authenticated user.

    Multipart form with `title`, `content` and up to MAX_POST_IMAGES image
    files under `postImgs`; image order is preserved.
    """
    try:
        body = PostWrite(title=title, content=content)
    except ValidationError as e:
        raise RequestValidationError(e.errors(include_url=False)) from e

    files = [f for f in (post_imgs or []) if is_present_upload(f)]
    if len(files) > settings.MAX_POST_IMAGES:
        raise ValidationFailed(
            f"At most {settings.MAX_POST_IMAGES} images are allowed per post."
        )
    image_urls = await store_images(
        files, blobs, POST_IMAGES_FOLDER, settings.MAX_UPLOAD_FILE_BYTES
    )
    try:
        post = ctx.posts.create(
            owner_id=ctx.user.id,
            title=body.title,
            content=body.content,
            image_urls=image_urls,
        )
    except Exception:
        discard_images(image_urls, blobs)
        raise

    logger.info(
        "Post created",
        extra={"post_id": post.id, "user_id": ctx.user.id, "image_count": len(image_urls)},
    )
    return PostResponse(post=PostRead.model_validate(post))


@router.get("/me", response_model=PostsListResponse)
def list_my_posts(
    ctx: Annotated[GuardContext, Depends(guarded(RouteClass.MY_RESOURCES))],
) -> PostsListResponse:
    """Return the authenticated user's posts."""
    return _list_response(ctx.posts.find_by_owner(ctx.user.id))


@router.get("/profile/{user_id}", response_model=PostsListResponse)
def list_user_posts(
    user_id: int,
    ctx: Annotated[GuardContext, Depends(guarded(RouteClass.PROFILE_SCOPED))],
) -> PostsListResponse:
    """Return another user's posts. Requires authentication; 404 if the user does not exist."""
    return _list_response(ctx.posts.find_by_owner(ctx.target_user.id))


@router.get("/{post_id}", response_model=PostResponse)
def get_post(
    post_id: int,
    ctx: Annotated[GuardContext, Depends(guarded(RouteClass.PUBLIC_DETAIL))],
) -> PostResponse:
    return PostResponse(post=PostRead.model_validate(ctx.post))


@router.patch("/{post_id}", response_model=PostResponse)
def update_post(
    post_id: int,
    body: PostWrite,
    ctx: Annotated[GuardContext, Depends(guarded(RouteClass.MUTATE))],
) -> PostResponse:
    """Update title and content. Only the post's owner may do this."""
    post = ctx.posts.update(ctx.post, title=body.title, content=body.content)
    logger.info("Post updated", extra={"post_id": post.id, "user_id": ctx.user.id})
    return PostResponse(post=PostRead.model_validate(post))


@router.delete("/{post_id}", response_model=MessageResponse)
def delete_post(
    post_id: int,
    ctx: Annotated[GuardContext, Depends(guarded(RouteClass.MUTATE))],
    blobs: Annotated[LocalBlobStore, Depends(get_blob_store)],
) -> MessageResponse:
    """Delete a post and its stored images. Only the post's owner may do this."""
    deleted_id = ctx.post.id
    urls = ctx.posts.delete(ctx.post)
    discard_images(urls, blobs)
    logger.info("Post deleted", extra={"post_id": deleted_id, "user_id": ctx.user.id})
    return MessageResponse(message="Post deleted")
