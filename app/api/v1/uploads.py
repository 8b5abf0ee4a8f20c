"""Helpers for reading image uploads from multipart requests and storing them."""

import logging

from fastapi import UploadFile
from starlette.datastructures import UploadFile as StarletteUploadFile

from app.core.errors import ValidationFailed
from app.services.blob_store import LocalBlobStore

logger = logging.getLogger(__name__)


def is_present_upload(obj: object) -> bool:
    """True if obj is an uploaded file that actually carries a filename."""
    # Multipart parsing yields starlette's UploadFile, the base of FastAPI's.
    return isinstance(obj, StarletteUploadFile) and bool(obj.filename)


async def read_image_upload(file: UploadFile, max_bytes: int) -> bytes:
    """Read an uploaded image; reject non-image content types, empty and oversized files."""
    filename = file.filename or ""
    content_type = (file.content_type or "").split(";")[0].strip().lower()
    if not content_type.startswith("image/"):
        raise ValidationFailed(f"File '{filename}' must be an image.")
    content = await file.read()
    if not content:
        raise ValidationFailed(f"File '{filename}' is empty.")
    if len(content) > max_bytes:
        raise ValidationFailed(
            f"File size must not exceed {max_bytes // 1024} KB."
        )
    return content


async def store_images(
    files: list[UploadFile],
    blobs: LocalBlobStore,
    folder: str,
    max_bytes: int,
) -> list[str]:
    """
    Validate every file, then write them to the blob store in order.

    All files are read before anything is written, so a rejected file leaves
    no partial uploads behind.
    """
    payloads = [(f.filename or "", await read_image_upload(f, max_bytes)) for f in files]
    urls: list[str] = []
    try:
        for filename, content in payloads:
            urls.append(blobs.save(content, filename, folder))
    except Exception:
        discard_images(urls, blobs)
        raise
    return urls


def discard_images(urls: list[str], blobs: LocalBlobStore) -> None:
    """Remove stored blobs, e.g. after the database write that referenced them failed."""
    for url in urls:
        blobs.delete(url)
    if urls:
        logger.info("Discarded stored images", extra={"count": len(urls)})
