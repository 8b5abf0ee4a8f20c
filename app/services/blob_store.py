"""Local-disk storage for uploaded images (profile pictures and post images)."""

import logging
import uuid
from pathlib import Path, PurePosixPath

from app.core.config import get_settings
from app.core.errors import StorageUnavailable

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".gif", ".webp"})


class LocalBlobStore:
    """
    Writes blobs under root_dir and returns a public url under base_url.

    Stored names are random so uploads never overwrite each other.
    """

    def __init__(self, root_dir: str | Path, base_url: str = "/uploads") -> None:
        self.root_dir = Path(root_dir)
        self.base_url = base_url.rstrip("/")

    def save(self, data: bytes, filename: str, folder: str) -> str:
        suffix = PurePosixPath(filename or "").suffix.lower()
        if suffix not in ALLOWED_IMAGE_EXTENSIONS:
            suffix = ""
        name = f"{uuid.uuid4().hex}{suffix}"
        target_dir = self.root_dir / folder
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            (target_dir / name).write_bytes(data)
        except OSError as e:
            raise StorageUnavailable(f"Could not store {filename!r}: {e}") from e
        return f"{self.base_url}/{folder}/{name}"

    def path_for(self, url: str) -> Path | None:
        """Map a url returned by save() back to its file; None if it is not ours."""
        prefix = f"{self.base_url}/"
        if not url.startswith(prefix):
            return None
        root = self.root_dir.resolve()
        path = (root / url[len(prefix):]).resolve()
        if not path.is_relative_to(root):
            return None
        return path

    def delete(self, url: str) -> bool:
        """Remove a stored blob. Returns False when nothing was removed."""
        path = self.path_for(url)
        if path is None:
            logger.warning("Refusing to delete blob outside store", extra={"url": url})
            return False
        try:
            path.unlink()
        except FileNotFoundError:
            logger.info("Blob already gone", extra={"url": url})
            return False
        return True


def get_blob_store() -> LocalBlobStore:
    """Dependency: blob store rooted at UPLOAD_DIR."""
    settings = get_settings()
    return LocalBlobStore(settings.UPLOAD_DIR, settings.UPLOAD_BASE_URL)
