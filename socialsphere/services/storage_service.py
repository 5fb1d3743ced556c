"""Storage service for uploaded images.

Uses local disk served under /uploads. Files are organized by category:
{UPLOAD_DIR}/{category}/{uuid}{ext}. Stored paths are what the API hands
out, so delete() accepts the same value back.
"""
import logging
import uuid
from pathlib import Path, PurePosixPath
from typing import Protocol

from fastapi import UploadFile

from socialsphere.core.config import settings
from socialsphere.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

AVATARS = "avatars"
POSTS = "posts"

EXT_MAP = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/gif": ".gif",
    "image/bmp": ".bmp",
}

# Served same-origin from /uploads, so no types that can carry script
BLOCKED_TYPES = {"image/svg+xml"}


class StorageBackend(Protocol):
    """Protocol for storage backends."""

    def save(self, category: str, data: bytes, ext: str) -> str:
        """Save file and return its servable path."""
        ...

    def is_local(self, path: str | None) -> bool:
        """True if path points at a file this backend stored."""
        ...

    def delete(self, path: str) -> bool:
        """Delete file by servable path. Returns True if deleted."""
        ...


class LocalStorage:
    """Store files on local disk. Path: uploads/{category}/{uuid}{ext}"""

    def __init__(self, base_dir: str | None = None, base_url: str | None = None):
        self.base_dir = Path(base_dir or settings.UPLOAD_DIR).resolve()
        self.base_url = (settings.MEDIA_BASE_URL if base_url is None else base_url).rstrip("/")

    def _category_path(self, category: str) -> Path:
        path = self.base_dir / category
        path.mkdir(parents=True, exist_ok=True)
        return path

    def save(self, category: str, data: bytes, ext: str) -> str:
        path = self._category_path(category)
        filename = f"{uuid.uuid4().hex}{ext}"
        (path / filename).write_bytes(data)
        logger.info("Stored %s (%d bytes)", f"{category}/{filename}", len(data))
        return f"{self.base_url}/uploads/{category}/{filename}"

    def is_local(self, path: str | None) -> bool:
        if not path or "/uploads/" not in path:
            return False
        prefix = path.split("/uploads/", 1)[0]
        # Relative paths and our own media host are local, anything else is external
        return prefix == "" or (bool(self.base_url) and prefix == self.base_url)

    def resolve(self, path: str) -> Path | None:
        """Map a servable path to a file under base_dir, or None if it escapes it."""
        rel = PurePosixPath(path.split("/uploads/", 1)[1])
        if rel.is_absolute() or ".." in rel.parts:
            return None
        return self.base_dir.joinpath(*rel.parts)

    def delete(self, path: str) -> bool:
        if not self.is_local(path):
            return False
        filepath = self.resolve(path)
        if filepath is None or not filepath.is_file():
            return False
        filepath.unlink()
        logger.info("Deleted stored file %s", path)
        return True


def stored_category(path: str | None) -> str | None:
    """Category folder of a servable /uploads path, or None for anything else."""
    if not path or "/uploads/" not in path:
        return None
    parts = PurePosixPath(path.split("/uploads/", 1)[1]).parts
    return parts[0] if len(parts) > 1 else None


def _get_ext(file: UploadFile) -> str:
    if file.content_type in EXT_MAP:
        return EXT_MAP[file.content_type]
    # Only extensions StaticFiles serves as inert images
    suffix = Path(file.filename or "").suffix.lower()
    return suffix if suffix in EXT_MAP.values() else ".img"


async def store_upload(storage: StorageBackend, file: UploadFile, category: str, max_size_mb: int) -> str:
    """Validate an uploaded image and write it to storage. Returns the servable path."""
    content_type = file.content_type or ""
    if not content_type.startswith("image/") or content_type in BLOCKED_TYPES:
        raise ValidationError("Only image files are allowed")
    data = await file.read()
    if not data:
        raise ValidationError("Uploaded file is empty")
    if len(data) > max_size_mb * 1024 * 1024:
        raise ValidationError(f"File too large. Max {max_size_mb}MB")
    return storage.save(category, data, _get_ext(file))


# Singleton - swap implementation here when moving to object storage
_storage: StorageBackend | None = None


def get_storage() -> StorageBackend:
    global _storage
    if _storage is None:
        _storage = LocalStorage()
    return _storage
