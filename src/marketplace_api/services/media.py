"""Disk-backed storage for uploaded images.

Uploaded files are written under ``<root>/<kind>-images/`` with a generated
name ``<owner_id>-<uuid4 hex><ext>``; records store only that file name. When
a record is served, the file is read back and inlined as base64. Avatars
supplied by the identity provider are absolute URLs and are passed through
untouched.
"""

from __future__ import annotations

import base64
import logging
import uuid
from pathlib import Path
from typing import Final, Literal

from fastapi import UploadFile

from marketplace_api.core.settings import settings

logger = logging.getLogger(__name__)

MediaKind = Literal["post", "user"]

_KIND_DIRECTORIES: Final[dict[str, str]] = {
    "post": "post-images",
    "user": "user-images",
}


class MediaError(ValueError):
    """Raised when an upload is rejected."""


def is_external_url(reference: str | None) -> bool:
    """Return True if `reference` points outside local storage."""
    return reference is not None and reference.startswith(("http://", "https://"))


class MediaStore:
    """Save, inline and delete images for posts and user profiles."""

    def __init__(self, root: str | Path, max_bytes: int = 5 * 1024 * 1024) -> None:
        self.root = Path(root)
        self.max_bytes = max_bytes

    def directory(self, kind: MediaKind) -> Path:
        """Return (and create) the directory holding images of `kind`."""
        path = self.root / _KIND_DIRECTORIES[kind]
        path.mkdir(parents=True, exist_ok=True)
        return path

    def path_for(self, kind: MediaKind, name: str) -> Path:
        # Stored names never contain directories; strip any that slipped in.
        return self.directory(kind) / Path(name).name

    async def save(self, kind: MediaKind, owner_id: int, upload: UploadFile) -> str:
        """Validate and persist `upload`, returning the generated file name.

        Raises:
            MediaError: If the upload is not an image or exceeds the size limit.
        """
        content_type = upload.content_type or ""
        if not content_type.startswith("image/"):
            raise MediaError("Invalid file type")

        # One byte past the limit is enough to tell an oversized upload apart.
        data = await upload.read(self.max_bytes + 1)
        if not data:
            raise MediaError("Uploaded file is empty")
        if len(data) > self.max_bytes:
            raise MediaError(f"File too large (max {self.max_bytes // (1024 * 1024)}MB)")

        extension = Path(upload.filename or "").suffix.lower()
        name = f"{owner_id}-{uuid.uuid4().hex}{extension}"
        self.path_for(kind, name).write_bytes(data)
        logger.info("Stored %s image %s (%d bytes)", kind, name, len(data))
        return name

    def delete(self, kind: MediaKind, name: str | None) -> None:
        """Remove a stored image; missing files and OS errors are tolerated."""
        if not name or is_external_url(name):
            return
        try:
            self.path_for(kind, name).unlink()
        except FileNotFoundError:
            logger.debug("Image %s already absent", name)
        except OSError as exc:
            logger.warning("Failed to delete %s image %s: %s", kind, name, exc)

    def encode(self, kind: MediaKind, name: str | None) -> str | None:
        """Return the stored image as base64, or None when it is missing."""
        if not name:
            return None
        if is_external_url(name):
            return name
        path = self.path_for(kind, name)
        try:
            data = path.read_bytes()
        except FileNotFoundError:
            logger.warning("Image file not found: %s", path)
            return None
        return base64.b64encode(data).decode("ascii")


def build_media_store() -> MediaStore:
    """Build a media store rooted at the configured upload directory."""
    return MediaStore(settings.upload_root, max_bytes=settings.max_upload_bytes)


class _MediaStoreSingleton:
    """Singleton wrapper for MediaStore."""

    _instance: MediaStore | None = None

    @classmethod
    def get_instance(cls) -> MediaStore:
        """Get or create the singleton MediaStore instance."""
        if cls._instance is None:
            cls._instance = build_media_store()
        return cls._instance


def get_media_store() -> MediaStore:
    """Return the shared media store."""
    return _MediaStoreSingleton.get_instance()
