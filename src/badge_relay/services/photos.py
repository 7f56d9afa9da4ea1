"""Photo capture and console listing service."""

import logging
import time
from dataclasses import dataclass
from typing import Protocol

from badge_relay.domain.photos import PhotoFilter, PhotoRecord

_logger = logging.getLogger(__name__)

_EXTENSIONS = {
    "image/jpeg": "jpeg",
    "image/jpg": "jpeg",
    "image/png": "png",
    "image/webp": "webp",
    "image/heic": "heic",
    "image/gif": "gif",
}


class StorageError(RuntimeError):
    """Raised when the storage backend rejects a request."""


class PhotoNotFoundError(LookupError):
    """Raised when a photo id does not exist."""


class PhotoRepository(Protocol):
    """Persistence interface for photo rows."""

    def create_photo(
        self,
        file_url: str,
        file_path: str | None,
        name: str | None,
        role: str | None,
    ) -> PhotoRecord:
        """Insert a photo row and return it."""

    def get_photo(self, photo_id: str) -> PhotoRecord | None:
        """Return a photo by id, if present."""

    def list_photos(self, photo_filter: PhotoFilter, limit: int) -> list[PhotoRecord]:
        """Return photos, newest first."""

    def mark_processed(self, photo_id: str) -> None:
        """Flag a photo as processed."""


class PhotoStorage(Protocol):
    """Object storage interface for photo files."""

    async def upload(self, path: str, content: bytes, content_type: str) -> None:
        """Upload a file at `path`."""

    def public_url(self, path: str) -> str:
        """Return the public URL for `path`."""

    async def create_signed_url(self, path: str, ttl_seconds: int) -> str:
        """Return a temporary signed URL for `path`."""


class PhotoDownloader(Protocol):
    """Fetches photo bytes from a URL."""

    async def download(self, url: str) -> bytes:
        """Download the photo at `url`."""


@dataclass
class PhotoService:
    """Capture uploads and the operator console's list operations."""

    repository: PhotoRepository
    storage: PhotoStorage
    list_limit: int = 100

    async def capture(
        self,
        content: bytes,
        content_type: str,
        name: str | None = None,
        role: str | None = None,
    ) -> PhotoRecord:
        """Upload a captured image and register it for the console."""
        file_path = _build_file_name(content_type)
        await self.storage.upload(file_path, content, content_type)
        public_url = self.storage.public_url(file_path)
        record = self.repository.create_photo(
            file_url=public_url,
            file_path=file_path,
            name=_clean(name),
            role=_clean(role),
        )
        _logger.info("Photo captured: id=%s path=%s", record.id, file_path)
        return record

    def list_photos(
        self, photo_filter: PhotoFilter = PhotoFilter.PENDING, search: str | None = None
    ) -> list[PhotoRecord]:
        """Return photos for the console, filtered by status and file name."""
        photos = self.repository.list_photos(photo_filter, self.list_limit)
        term = (search or "").strip().lower()
        if not term:
            return photos
        return [photo for photo in photos if term in photo.file_name.lower()]

    def get_photo(self, photo_id: str) -> PhotoRecord:
        """Return a photo or raise PhotoNotFoundError."""
        photo = self.repository.get_photo(photo_id)
        if photo is None:
            raise PhotoNotFoundError(photo_id)
        return photo

    def mark_processed(self, photo_id: str) -> PhotoRecord:
        """Flag a photo as processed and return the updated record."""
        photo = self.get_photo(photo_id)
        self.repository.mark_processed(photo_id)
        _logger.info("Photo marked processed: id=%s", photo_id)
        return PhotoRecord(
            id=photo.id,
            file_url=photo.file_url,
            file_path=photo.file_path,
            created_at=photo.created_at,
            processed=True,
            name=photo.name,
            role=photo.role,
        )


def _build_file_name(content_type: str) -> str:
    subtype = content_type.split("/")[-1].split(";")[0].strip() or "jpeg"
    extension = _EXTENSIONS.get(content_type.split(";")[0].strip(), subtype)
    return f"photo_{int(time.time() * 1000)}.{extension}"


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned or None
