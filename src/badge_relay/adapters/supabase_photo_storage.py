"""Supabase Storage adapter for photo files."""

import asyncio
from dataclasses import dataclass

from supabase import Client

from badge_relay.services.photos import PhotoStorage, StorageError


@dataclass
class SupabasePhotoStorage(PhotoStorage):
    """Photo file storage backed by a Supabase bucket."""

    client: Client
    bucket: str = "photos"

    async def upload(self, path: str, content: bytes, content_type: str) -> None:
        """Upload a file without overwriting existing objects."""
        bucket = self.client.storage.from_(self.bucket)
        try:
            await asyncio.to_thread(
                bucket.upload,
                path,
                content,
                {
                    "content-type": content_type,
                    "cache-control": "3600",
                    "upsert": "false",
                },
            )
        except Exception as exc:
            raise StorageError(f"Upload failed for {path}") from exc

    def public_url(self, path: str) -> str:
        """Return the public URL for `path`."""
        return str(self.client.storage.from_(self.bucket).get_public_url(path))

    async def create_signed_url(self, path: str, ttl_seconds: int) -> str:
        """Return a temporary signed URL for `path`."""
        bucket = self.client.storage.from_(self.bucket)
        try:
            response = await asyncio.to_thread(
                bucket.create_signed_url, path, ttl_seconds
            )
        except Exception as exc:
            raise StorageError(f"Signing failed for {path}") from exc
        signed_url = response.get("signedURL") or response.get("signedUrl")
        if not signed_url:
            raise StorageError(f"Signing returned no URL for {path}")
        return str(signed_url)
