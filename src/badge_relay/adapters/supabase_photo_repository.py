"""Supabase-backed photo repository."""

from dataclasses import dataclass

from supabase import Client

from badge_relay.domain.photos import PhotoFilter, PhotoRecord
from badge_relay.services.photos import PhotoRepository


@dataclass
class SupabasePhotoRepository(PhotoRepository):
    """Supabase implementation for photo row persistence."""

    client: Client
    table: str = "photos"

    def create_photo(
        self,
        file_url: str,
        file_path: str | None,
        name: str | None,
        role: str | None,
    ) -> PhotoRecord:
        """Insert a photo row and return it."""
        payload: dict[str, object] = {"file_url": file_url}
        if file_path is not None:
            payload["file_path"] = file_path
        if name is not None:
            payload["name"] = name
        if role is not None:
            payload["role"] = role
        response = self.client.table(self.table).insert(payload).execute()
        if not response.data:
            raise RuntimeError("Failed to create photo row")
        return PhotoRecord.from_row(response.data[0])

    def get_photo(self, photo_id: str) -> PhotoRecord | None:
        """Return a photo by id, if present."""
        response = (
            self.client.table(self.table)
            .select("*")
            .eq("id", photo_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return PhotoRecord.from_row(response.data[0])

    def list_photos(self, photo_filter: PhotoFilter, limit: int) -> list[PhotoRecord]:
        """Return photos, newest first."""
        query = (
            self.client.table(self.table)
            .select("*")
            .order("created_at", desc=True)
            .limit(limit)
        )
        if photo_filter is PhotoFilter.PENDING:
            query = query.eq("processed", False)
        elif photo_filter is PhotoFilter.PROCESSED:
            query = query.eq("processed", True)
        response = query.execute()
        return [PhotoRecord.from_row(row) for row in response.data or []]

    def mark_processed(self, photo_id: str) -> None:
        """Flag a photo as processed."""
        (
            self.client.table(self.table)
            .update({"processed": True})
            .eq("id", photo_id)
            .execute()
        )
