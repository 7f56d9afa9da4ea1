"""Badge generator target URL resolution."""

import logging
from dataclasses import dataclass
from typing import Protocol
from urllib.parse import quote, urlencode

from badge_relay.domain.photos import PhotoRecord
from badge_relay.services.photos import StorageError

_logger = logging.getLogger(__name__)


class SignedUrlProvider(Protocol):
    """Source of temporary URLs for private storage paths."""

    async def create_signed_url(self, path: str, ttl_seconds: int) -> str:
        """Return a signed URL for `path` valid for `ttl_seconds`."""


@dataclass
class DispatchTargetResolver:
    """Build badge generator URLs for photo records."""

    storage: SignedUrlProvider
    base_url: str
    signed_url_ttl_seconds: int = 900

    async def resolve_photo_url(self, record: PhotoRecord) -> str:
        """Return a URL the badge generator can fetch.

        Storage paths are signed; if signing fails the raw reference is returned
        so the dispatch can still go ahead.
        """
        if record.has_direct_url or not record.image_ref:
            return record.image_ref
        try:
            return await self.storage.create_signed_url(
                record.image_ref, self.signed_url_ttl_seconds
            )
        except StorageError:
            _logger.warning(
                "Signed URL failed, using raw reference: photo_id=%s", record.id
            )
            return record.image_ref

    async def resolve(self, record: PhotoRecord) -> str:
        """Return the badge generator URL for a record."""
        photo_url = await self.resolve_photo_url(record)
        return build_target_url(self.base_url, photo_url, record.name, record.role)


def build_target_url(
    base_url: str, photo_url: str, name: str | None = None, role: str | None = None
) -> str:
    """Append photo, name and role query parameters to the generator URL."""
    params = {"photo": photo_url}
    if name:
        params["name"] = name
    if role:
        params["role"] = role
    query = urlencode(params, quote_via=quote, safe="!'()*")
    return f"{base_url.rstrip('/')}/?{query}"
