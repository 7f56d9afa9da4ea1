"""Photo download client."""

from dataclasses import dataclass

import httpx

from badge_relay.services.photos import PhotoDownloader


@dataclass
class HttpxPhotoDownloader(PhotoDownloader):
    """Photo downloader using httpx."""

    http_client: httpx.AsyncClient

    @classmethod
    def create(cls) -> "HttpxPhotoDownloader":
        """Create a downloader with a managed httpx session."""
        return cls(http_client=httpx.AsyncClient(follow_redirects=True))

    async def download(self, url: str) -> bytes:
        """Download the photo bytes at `url`."""
        response = await self.http_client.get(url, timeout=20)
        response.raise_for_status()
        return response.content

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
