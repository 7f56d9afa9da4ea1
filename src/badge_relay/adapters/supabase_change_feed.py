"""Supabase Realtime change feed for photo inserts."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from supabase import AsyncClient

from badge_relay.domain.photos import PhotoRecord
from badge_relay.services.intake import ChangeFeed, Subscription

_logger = logging.getLogger(__name__)


@dataclass
class SupabaseSubscription(Subscription):
    """Realtime channel subscription."""

    client: AsyncClient
    channel: object

    async def unsubscribe(self) -> None:
        """Remove the realtime channel."""
        await self.client.remove_channel(self.channel)


@dataclass
class SupabaseChangeFeed(ChangeFeed):
    """Listens for INSERT events on the photos table."""

    client_factory: Callable[[], Awaitable[AsyncClient]]
    table: str = "photos"
    schema: str = "public"
    channel_name: str = "photos-channel"
    _client: AsyncClient | None = field(default=None, init=False, repr=False)

    async def subscribe(
        self, on_insert: Callable[[PhotoRecord], None]
    ) -> SupabaseSubscription:
        """Subscribe to photo inserts."""
        client = await self._get_client()

        def handle_change(payload: dict[str, object]) -> None:
            row = extract_inserted_row(payload)
            if row is None:
                _logger.warning("Ignoring realtime payload without a record")
                return
            on_insert(PhotoRecord.from_row(row))

        channel = client.channel(self.channel_name)
        channel.on_postgres_changes(
            "INSERT",
            schema=self.schema,
            table=self.table,
            callback=handle_change,
        )
        await channel.subscribe()
        return SupabaseSubscription(client=client, channel=channel)

    async def _get_client(self) -> AsyncClient:
        if self._client is None:
            self._client = await self.client_factory()
        return self._client


def extract_inserted_row(payload: dict[str, object]) -> dict[str, object] | None:
    """Return the inserted row from a realtime postgres_changes payload."""
    data = payload.get("data")
    if isinstance(data, dict):
        record = data.get("record")
        if isinstance(record, dict) and "id" in record:
            return record
    record = payload.get("new") or payload.get("record")
    if isinstance(record, dict) and "id" in record:
        return record
    return None
