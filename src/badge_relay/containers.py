"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from supabase import AsyncClient, acreate_client, create_client

from badge_relay.adapters.httpx_photo_downloader import HttpxPhotoDownloader
from badge_relay.adapters.json_file_store import JsonFileKeyValueStore
from badge_relay.adapters.playwright_tabs import PlaywrightTabOpener
from badge_relay.adapters.supabase_change_feed import SupabaseChangeFeed
from badge_relay.adapters.supabase_photo_repository import SupabasePhotoRepository
from badge_relay.adapters.supabase_photo_storage import SupabasePhotoStorage
from badge_relay.config import Settings
from badge_relay.services.dispatch import DispatchController
from badge_relay.services.dispatch_state import (
    DispatchStateStore,
    InMemoryKeyValueStore,
)
from badge_relay.services.intake import PhotoIntake
from badge_relay.services.notifications import NoticeBoard
from badge_relay.services.photos import PhotoDownloader, PhotoService
from badge_relay.services.tabs import TabHandleManager
from badge_relay.services.targets import DispatchTargetResolver


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    photo_service: PhotoService
    photo_downloader: PhotoDownloader
    target_resolver: DispatchTargetResolver
    dispatch_controller: DispatchController
    notice_board: NoticeBoard
    photo_intake: PhotoIntake | None
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    photo_repository = SupabasePhotoRepository(
        supabase_client, table=resolved_settings.photos_table
    )
    photo_storage = SupabasePhotoStorage(
        supabase_client, bucket=resolved_settings.photos_bucket
    )
    photo_service = PhotoService(
        repository=photo_repository,
        storage=photo_storage,
        list_limit=resolved_settings.photo_list_limit,
    )
    photo_downloader = HttpxPhotoDownloader.create()
    target_resolver = DispatchTargetResolver(
        storage=photo_storage,
        base_url=resolved_settings.badges_url,
        signed_url_ttl_seconds=resolved_settings.signed_url_ttl_seconds,
    )
    tab_opener = PlaywrightTabOpener(headless=resolved_settings.browser_headless)
    notice_board = NoticeBoard()
    state_store = DispatchStateStore(
        device_store=JsonFileKeyValueStore(Path(resolved_settings.device_state_path)),
        session_store=InMemoryKeyValueStore(),
    )
    dispatch_controller = DispatchController(
        resolver=target_resolver,
        tabs=TabHandleManager(tab_opener),
        notifier=notice_board,
        state_store=state_store,
        min_interval_seconds=resolved_settings.dispatch_min_interval_seconds,
    )
    photo_intake = None
    if resolved_settings.realtime_enabled:

        async def create_realtime_client() -> AsyncClient:
            return await acreate_client(
                resolved_settings.supabase_url,
                resolved_settings.supabase_service_key,
            )

        photo_intake = PhotoIntake(
            feed=SupabaseChangeFeed(
                client_factory=create_realtime_client,
                table=resolved_settings.photos_table,
            ),
            handler=dispatch_controller.handle_insert,
        )

    async def close_resources() -> None:
        if photo_intake is not None:
            await photo_intake.stop()
        await dispatch_controller.close()
        await tab_opener.close()
        await photo_downloader.close()

    return AppContainer(
        settings=resolved_settings,
        photo_service=photo_service,
        photo_downloader=photo_downloader,
        target_resolver=target_resolver,
        dispatch_controller=dispatch_controller,
        notice_board=notice_board,
        photo_intake=photo_intake,
        close_resources=close_resources,
    )
