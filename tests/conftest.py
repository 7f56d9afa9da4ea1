"""Shared test fixtures."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from uuid import uuid4

import pytest

from badge_relay.config import Settings
from badge_relay.containers import AppContainer
from badge_relay.domain.photos import PhotoFilter, PhotoRecord
from badge_relay.services.dispatch import DispatchController
from badge_relay.services.dispatch_state import (
    DispatchStateStore,
    InMemoryKeyValueStore,
)
from badge_relay.services.intake import ChangeFeed, PhotoIntake, Subscription
from badge_relay.services.notifications import NoticeBoard
from badge_relay.services.photos import (
    PhotoDownloader,
    PhotoRepository,
    PhotoService,
    PhotoStorage,
    StorageError,
)
from badge_relay.services.tabs import (
    PopupBlockedError,
    TabHandle,
    TabHandleManager,
    TabOpener,
)
from badge_relay.services.targets import DispatchTargetResolver

BADGES_URL = "https://badges.example.com"
FAKE_SERVICE_KEY = (
    "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9."
    "eyJyb2xlIjoic2VydmljZV9yb2xlIn0."
    "c2lnbmF0dXJl"
)


@dataclass
class FakeTab(TabHandle):
    """Fake browser tab that records navigations."""

    urls: list[str] = field(default_factory=list)
    closed: bool = False
    focus_count: int = 0

    def is_closed(self) -> bool:
        return self.closed

    async def navigate(self, url: str) -> None:
        self.urls.append(url)

    async def bring_to_front(self) -> None:
        self.focus_count += 1

    async def close(self) -> None:
        self.closed = True


@dataclass
class FakeTabOpener(TabOpener):
    """Fake tab opener that can simulate pop-up blocking."""

    block_popups: bool = False
    open_error: Exception | None = None
    opened: list[FakeTab] = field(default_factory=list)

    async def open(self, url: str | None = None) -> FakeTab:
        if self.block_popups:
            raise PopupBlockedError("blocked")
        if self.open_error is not None:
            raise self.open_error
        tab = FakeTab()
        if url:
            tab.urls.append(url)
        self.opened.append(tab)
        return tab


@dataclass
class FakePhotoStorage(PhotoStorage):
    """In-memory photo storage with optional signing failures."""

    uploads: dict[str, bytes] = field(default_factory=dict)
    signed_requests: list[tuple[str, int]] = field(default_factory=list)
    fail_signing: bool = False
    fail_upload: bool = False

    async def upload(self, path: str, content: bytes, content_type: str) -> None:
        if self.fail_upload:
            raise StorageError("upload failed")
        self.uploads[path] = content

    def public_url(self, path: str) -> str:
        return f"https://cdn.example.com/photos/{path}"

    async def create_signed_url(self, path: str, ttl_seconds: int) -> str:
        self.signed_requests.append((path, ttl_seconds))
        if self.fail_signing:
            raise StorageError("signing failed")
        return f"https://signed.example.com/{path}?token=abc"


@dataclass
class InMemoryPhotoRepository(PhotoRepository):
    """In-memory photo repository for tests."""

    photos: dict[str, PhotoRecord] = field(default_factory=dict)

    def add(self, record: PhotoRecord) -> PhotoRecord:
        self.photos[record.id] = record
        return record

    def create_photo(
        self,
        file_url: str,
        file_path: str | None,
        name: str | None,
        role: str | None,
    ) -> PhotoRecord:
        return self.add(
            PhotoRecord(
                id=str(uuid4()),
                file_url=file_url,
                file_path=file_path,
                created_at=datetime.now(tz=UTC),
                name=name,
                role=role,
            )
        )

    def get_photo(self, photo_id: str) -> PhotoRecord | None:
        return self.photos.get(photo_id)

    def list_photos(self, photo_filter: PhotoFilter, limit: int) -> list[PhotoRecord]:
        photos = sorted(
            self.photos.values(),
            key=lambda photo: photo.created_at or datetime.min.replace(tzinfo=UTC),
            reverse=True,
        )
        if photo_filter is PhotoFilter.PENDING:
            photos = [photo for photo in photos if not photo.processed]
        elif photo_filter is PhotoFilter.PROCESSED:
            photos = [photo for photo in photos if photo.processed]
        return photos[:limit]

    def mark_processed(self, photo_id: str) -> None:
        photo = self.photos[photo_id]
        self.photos[photo_id] = PhotoRecord(
            id=photo.id,
            file_url=photo.file_url,
            file_path=photo.file_path,
            created_at=photo.created_at,
            processed=True,
            name=photo.name,
            role=photo.role,
        )


@dataclass
class FakePhotoDownloader(PhotoDownloader):
    """Downloader returning static bytes."""

    content: bytes = b"fake-image-bytes"
    urls: list[str] = field(default_factory=list)

    async def download(self, url: str) -> bytes:
        self.urls.append(url)
        return self.content


@dataclass
class FakeSubscription(Subscription):
    """Records unsubscribe calls."""

    feed: "FakeChangeFeed"

    async def unsubscribe(self) -> None:
        self.feed.callback = None
        self.feed.unsubscribed = True


@dataclass
class FakeChangeFeed(ChangeFeed):
    """Change feed driven by the test."""

    callback: Callable[[PhotoRecord], None] | None = None
    unsubscribed: bool = False

    async def subscribe(
        self, on_insert: Callable[[PhotoRecord], None]
    ) -> FakeSubscription:
        self.callback = on_insert
        return FakeSubscription(feed=self)

    def emit(self, record: PhotoRecord) -> None:
        assert self.callback is not None
        self.callback(record)


@dataclass
class FakeClock:
    """Manually advanced monotonic clock."""

    now: float = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_photo(
    photo_id: str = "p1",
    file_url: str | None = "https://cdn.example.com/photos/p1.jpg",
    file_path: str | None = None,
    processed: bool = False,
    name: str | None = None,
    role: str | None = None,
) -> PhotoRecord:
    return PhotoRecord(
        id=photo_id,
        file_url=file_url,
        file_path=file_path,
        created_at=datetime(2025, 8, 24, 10, 30, tzinfo=UTC),
        processed=processed,
        name=name,
        role=role,
    )


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key=FAKE_SERVICE_KEY,
        console_password="console-secret",
        badges_url=BADGES_URL,
        device_state_path=str(tmp_path / "device.json"),
        realtime_enabled=False,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def tab_opener() -> FakeTabOpener:
    return FakeTabOpener()


@pytest.fixture
def photo_storage() -> FakePhotoStorage:
    return FakePhotoStorage()


@pytest.fixture
def photo_repository() -> InMemoryPhotoRepository:
    return InMemoryPhotoRepository()


@pytest.fixture
def notice_board() -> NoticeBoard:
    return NoticeBoard()


@pytest.fixture
def device_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def session_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def resolver(photo_storage: FakePhotoStorage) -> DispatchTargetResolver:
    return DispatchTargetResolver(storage=photo_storage, base_url=BADGES_URL)


@pytest.fixture
def make_controller(
    resolver: DispatchTargetResolver,
    tab_opener: FakeTabOpener,
    notice_board: NoticeBoard,
    device_store: InMemoryKeyValueStore,
    session_store: InMemoryKeyValueStore,
    clock: FakeClock,
) -> Callable[..., DispatchController]:
    def factory(
        tabs: TabHandleManager | None = None,
        session: InMemoryKeyValueStore | None = None,
    ) -> DispatchController:
        return DispatchController(
            resolver=resolver,
            tabs=tabs or TabHandleManager(tab_opener),
            notifier=notice_board,
            state_store=DispatchStateStore(
                device_store=device_store,
                session_store=session if session is not None else session_store,
            ),
            clock=clock,
        )

    return factory


@pytest.fixture
def controller(
    make_controller: Callable[..., DispatchController],
) -> DispatchController:
    return make_controller()


@pytest.fixture
def change_feed() -> FakeChangeFeed:
    return FakeChangeFeed()


@pytest.fixture
def container(
    settings: Settings,
    photo_repository: InMemoryPhotoRepository,
    photo_storage: FakePhotoStorage,
    resolver: DispatchTargetResolver,
    controller: DispatchController,
    notice_board: NoticeBoard,
    change_feed: FakeChangeFeed,
) -> AppContainer:
    photo_service = PhotoService(repository=photo_repository, storage=photo_storage)
    photo_intake = PhotoIntake(feed=change_feed, handler=controller.handle_insert)

    async def close_resources() -> None:
        await photo_intake.stop()
        await controller.close()

    return AppContainer(
        settings=settings,
        photo_service=photo_service,
        photo_downloader=FakePhotoDownloader(),
        target_resolver=resolver,
        dispatch_controller=controller,
        notice_board=notice_board,
        photo_intake=photo_intake,
        close_resources=close_resources,
    )
