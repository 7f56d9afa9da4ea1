"""Auto-dispatch state machine for incoming photos.

The controller moves between three modes:

- ``DISABLED``: incoming photos only raise an arrival notice.
- ``ENABLED_DISARMED``: same, until the operator arms a tab.
- ``ENABLED_ARMED``: each new unprocessed photo is sent to the armed tab, at most
  once per session and no more often than the minimum interval.

Only the armed flag and dispatched ids are session-scoped, so a restarted console
with auto-dispatch enabled always comes back disarmed.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from badge_relay.domain.dispatch import (
    ArmOutcome,
    DevicePreferences,
    DispatchMode,
    DispatchOutcome,
    Notice,
    NoticeKind,
    TabSessionState,
)
from badge_relay.domain.photos import PhotoRecord
from badge_relay.services.dispatch_state import DispatchStateStore
from badge_relay.services.notifications import Notifier
from badge_relay.services.tabs import TabHandleManager, TabStatus
from badge_relay.services.targets import DispatchTargetResolver

_logger = logging.getLogger(__name__)

DEFAULT_MIN_INTERVAL_SECONDS = 2.0


@dataclass
class DispatchController:
    """Decides whether and how each new photo is handed to the badge generator."""

    resolver: DispatchTargetResolver
    tabs: TabHandleManager
    notifier: Notifier
    state_store: DispatchStateStore
    min_interval_seconds: float = DEFAULT_MIN_INTERVAL_SECONDS
    clock: Callable[[], float] = time.monotonic
    _enabled: bool = field(default=False, init=False)
    _armed: bool = field(default=False, init=False)
    _dispatched_ids: set[str] = field(default_factory=set, init=False)
    _last_dispatch_at: float | None = field(default=None, init=False)
    _announced_ids: set[str] = field(default_factory=set, init=False)

    def __post_init__(self) -> None:
        preferences = self.state_store.load_preferences()
        session = self.state_store.load_session()
        self._enabled = preferences.auto_dispatch_enabled
        self._dispatched_ids = set(session.dispatched_ids)
        self._armed = self._enabled and session.armed and self.tabs.has_live_handle
        if session.armed and not self._armed:
            self._save_session()

    @property
    def mode(self) -> DispatchMode:
        """Return the current controller mode."""
        if not self._enabled:
            return DispatchMode.DISABLED
        if self._armed:
            return DispatchMode.ENABLED_ARMED
        return DispatchMode.ENABLED_DISARMED

    @property
    def auto_dispatch_enabled(self) -> bool:
        """Return True when auto-dispatch is switched on."""
        return self._enabled

    @property
    def armed(self) -> bool:
        """Return True when an armed tab is ready."""
        return self._armed

    @property
    def dispatched_ids(self) -> frozenset[str]:
        """Photo ids auto-dispatched in this session."""
        return frozenset(self._dispatched_ids)

    @property
    def last_dispatch_at(self) -> float | None:
        """Clock reading of the latest successful auto-dispatch."""
        return self._last_dispatch_at

    async def set_auto_dispatch(self, enabled: bool) -> DispatchMode:
        """Switch auto-dispatch on or off; switching off also disarms."""
        self._enabled = enabled
        self.state_store.save_preferences(
            DevicePreferences(auto_dispatch_enabled=enabled)
        )
        if not enabled:
            await self._drop_tab()
        _logger.info("Auto-dispatch %s", "enabled" if enabled else "disabled")
        return self.mode

    async def arm(self) -> ArmOutcome:
        """Open the reusable tab that later dispatches navigate."""
        if not self._enabled:
            return ArmOutcome.NOT_ENABLED
        status = await self.tabs.arm()
        if status is TabStatus.POPUP_BLOCKED:
            self._armed = False
            self._save_session()
            self.notifier.notify(_popup_blocked_notice())
            return ArmOutcome.POPUP_BLOCKED
        self._armed = True
        self._save_session()
        _logger.info("Dispatch tab armed")
        return ArmOutcome.ARMED

    async def disarm(self) -> DispatchMode:
        """Close the armed tab and stop auto-dispatching until re-armed."""
        await self._drop_tab()
        _logger.info("Dispatch tab disarmed")
        return self.mode

    async def handle_insert(self, record: PhotoRecord) -> DispatchOutcome:
        """Handle one photo-created event from the change feed."""
        if self.mode is not DispatchMode.ENABLED_ARMED:
            self._announce_arrival(record)
            return DispatchOutcome.NOT_ARMED

        if record.id in self._dispatched_ids:
            _logger.debug("Skipping duplicate insert: photo_id=%s", record.id)
            return DispatchOutcome.DUPLICATE

        self._announce_arrival(record)

        now = self.clock()
        if (
            self._last_dispatch_at is not None
            and now - self._last_dispatch_at < self.min_interval_seconds
        ):
            _logger.info(
                "Auto-dispatch rate limited: photo_id=%s elapsed=%.3fs",
                record.id,
                now - self._last_dispatch_at,
            )
            return DispatchOutcome.RATE_LIMITED

        if record.processed:
            _logger.info("Skipping processed photo: photo_id=%s", record.id)
            return DispatchOutcome.ALREADY_PROCESSED

        target_url = await self.resolver.resolve(record)
        status = await self.tabs.navigate(target_url)
        if status is TabStatus.REPLACED or (
            status is TabStatus.TAB_CLOSED and not self._armed
        ):
            _logger.info(
                "Armed tab changed during dispatch, skipping: photo_id=%s", record.id
            )
            return DispatchOutcome.SUPERSEDED
        if status is TabStatus.TAB_CLOSED:
            _logger.warning("Armed tab closed, disarming: photo_id=%s", record.id)
            await self._on_tab_closed()
            return DispatchOutcome.TAB_CLOSED

        self._dispatched_ids.add(record.id)
        self._last_dispatch_at = self.clock()
        self._save_session()
        self.notifier.notify(
            Notice(
                kind=NoticeKind.DISPATCHED,
                title="Sent to badge generator",
                message=f"Photo {record.id[-8:]} opened in the badge tab",
            )
        )
        _logger.info("Auto-dispatched photo: photo_id=%s", record.id)
        return DispatchOutcome.DISPATCHED

    async def dispatch_manually(self, record: PhotoRecord) -> DispatchOutcome:
        """Open a record in a new tab, bypassing the auto-dispatch gates."""
        target_url = await self.resolver.resolve(record)
        result = await self.tabs.open_fresh(target_url)
        if result.status is TabStatus.POPUP_BLOCKED:
            self.notifier.notify(_popup_blocked_notice())
            return DispatchOutcome.POPUP_BLOCKED
        if result.status is TabStatus.OPEN_FAILED:
            self.notifier.notify(
                Notice(
                    kind=NoticeKind.OPEN_FAILED,
                    title="Could not open badge generator",
                    message=f"Photo {record.id[-8:]} could not be opened. Try again.",
                    severity="error",
                )
            )
            return DispatchOutcome.OPEN_FAILED
        _logger.info("Manually dispatched photo: photo_id=%s", record.id)
        return DispatchOutcome.DISPATCHED

    async def probe_tab(self) -> DispatchMode:
        """Disarm if the operator closed the armed tab since the last check."""
        if self._armed and not self.tabs.has_live_handle:
            _logger.warning("Armed tab found closed, disarming")
            await self._on_tab_closed()
        return self.mode

    async def close(self) -> None:
        """Release the armed tab at teardown."""
        await self.tabs.disarm()
        self._armed = False

    async def _on_tab_closed(self) -> None:
        await self._drop_tab()
        self.notifier.notify(
            Notice(
                kind=NoticeKind.TAB_CLOSED,
                title="Badge tab closed",
                message="The armed tab was closed. Arm again to resume.",
                severity="error",
                sound=True,
            )
        )

    async def _drop_tab(self) -> None:
        self._armed = False
        self._save_session()
        await self.tabs.disarm()

    def _save_session(self) -> None:
        self.state_store.save_session(
            TabSessionState(
                armed=self._armed, dispatched_ids=frozenset(self._dispatched_ids)
            )
        )

    def _announce_arrival(self, record: PhotoRecord) -> None:
        if record.id in self._announced_ids:
            return
        self._announced_ids.add(record.id)
        created = (
            record.created_at.strftime("%d/%m/%Y %H:%M")
            if record.created_at
            else "just now"
        )
        self.notifier.notify(
            Notice(
                kind=NoticeKind.PHOTO_RECEIVED,
                title="New photo received",
                message=f"Photo created {created}",
                sound=True,
            )
        )


def _popup_blocked_notice() -> Notice:
    return Notice(
        kind=NoticeKind.POPUP_BLOCKED,
        title="Tab blocked",
        message="The browser refused to open a tab. Allow pop-ups and try again.",
        severity="error",
    )
