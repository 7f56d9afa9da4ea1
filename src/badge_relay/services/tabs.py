"""Management of the reusable badge generator tab."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

_logger = logging.getLogger(__name__)


class PopupBlockedError(RuntimeError):
    """Raised when the browser refuses to open a tab."""


class TabHandle(Protocol):
    """Back-reference to a browser tab the operator may close at any time."""

    def is_closed(self) -> bool:
        """Return True once the tab no longer exists."""

    async def navigate(self, url: str) -> None:
        """Load `url` in the tab."""

    async def bring_to_front(self) -> None:
        """Focus the tab."""

    async def close(self) -> None:
        """Close the tab."""


class TabOpener(Protocol):
    """Opens browser tabs."""

    async def open(self, url: str | None = None) -> TabHandle:
        """Open a tab, blank when `url` is None. Raises PopupBlockedError."""


class TabStatus(str, Enum):
    """Result of a tab operation."""

    OK = "ok"
    POPUP_BLOCKED = "popup_blocked"
    TAB_CLOSED = "tab_closed"
    REPLACED = "replaced"
    OPEN_FAILED = "open_failed"


@dataclass(frozen=True)
class OpenResult:
    """Result of opening a fresh tab."""

    status: TabStatus
    handle: TabHandle | None = None


@dataclass
class TabHandleManager:
    """Owns at most one armed tab and routes navigations to it."""

    opener: TabOpener
    _handle: TabHandle | None = field(default=None, init=False, repr=False)

    @property
    def has_live_handle(self) -> bool:
        """Return True when an armed tab is still open."""
        return self._handle is not None and not self._handle.is_closed()

    async def arm(self) -> TabStatus:
        """Open a blank tab to receive later navigations."""
        if self.has_live_handle:
            return TabStatus.OK
        try:
            self._handle = await self.opener.open()
        except PopupBlockedError:
            _logger.warning("Browser refused to open the dispatch tab")
            self._handle = None
            return TabStatus.POPUP_BLOCKED
        return TabStatus.OK

    async def navigate(self, url: str) -> TabStatus:
        """Redirect the armed tab to `url` and focus it.

        Returns REPLACED when the tab was disarmed or swapped for another one
        while the navigation was in flight; the current handle is left alone.
        """
        handle = self._handle
        if handle is None or handle.is_closed():
            self._handle = None
            return TabStatus.TAB_CLOSED
        await handle.navigate(url)
        if self._handle is not handle:
            return TabStatus.REPLACED
        if handle.is_closed():
            self._handle = None
            return TabStatus.TAB_CLOSED
        await handle.bring_to_front()
        return TabStatus.OK

    async def open_fresh(self, url: str) -> OpenResult:
        """Open a new, unmanaged tab directly at `url`."""
        try:
            handle = await self.opener.open(url)
        except PopupBlockedError:
            _logger.warning("Browser refused to open a tab for %s", url)
            return OpenResult(status=TabStatus.POPUP_BLOCKED)
        except Exception:
            _logger.exception("Failed to open a tab for %s", url)
            return OpenResult(status=TabStatus.OPEN_FAILED)
        return OpenResult(status=TabStatus.OK, handle=handle)

    async def disarm(self) -> None:
        """Close the armed tab if it is still open and forget it."""
        handle, self._handle = self._handle, None
        if handle is not None and not handle.is_closed():
            await handle.close()
