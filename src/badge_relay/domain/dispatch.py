"""Domain models for auto-dispatch state."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum


class DispatchMode(str, Enum):
    """Externally visible state of the dispatch controller."""

    DISABLED = "disabled"
    ENABLED_DISARMED = "enabled_disarmed"
    ENABLED_ARMED = "enabled_armed"


class DispatchOutcome(str, Enum):
    """Result of handling one insert event or manual dispatch."""

    DISPATCHED = "dispatched"
    NOT_ARMED = "not_armed"
    DUPLICATE = "duplicate"
    RATE_LIMITED = "rate_limited"
    ALREADY_PROCESSED = "already_processed"
    TAB_CLOSED = "tab_closed"
    POPUP_BLOCKED = "popup_blocked"
    OPEN_FAILED = "open_failed"
    SUPERSEDED = "superseded"


class ArmOutcome(str, Enum):
    """Result of an arm request."""

    ARMED = "armed"
    POPUP_BLOCKED = "popup_blocked"
    NOT_ENABLED = "not_enabled"


@dataclass(frozen=True)
class DevicePreferences:
    """Preferences that survive a console restart."""

    auto_dispatch_enabled: bool = False


@dataclass(frozen=True)
class TabSessionState:
    """State that lives only as long as the console session."""

    armed: bool = False
    dispatched_ids: frozenset[str] = frozenset()


class NoticeKind(str, Enum):
    """Kinds of operator notices."""

    PHOTO_RECEIVED = "photo_received"
    DISPATCHED = "dispatched"
    POPUP_BLOCKED = "popup_blocked"
    TAB_CLOSED = "tab_closed"
    OPEN_FAILED = "open_failed"
    RATE_LIMITED = "rate_limited"
    CONSOLE = "console"


@dataclass(frozen=True)
class Notice:
    """A toast-style message for the operator console."""

    kind: NoticeKind
    title: str
    message: str
    severity: str = "info"
    sound: bool = False
    created_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
