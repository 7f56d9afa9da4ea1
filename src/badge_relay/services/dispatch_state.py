"""Typed persistence for dispatch preferences and session state."""

import json
from dataclasses import dataclass, field
from typing import Protocol

from badge_relay.domain.dispatch import DevicePreferences, TabSessionState

AUTO_DISPATCH_KEY = "auto_dispatch_enabled"
ARMED_KEY = "armed"
DISPATCHED_IDS_KEY = "dispatched_ids"


class KeyValueStore(Protocol):
    """String key/value storage."""

    def get(self, key: str) -> str | None:
        """Return the stored value, if present."""

    def set(self, key: str, value: str) -> None:
        """Store a value."""

    def delete(self, key: str) -> None:
        """Remove a value if present."""


@dataclass
class InMemoryKeyValueStore(KeyValueStore):
    """Store scoped to the running process; cleared on restart."""

    values: dict[str, str] = field(default_factory=dict)

    def get(self, key: str) -> str | None:
        """Return the stored value, if present."""
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        """Store a value."""
        self.values[key] = value

    def delete(self, key: str) -> None:
        """Remove a value if present."""
        self.values.pop(key, None)


@dataclass
class DispatchStateStore:
    """Reads and writes the two dispatch settings records.

    Device preferences go to a store that survives restarts; the tab session goes
    to a store that does not.
    """

    device_store: KeyValueStore
    session_store: KeyValueStore

    def load_preferences(self) -> DevicePreferences:
        """Return persisted device preferences."""
        raw = self.device_store.get(AUTO_DISPATCH_KEY)
        return DevicePreferences(auto_dispatch_enabled=_parse_bool(raw))

    def save_preferences(self, preferences: DevicePreferences) -> None:
        """Persist device preferences."""
        self.device_store.set(
            AUTO_DISPATCH_KEY, json.dumps(preferences.auto_dispatch_enabled)
        )

    def load_session(self) -> TabSessionState:
        """Return the current session state."""
        armed = _parse_bool(self.session_store.get(ARMED_KEY))
        raw_ids = self.session_store.get(DISPATCHED_IDS_KEY)
        dispatched_ids: frozenset[str] = frozenset()
        if raw_ids:
            try:
                parsed = json.loads(raw_ids)
            except ValueError:
                parsed = []
            if isinstance(parsed, list):
                dispatched_ids = frozenset(str(item) for item in parsed)
        return TabSessionState(armed=armed, dispatched_ids=dispatched_ids)

    def save_session(self, session: TabSessionState) -> None:
        """Persist the session state."""
        self.session_store.set(ARMED_KEY, json.dumps(session.armed))
        self.session_store.set(
            DISPATCHED_IDS_KEY, json.dumps(sorted(session.dispatched_ids))
        )


def _parse_bool(raw: str | None) -> bool:
    if raw is None:
        return False
    try:
        return json.loads(raw) is True
    except ValueError:
        return False
