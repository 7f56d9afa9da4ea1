"""Operator notices."""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Protocol

from badge_relay.domain.dispatch import Notice

_logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Fire-and-forget presentation of operator notices."""

    def notify(self, notice: Notice) -> None:
        """Present a notice to the operator."""


@dataclass
class NoticeBoard(Notifier):
    """Keeps recent notices for the console to poll."""

    capacity: int = 50
    _entries: deque[tuple[int, Notice]] = field(init=False, repr=False)
    _sequence: int = field(default=0, init=False, repr=False)

    def __post_init__(self) -> None:
        self._entries = deque(maxlen=self.capacity)

    def notify(self, notice: Notice) -> None:
        """Record a notice and log it."""
        self._sequence += 1
        self._entries.append((self._sequence, notice))
        log = _logger.warning if notice.severity == "error" else _logger.info
        log("Notice %s: %s - %s", notice.kind.value, notice.title, notice.message)

    @property
    def last_sequence(self) -> int:
        """Sequence number of the newest notice."""
        return self._sequence

    def since(self, after: int = 0) -> list[tuple[int, Notice]]:
        """Return notices newer than sequence `after`, oldest first."""
        return [(seq, notice) for seq, notice in self._entries if seq > after]
