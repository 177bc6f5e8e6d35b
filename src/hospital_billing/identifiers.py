"""Timestamp-plus-counter identifier allocation."""

import logging
import time
from threading import Lock
from typing import Callable

logger = logging.getLogger(__name__)


def _epoch_millis() -> int:
    return time.time_ns() // 1_000_000


class IdentifierAllocator:
    """Hands out prefixed identifiers that strictly increase.

    Each value is the current tick (epoch milliseconds by default). When the
    clock has not advanced past the last issued value, ``last + 1`` is used
    instead, so bursts inside one tick still get distinct identifiers at the
    cost of drifting slightly ahead of wall-clock time.

    Identifiers are unique per allocator instance only.
    """

    def __init__(
        self,
        prefix: str = "B",
        tick_source: Callable[[], int] | None = None,
    ):
        self._prefix = prefix
        self._tick_source = tick_source or _epoch_millis
        self._last_issued = 0
        self._lock = Lock()

    @property
    def prefix(self) -> str:
        return self._prefix

    @property
    def last_issued(self) -> int:
        with self._lock:
            return self._last_issued

    def allocate(self) -> str:
        """Return the next identifier, e.g. ``B1718000000123``."""
        with self._lock:
            tick = self._tick_source()
            if tick <= self._last_issued:
                logger.debug(
                    "Clock at %d not past last issued %d, bumping", tick, self._last_issued
                )
                tick = self._last_issued + 1
            self._last_issued = tick
        return f"{self._prefix}{tick}"

    def observe(self, identifier: str) -> None:
        """Raise the floor so future values sort after an existing identifier.

        Identifiers with another prefix or a non-numeric suffix are ignored.
        """
        if not identifier.startswith(self._prefix):
            return
        try:
            value = int(identifier[len(self._prefix):])
        except ValueError:
            return

        with self._lock:
            if value > self._last_issued:
                self._last_issued = value
