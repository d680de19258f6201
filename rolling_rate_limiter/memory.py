"""
In-memory storage for the sliding window rate limiter.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from .clock import get_current_microseconds
from .limiter import Id, RateLimiter

logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    timestamps: List[int] = field(default_factory=list)
    expiry: Optional[Any] = None

    def cancel_expiry(self) -> None:
        if self.expiry is not None:
            self.expiry.cancel()
            self.expiry = None


class InMemoryRateLimiter(RateLimiter):
    """
    Rate limiter storing timestamps in process memory.

    Old timestamps are pruned on every read. An identifier with no action for a
    full interval is dropped by a scheduled expiry, so memory is bounded by the
    active identifiers.

    ``scheduler`` is any object with ``call_later(delay_seconds, callback)``
    returning a cancellable handle; defaults to the running event loop.
    Safe under asyncio; threads sharing one instance need an external lock.
    """

    def __init__(
        self,
        *,
        interval: float,
        max_in_interval: int,
        min_difference: float = 0,
        clock: Callable[[], int] = get_current_microseconds,
        scheduler: Optional[Any] = None,
    ):
        super().__init__(
            interval=interval,
            max_in_interval=max_in_interval,
            min_difference=min_difference,
            clock=clock,
        )
        self.scheduler = scheduler
        self.storage: Dict[Id, _Entry] = {}

    async def clear(self, id: Id) -> None:
        entry = self.storage.pop(id, None)
        if entry is not None:
            entry.cancel_expiry()

    async def get_timestamps(self, id: Id, add_new_timestamp: bool) -> List[int]:
        current_timestamp = self.clock()
        clear_before = current_timestamp - self.interval

        entry = self.storage.get(id)
        if entry is None:
            if not add_new_timestamp:
                return []
            entry = self.storage[id] = _Entry()

        timestamps = [t for t in entry.timestamps if t > clear_before]

        if add_new_timestamp:
            timestamps.append(current_timestamp)
            entry.cancel_expiry()
            entry.expiry = self._scheduler().call_later(
                self.interval / 1_000_000, self._expire, id, entry
            )

        entry.timestamps = timestamps
        return list(timestamps)

    def _expire(self, id: Id, entry: _Entry) -> None:
        # Only drop the entry the timer was scheduled for.
        if self.storage.get(id) is entry:
            del self.storage[id]
            logger.debug("expired rate limiting state for id=%s", id)

    def _scheduler(self):
        if self.scheduler is not None:
            return self.scheduler
        return asyncio.get_running_loop()
