"""
Core Rate Limiter Implementation
"""

import logging
from typing import Callable, List, Union

from .clock import get_current_microseconds
from .config import RateLimiterOptions
from .decision import RateLimitInfo, calculate_info

logger = logging.getLogger(__name__)

Id = Union[int, str]


class RateLimiter:
    """
    Base class for sliding window rate limiters.

    Subclasses provide storage through ``get_timestamps`` and ``clear``.
    Durations are passed in milliseconds and kept internally in microseconds.
    """

    def __init__(
        self,
        *,
        interval: float,
        max_in_interval: int,
        min_difference: float = 0,
        clock: Callable[[], int] = get_current_microseconds,
    ):
        self.options = RateLimiterOptions(
            interval=interval,
            max_in_interval=max_in_interval,
            min_difference=min_difference,
        )
        self.interval = self.options.interval_us
        self.max_in_interval = self.options.max_in_interval
        self.min_difference = self.options.min_difference_us
        self.clock = clock

    async def limit_with_info(self, id: Id) -> RateLimitInfo:
        """
        Attempts an action for the provided ID.

        The action is recorded even when it is blocked, so callers retrying
        faster than allowed stay blocked.
        """
        timestamps = await self.get_timestamps(id, True)
        info = self.calculate_info(timestamps)
        logger.debug("limit id=%s blocked=%s remaining=%s", id, info.blocked, info.actions_remaining)
        return info

    async def would_limit_with_info(self, id: Id) -> RateLimitInfo:
        """Returns what would happen if an action were attempted for the provided ID."""
        existing_timestamps = await self.get_timestamps(id, False)
        current_timestamp = self.clock()
        info = self.calculate_info([*existing_timestamps, current_timestamp], is_would=True)
        logger.debug("would_limit id=%s blocked=%s", id, info.blocked)
        return info

    async def limit(self, id: Id) -> bool:
        """
        Attempts an action for the provided ID.

        Returns:
            True if the action is blocked, False if allowed
        """
        return (await self.limit_with_info(id)).blocked

    async def would_limit(self, id: Id) -> bool:
        """Returns True if an action for the provided ID would be blocked."""
        return (await self.would_limit_with_info(id)).blocked

    async def clear(self, id: Id) -> None:
        """Clears rate limiting state for the provided ID."""
        raise NotImplementedError

    async def get_timestamps(self, id: Id, add_new_timestamp: bool) -> List[int]:
        """
        Returns the timestamps of actions attempted within ``interval`` for the
        provided ID. When ``add_new_timestamp`` is set, records a new action at
        the current time first.
        """
        raise NotImplementedError

    def calculate_info(self, timestamps: List[int], is_would: bool = False) -> RateLimitInfo:
        return calculate_info(
            timestamps,
            interval=self.interval,
            max_in_interval=self.max_in_interval,
            min_difference=self.min_difference,
            is_would=is_would,
        )
