"""
Sliding Window Decision

Pure computation turning the timestamps of recent actions into a verdict.
"""

from dataclasses import dataclass
from typing import Dict, Sequence

from .clock import microseconds_to_milliseconds


@dataclass(frozen=True)
class RateLimitInfo:
    """Verdict returned by ``limit_with_info`` and ``would_limit_with_info``."""

    blocked: bool
    blocked_due_to_count: bool
    blocked_due_to_min_difference: bool
    milliseconds_until_allowed: int
    actions_remaining: int

    def as_dict(self) -> Dict[str, object]:
        return {
            'blocked': self.blocked,
            'blockedDueToCount': self.blocked_due_to_count,
            'blockedDueToMinDifference': self.blocked_due_to_min_difference,
            'millisecondsUntilAllowed': self.milliseconds_until_allowed,
            'actionsRemaining': self.actions_remaining,
        }


def calculate_info(
    timestamps: Sequence[int],
    *,
    interval: int,
    max_in_interval: int,
    min_difference: int = 0,
    is_would: bool = False,
) -> RateLimitInfo:
    """
    Computes the verdict for the action whose timestamp is the last item of
    ``timestamps``.

    Args:
        timestamps: Ascending microsecond timestamps within the window, current action last
        interval: Window length in microseconds
        max_in_interval: Maximum number of actions within the window
        min_difference: Minimum microseconds between consecutive actions
        is_would: True when the current action has not been recorded

    Returns:
        RateLimitInfo for the current action
    """
    num_timestamps = len(timestamps)
    if num_timestamps == 0:
        raise ValueError('timestamps must contain the current action')

    current_timestamp = timestamps[-1]
    previous_timestamp = timestamps[-2] if num_timestamps > 1 else None

    blocked_due_to_count = num_timestamps > max_in_interval

    # A "would" timestamp can precede the previous one when clocks differ
    # between processes; a negative difference never triggers the check.
    blocked_due_to_min_difference = (
        min_difference > 0
        and previous_timestamp is not None
        and 0 <= current_timestamp - previous_timestamp < min_difference
    )

    blocked = blocked_due_to_count or blocked_due_to_min_difference
    actions_remaining = max(0, max_in_interval - num_timestamps)

    # Oldest timestamp still counting against the limit.
    oldest_counted = timestamps[max(0, num_timestamps - max_in_interval)]
    window_wait = oldest_counted - current_timestamp + interval

    if is_would:
        # Raw window wait, even when the window is not full.
        microseconds_until_allowed = window_wait
    else:
        microseconds_until_unblocked = (
            window_wait if num_timestamps >= max_in_interval else 0
        )
        microseconds_until_allowed = max(min_difference, microseconds_until_unblocked)

    return RateLimitInfo(
        blocked=blocked,
        blocked_due_to_count=blocked_due_to_count,
        blocked_due_to_min_difference=blocked_due_to_min_difference,
        milliseconds_until_allowed=microseconds_to_milliseconds(microseconds_until_allowed),
        actions_remaining=actions_remaining,
    )
