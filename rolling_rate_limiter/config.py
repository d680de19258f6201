import os
from dataclasses import dataclass
from numbers import Real

from dotenv import load_dotenv

from .clock import milliseconds_to_microseconds
from .exceptions import ConfigurationError

load_dotenv()

"""
Rate Limiter Configuration

Window options, endpoint presets and Redis connection settings.
"""


def _is_number(value) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


@dataclass(frozen=True)
class RateLimiterOptions:
    """
    Sliding window configuration. All durations are in milliseconds.

    Args:
        interval: Length of the rolling window
        max_in_interval: Maximum number of actions allowed within the window
        min_difference: Minimum time between two consecutive actions (0 disables the check)
    """

    interval: float
    max_in_interval: int
    min_difference: float = 0

    def __post_init__(self):
        if not _is_number(self.interval) or self.interval <= 0:
            raise ConfigurationError('Must pass a positive number for `interval`')
        if (
            not isinstance(self.max_in_interval, int)
            or isinstance(self.max_in_interval, bool)
            or self.max_in_interval <= 0
        ):
            raise ConfigurationError('Must pass a positive integer for `max_in_interval`')
        if not _is_number(self.min_difference) or self.min_difference < 0:
            raise ConfigurationError('`min_difference` cannot be negative')
        if self.interval_us <= 0:
            raise ConfigurationError('`interval` must be at least one microsecond')

    @property
    def interval_us(self) -> int:
        return milliseconds_to_microseconds(self.interval)

    @property
    def min_difference_us(self) -> int:
        return milliseconds_to_microseconds(self.min_difference)


# Presets: {endpoint: options}, durations in milliseconds
RATE_LIMITS = {
    '/login': RateLimiterOptions(interval=60_000, max_in_interval=5, min_difference=1_000),
    '/search': RateLimiterOptions(interval=60_000, max_in_interval=20),
    '/read': RateLimiterOptions(interval=60_000, max_in_interval=100),
}

RATE_LIMITER_NAMESPACE = os.getenv('RATE_LIMITER_NAMESPACE', 'rolling-rate-limiter:')

REDIS_HOST = os.getenv('REDIS_HOST', 'localhost')
REDIS_PORT = int(os.getenv('REDIS_PORT', '6379'))
REDIS_DB = int(os.getenv('REDIS_DB', '0'))
REDIS_PASSWORD = os.getenv('REDIS_PASSWORD')
REDIS_SSL = os.getenv('REDIS_SSL', 'false').lower() in ('1', 'true', 'yes')
