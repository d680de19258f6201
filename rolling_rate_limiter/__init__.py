"""
Rolling Rate Limiter

A sliding window rate limiter with in-memory and Redis storage.
"""

import logging

from .config import RateLimiterOptions
from .decision import RateLimitInfo, calculate_info
from .exceptions import ConfigurationError, RateLimiterError, RateLimiterStoreError
from .limiter import RateLimiter
from .memory import InMemoryRateLimiter
from .redis_limiter import RedisRateLimiter

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    'ConfigurationError',
    'InMemoryRateLimiter',
    'RateLimitInfo',
    'RateLimiter',
    'RateLimiterError',
    'RateLimiterOptions',
    'RateLimiterStoreError',
    'RedisRateLimiter',
    'calculate_info',
]
