"""
Rate Limiter Exceptions
"""


class RateLimiterError(Exception):
    """Base class for every error raised by the rate limiter."""


class ConfigurationError(RateLimiterError, ValueError):
    """Raised at construction time when the window configuration is invalid."""


class RateLimiterStoreError(RateLimiterError):
    """
    Raised when the storage backend fails and no verdict can be computed.

    The underlying exception is chained as ``__cause__``.
    """
