"""
Example Usage of Rate Limiter

This file shows how the rate limiter would be used in a real backend service.
"""

import asyncio
from typing import Optional

from rolling_rate_limiter import InMemoryRateLimiter, RateLimiterStoreError, RedisRateLimiter
from rolling_rate_limiter.config import RATE_LIMITER_NAMESPACE, RATE_LIMITS
from rolling_rate_limiter.redis_limiter import get_redis_client


def limiter_for(endpoint: str, client=None):
    """
    Builds a limiter for one endpoint preset. With a Redis client, every
    process sharing that Redis enforces the same limit.
    """
    options = RATE_LIMITS[endpoint]
    kwargs = {
        'interval': options.interval,
        'max_in_interval': options.max_in_interval,
        'min_difference': options.min_difference,
    }
    if client is None:
        return InMemoryRateLimiter(**kwargs)
    return RedisRateLimiter(client=client, namespace=f"{RATE_LIMITER_NAMESPACE}{endpoint}:", **kwargs)


async def handle_login_request(limiter, user_id: Optional[str], ip: str):
    """
    Example: How a login endpoint would use the rate limiter
    """
    identifier = f"user:{user_id}" if user_id else f"ip:{ip}"

    try:
        info = await limiter.limit_with_info(identifier)
    except RateLimiterStoreError:
        # The verdict is unknown. Failing closed is this endpoint's choice.
        return {'error': 'Service unavailable', 'status_code': 503}

    if info.blocked:
        return {
            'error': 'Too many requests. Please try again later.',
            'status_code': 429,
            'retry_after_ms': info.milliseconds_until_allowed,
        }

    # ... your actual login code here ...
    return {'success': True, 'rate_limit': info.as_dict()}


async def main():
    local = limiter_for('/login')
    for _ in range(3):
        print(await handle_login_request(local, 'user_42', '1.2.3.4'))

    client = get_redis_client()
    try:
        shared = limiter_for('/login', client)
        print(await handle_login_request(shared, None, '1.2.3.4'))
    finally:
        await client.aclose()


if __name__ == '__main__':
    asyncio.run(main())
