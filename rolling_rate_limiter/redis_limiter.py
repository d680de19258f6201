"""
Redis storage for the sliding window rate limiter.

Each identifier maps to one sorted set whose scores are microsecond
timestamps. Every read runs as a single MULTI/EXEC transaction, so separate
processes sharing the same Redis enforce one common limit.
"""

import inspect
import logging
import uuid
from typing import Any, Callable, List, Sequence

import redis
import redis.asyncio

from .clock import get_current_microseconds, microseconds_to_seconds
from .config import REDIS_DB, REDIS_HOST, REDIS_PASSWORD, REDIS_PORT, REDIS_SSL
from .exceptions import RateLimiterStoreError
from .limiter import Id, RateLimiter

logger = logging.getLogger(__name__)


async def _resolve(result):
    # redis.asyncio returns coroutines, redis.Redis returns values.
    if inspect.isawaitable(result):
        return await result
    return result


class RedisRateLimiter(RateLimiter):
    """
    Rate limiter storing timestamps in Redis sorted sets.

    Args:
        client: Connected ``redis.asyncio.Redis`` or ``redis.Redis`` client; its
            lifecycle stays with the caller
        namespace: Prefix for every key written by this limiter
    """

    def __init__(
        self,
        *,
        client: Any,
        namespace: str,
        interval: float,
        max_in_interval: int,
        min_difference: float = 0,
        clock: Callable[[], int] = get_current_microseconds,
    ):
        super().__init__(
            interval=interval,
            max_in_interval=max_in_interval,
            min_difference=min_difference,
            clock=clock,
        )
        self.client = client
        self.namespace = namespace
        self.ttl = microseconds_to_seconds(self.interval)

    def make_key(self, id: Id) -> str:
        return f"{self.namespace}{id}"

    async def clear(self, id: Id) -> None:
        key = self.make_key(id)
        try:
            await _resolve(self.client.delete(key))
        except redis.RedisError as e:
            logger.error("Redis error while clearing key=%s: %s", key, e)
            raise RateLimiterStoreError(f"Failed to clear rate limiting state for {key}") from e

    async def get_timestamps(self, id: Id, add_new_timestamp: bool) -> List[int]:
        now = self.clock()
        key = self.make_key(id)
        clear_before = now - self.interval

        batch = self.client.pipeline(transaction=True)
        batch.zremrangebyscore(key, 0, clear_before)
        if add_new_timestamp:
            # Unique member so two actions in the same microsecond both count.
            batch.zadd(key, {uuid.uuid4().hex: now})
        batch.zrange(key, 0, -1, withscores=True)
        batch.expire(key, self.ttl)

        try:
            result = await _resolve(batch.execute())
        except redis.RedisError as e:
            logger.error("Redis error while reading key=%s: %s", key, e)
            raise RateLimiterStoreError(f"Failed to read rate limiting state for {key}") from e

        zrange_output = result[2] if add_new_timestamp else result[1]
        return extract_timestamps(zrange_output)


def extract_timestamps(zrange_output: Sequence[Any]) -> List[int]:
    """
    Normalizes a ZRANGE ... WITHSCORES reply into ascending integer timestamps.

    Accepts both ``[(member, score), ...]`` (redis-py) and the flat
    ``[member, score, member, score, ...]`` form. Members are discarded.
    """
    if not zrange_output:
        return []
    if isinstance(zrange_output[0], (list, tuple)):
        scores = [pair[1] for pair in zrange_output]
    else:
        scores = zrange_output[1::2]
    return [_to_microseconds(score) for score in scores]


def _to_microseconds(score: Any) -> int:
    if isinstance(score, bytes):
        score = score.decode('utf-8')
    if isinstance(score, str):
        try:
            return int(score)
        except ValueError:
            return int(float(score))
    return int(score)


def get_redis_client() -> redis.asyncio.Redis:
    """
    Builds an async Redis client from the environment configuration.

    Closing the client is the caller's responsibility.
    """
    return redis.asyncio.Redis(
        host=REDIS_HOST,
        port=REDIS_PORT,
        db=REDIS_DB,
        password=REDIS_PASSWORD,
        ssl=REDIS_SSL,
    )
