"""
Shared fixtures: a controllable clock, an event loop runner and an in-memory
Redis double implementing the sorted-set commands the limiter uses.
"""

import asyncio
import os

import pytest
import redis
import redis.asyncio

from rolling_rate_limiter import InMemoryRateLimiter, RedisRateLimiter

LIVE_REDIS_URL = os.getenv('RATE_LIMITER_TEST_REDIS_URL')


class FakeTimer:
    def __init__(self, when, callback, args):
        self.when = when
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeClock:
    """
    Microsecond clock and scheduler. Timers fire only when time is moved
    forward with ``set_time``.
    """

    def __init__(self):
        self.now = 0
        self.timers = []

    def __call__(self):
        return self.now

    def call_later(self, delay, callback, *args):
        timer = FakeTimer(self.now + round(delay * 1_000_000), callback, args)
        self.timers.append(timer)
        return timer

    def pending(self):
        return [t for t in self.timers if not t.cancelled]

    def set_time(self, milliseconds):
        target = milliseconds * 1000
        while True:
            due = [t for t in self.pending() if t.when <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.when)
            self.timers.remove(timer)
            self.now = max(self.now, timer.when)
            timer.callback(*timer.args)
        self.timers = self.pending()
        self.now = target


async def _completed(value):
    return value


class FakePipeline:
    def __init__(self, client):
        self.client = client
        self.commands = []

    def zremrangebyscore(self, key, min, max):
        self.commands.append(('zremrangebyscore', key, min, max))
        return self

    def zadd(self, key, mapping):
        self.commands.append(('zadd', key, dict(mapping)))
        return self

    def zrange(self, key, start, end, withscores=False):
        self.commands.append(('zrange', key, start, end, withscores))
        return self

    def expire(self, key, seconds):
        self.commands.append(('expire', key, seconds))
        return self

    def execute(self):
        if self.client.error is not None:
            raise self.client.error
        results = [self.client.apply(command) for command in self.commands]
        self.client.transactions.append(self.commands)
        self.commands = []
        if self.client.asynchronous:
            return _completed(results)
        return results


class FakeRedis:
    """
    Sorted-set subset of Redis. ``flat_zrange`` switches ZRANGE replies to the
    raw ``[member, score, ...]`` form with string scores.
    """

    def __init__(self, asynchronous=True, flat_zrange=False):
        self.asynchronous = asynchronous
        self.flat_zrange = flat_zrange
        self.data = {}
        self.ttls = {}
        self.transactions = []
        self.error = None

    def pipeline(self, transaction=True):
        assert transaction, "limiter must use a MULTI/EXEC pipeline"
        return FakePipeline(self)

    def delete(self, *keys):
        if self.error is not None:
            raise self.error
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        if self.asynchronous:
            return _completed(removed)
        return removed

    def apply(self, command):
        name, key = command[0], command[1]
        zset = self.data.setdefault(key, {})
        if name == 'zremrangebyscore':
            low, high = command[2], command[3]
            doomed = [m for m, s in zset.items() if low <= s <= high]
            for member in doomed:
                del zset[member]
            result = len(doomed)
        elif name == 'zadd':
            added = len([m for m in command[2] if m not in zset])
            zset.update(command[2])
            result = added
        elif name == 'zrange':
            ordered = sorted(zset.items(), key=lambda item: (item[1], item[0]))
            if self.flat_zrange:
                result = []
                for member, score in ordered:
                    result.extend([member, str(score)])
            else:
                result = [(member, float(score)) for member, score in ordered]
        elif name == 'expire':
            self.ttls[key] = command[2]
            result = bool(zset)
        else:
            raise AssertionError(f"unexpected command {name}")
        if not zset:
            self.data.pop(key, None)
        return result


@pytest.fixture
def run():
    loop = asyncio.new_event_loop()
    yield loop.run_until_complete
    loop.close()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture(params=['memory', 'redis', 'redis-flat', 'redis-sync', 'redis-live'])
def make_limiter(request, clock, run):
    """Factory building a limiter of every backend with the fake clock."""
    backend = request.param
    cleanup = []

    if backend == 'memory':
        def factory(**options):
            return InMemoryRateLimiter(clock=clock, scheduler=clock, **options)
    else:
        if backend == 'redis-live':
            if not LIVE_REDIS_URL:
                pytest.skip("RATE_LIMITER_TEST_REDIS_URL is not set")
            client = redis.asyncio.Redis.from_url(LIVE_REDIS_URL)
            cleanup.append(client.aclose)
        elif backend == 'redis-flat':
            client = FakeRedis(flat_zrange=True)
        elif backend == 'redis-sync':
            client = FakeRedis(asynchronous=False)
        else:
            client = FakeRedis()

        def factory(**options):
            return RedisRateLimiter(
                client=client,
                namespace='rolling-rate-limiter-test:',
                clock=clock,
                **options,
            )

    yield factory

    for close in cleanup:
        run(close())
