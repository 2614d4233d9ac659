"""Shared fixed-window counters in Redis.

One ``MULTI`` pipeline per check:

1. ``SET key 0 NX PX window``: opens the window on the first request
2. ``INCR key``: counts this request
3. ``PTTL key``: time left in the window, for ``Retry-After``

The key's TTL closes the window, so no sweep is needed and every worker
process sharing the Redis instance sees the same budget.
"""

from __future__ import annotations

from datetime import timedelta

from redis.asyncio import Redis

from .base import RateLimitBackend, RateLimitDecision, retry_after_seconds

_RATELIMIT_KEY = "mathtutor:ratelimit:{client_key}"


class RedisRateLimitBackend(RateLimitBackend):
    name = "redis"

    def __init__(
        self, *, redis: Redis, window: timedelta, max_requests: int
    ) -> None:
        self._redis = redis
        self._window_ms = int(window.total_seconds() * 1000)
        self._max_requests = max_requests

    async def check(self, client_key: str) -> RateLimitDecision:
        key = _RATELIMIT_KEY.format(client_key=client_key)

        pipe = self._redis.pipeline(transaction=True)
        pipe.set(key, 0, nx=True, px=self._window_ms)
        pipe.incr(key)
        pipe.pttl(key)
        _, count, ttl_ms = await pipe.execute()

        if int(count) <= self._max_requests:
            return RateLimitDecision.allow()

        if ttl_ms is None or int(ttl_ms) < 0:
            ttl_ms = self._window_ms
        return RateLimitDecision.reject(retry_after_seconds(int(ttl_ms) / 1000))

    def sweep(self) -> int:
        return 0

    async def aclose(self) -> None:
        # The client is owned by ``build_redis``.
        pass
