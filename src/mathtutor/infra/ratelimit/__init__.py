"""Fixed-window rate limiting keyed by client IP.

Two backends share one contract (``check(client_key) -> RateLimitDecision``):

* Local: a per-process ``dict`` of ``RateLimitRecord`` swept every window.
* Redis: ``SET NX PX`` + ``INCR`` + ``PTTL`` in one pipeline, shared by
  all worker processes; expiry is left to Redis.
"""

from .base import (
    RateLimitBackend,
    RateLimitDecision,
    RateLimited,
    retry_after_seconds,
)
from .limiter import (
    RateLimiter,
    build_backend,
    build_rate_limiter,
    enforce_rate_limit,
    get_rate_limiter,
    sweep_periodically,
)
from .local_backend import LocalRateLimitBackend, RateLimitRecord
from .redis_backend import RedisRateLimitBackend

__all__ = [
    "LocalRateLimitBackend",
    "RateLimitBackend",
    "RateLimitDecision",
    "RateLimitRecord",
    "RateLimited",
    "RateLimiter",
    "RedisRateLimitBackend",
    "build_backend",
    "build_rate_limiter",
    "enforce_rate_limit",
    "get_rate_limiter",
    "retry_after_seconds",
    "sweep_periodically",
]
