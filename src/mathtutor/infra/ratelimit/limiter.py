"""Fixed-window rate-limit gate for the ``/api`` router.

``build_rate_limiter`` is a lifespan dependency: it picks a backend
(Redis when configured and reachable, otherwise the in-process table),
stores a ``RateLimiter`` on ``app.state`` and runs the periodic sweep of
expired windows until shutdown.

``enforce_rate_limit`` is attached to the whole ``/api`` router, so it
runs for every ``/api/*`` path, but only paths listed in
``rate_limit.limited_paths`` consume budget.  A rejection raises
``RateLimited``; the handler in ``mathtutor.api.exceptions`` turns it into
a 429 response.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, FastAPI, Request
from redis.asyncio import Redis

from mathtutor.configs.config import AppConfig, get_app_config
from mathtutor.configs.system import RateLimitConfig
from mathtutor.infra.lifespan import get_app
from mathtutor.infra.real_ip import get_real_ip
from mathtutor.infra.redis import build_redis

from .base import RateLimitBackend, RateLimitDecision, RateLimited
from .local_backend import LocalRateLimitBackend
from .redis_backend import RedisRateLimitBackend

logger = logging.getLogger(__name__)


class RateLimiter:
    """Binds a counter backend to the set of limited paths."""

    def __init__(
        self,
        backend: RateLimitBackend,
        *,
        limited_paths: list[str],
        enabled: bool = True,
    ) -> None:
        self.backend = backend
        self._limited_paths = frozenset(p.rstrip("/") or "/" for p in limited_paths)
        self._enabled = enabled

    def applies_to(self, path: str) -> bool:
        return self._enabled and (path.rstrip("/") or "/") in self._limited_paths

    async def check(self, client_key: str) -> RateLimitDecision:
        return await self.backend.check(client_key)

    async def enforce(self, path: str, client_key: str) -> None:
        """Raise ``RateLimited`` if *client_key* is over budget on *path*."""
        if not self.applies_to(path):
            return
        decision = await self.check(client_key)
        if not decision.allowed:
            logger.info(
                "Rate limited %s on %s (retry after %ds)",
                client_key,
                path,
                decision.retry_after,
                extra={
                    "client_key": client_key,
                    "path": path,
                    "retry_after": decision.retry_after,
                },
            )
            raise RateLimited("Too many requests", retry_after=decision.retry_after)

    async def aclose(self) -> None:
        await self.backend.aclose()


def build_backend(
    config: RateLimitConfig, redis_client: Redis | None
) -> RateLimitBackend:
    """Choose and construct the counter backend."""
    if config.backend == "redis" and redis_client is not None:
        return RedisRateLimitBackend(
            redis=redis_client,
            window=config.window,
            max_requests=config.max_requests,
        )
    if config.backend == "redis":
        logger.warning("Redis rate-limit backend requested but no client; using local.")
    return LocalRateLimitBackend(
        window=config.window, max_requests=config.max_requests
    )


async def sweep_periodically(backend: RateLimitBackend, interval: float) -> None:
    """Drop expired windows every *interval* seconds, forever."""
    while True:
        await asyncio.sleep(interval)
        removed = backend.sweep()
        if removed:
            logger.debug("Rate-limit sweep removed %d expired entries", removed)


# ---------------------------------------------------------------------------
# Lifespan dependency
# ---------------------------------------------------------------------------


async def build_rate_limiter(
    app: Annotated[FastAPI, Depends(get_app)],
    redis_client: Annotated[Redis | None, Depends(build_redis)],
    config: Annotated[AppConfig, Depends(get_app_config)],
) -> AsyncGenerator[None, None]:
    """Create a ``RateLimiter``, attach to ``app.state``; close on shutdown."""
    rl = config.rate_limit
    backend = build_backend(rl, redis_client)
    limiter = RateLimiter(backend, limited_paths=rl.limited_paths, enabled=rl.enabled)
    app.state.rate_limiter = limiter

    sweeper = asyncio.create_task(
        sweep_periodically(backend, rl.window.total_seconds()),
        name="rate-limit-sweeper",
    )
    logger.info(
        "RateLimiter: %s backend (%d requests / %s, paths=%s, enabled=%s)",
        backend.name,
        rl.max_requests,
        rl.window,
        rl.limited_paths,
        rl.enabled,
    )
    try:
        yield
    finally:
        sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper
        await limiter.aclose()


# ---------------------------------------------------------------------------
# Per-request dependencies
# ---------------------------------------------------------------------------


def get_rate_limiter(request: Request) -> RateLimiter:
    """Return the ``RateLimiter`` stored on ``app.state`` by the lifespan."""
    return request.app.state.rate_limiter


async def enforce_rate_limit(
    request: Request,
    real_ip: Annotated[str, Depends(get_real_ip)],
    limiter: Annotated[RateLimiter, Depends(get_rate_limiter)],
) -> None:
    """Side-effect dependency for the ``/api`` router."""
    await limiter.enforce(request.url.path, real_ip)
