"""Async Redis client lifespan dependency.

``build_redis`` creates a Redis client only when the rate limiter is
configured for the shared ``redis`` backend, verifies the connection and
yields ``None`` when Redis is unreachable (the limiter then falls back to
its in-process table).
"""

import logging
from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from redis.asyncio import Redis

from mathtutor.configs.config import AppConfig, get_app_config

logger = logging.getLogger(__name__)


async def build_redis(
    config: Annotated[AppConfig, Depends(get_app_config)],
) -> AsyncGenerator[Redis | None, None]:
    """Create a Redis client; yield ``None`` if unused or unreachable."""
    if config.rate_limit.backend != "redis":
        yield None
        return

    client = Redis.from_url(config.third_party.redis_uri, decode_responses=True)
    verified: Redis | None = None
    try:
        await client.ping()
        verified = client
    except Exception:
        logger.warning(
            "Redis unavailable at %s -- falling back to local rate limiting.",
            config.third_party.redis_uri,
        )
        await client.aclose()

    yield verified

    if verified is not None:
        await verified.aclose()
