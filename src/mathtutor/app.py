"""FastAPI application entry point."""

import logging
from collections.abc import AsyncGenerator
from typing import Annotated

import uvicorn
from fastapi import Depends, FastAPI

from mathtutor.api import api_router, health_router
from mathtutor.api.exceptions import register_exception_handlers
from mathtutor.configs.config import AppConfig, get_app_config
from mathtutor.core.metrics import mount_metrics
from mathtutor.infra.lifespan import inject
from mathtutor.infra.logging import setup_logging
from mathtutor.infra.ratelimit import build_rate_limiter

logger = logging.getLogger(__name__)


@inject
async def lifespan(
    app: FastAPI,
    _rate_limiter: Annotated[None, Depends(build_rate_limiter)],
) -> AsyncGenerator[None, None]:
    """Long-lived resources are owned by the injected dependencies."""
    logger.info("mathtutor started")
    yield
    logger.info("mathtutor shutting down")


def get_app(config: AppConfig | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    if config is None:
        config = get_app_config()
    setup_logging(config.logging)

    app = FastAPI(
        title="mathtutor",
        description="Streams worked answers to math problems from an LLM",
        version="0.1.0",
        lifespan=lifespan,
    )

    register_exception_handlers(app)
    app.include_router(api_router)
    app.include_router(health_router)
    mount_metrics(app)

    return app


def main() -> None:
    """Run the API server with uvicorn."""
    config = get_app_config()
    uvicorn.run(
        "mathtutor.app:get_app",
        factory=True,
        host=config.api.host,
        port=config.api.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
