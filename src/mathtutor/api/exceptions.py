"""Exception -> HTTP response mapping.

Error bodies follow the public contract: plain text for an empty
question, ``{"error": ...}`` JSON for everything else.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse

from mathtutor.core.metrics import RATE_LIMIT_REJECTIONS_TOTAL
from mathtutor.core.relay import EmptyQuestion, UpstreamError
from mathtutor.infra.ratelimit import RateLimited

from .models import INTERNAL_ERROR_MESSAGE, TOO_MANY_REQUESTS_MESSAGE, ErrorResponse

logger = logging.getLogger(__name__)


def _internal_error() -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(error=INTERNAL_ERROR_MESSAGE).model_dump(),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register custom exception handlers on ``app``.

    Must run before the app serves its first event: Starlette snapshots
    the handler table when it builds the middleware stack.
    """

    @app.exception_handler(EmptyQuestion)
    async def handle_empty_question(
        request: Request, exc: EmptyQuestion
    ) -> PlainTextResponse:
        return PlainTextResponse(str(exc), status_code=400)

    @app.exception_handler(RateLimited)
    async def handle_rate_limited(request: Request, exc: RateLimited) -> JSONResponse:
        RATE_LIMIT_REJECTIONS_TOTAL.labels(path=request.url.path).inc()
        return JSONResponse(
            status_code=429,
            content=ErrorResponse(error=TOO_MANY_REQUESTS_MESSAGE).model_dump(),
            headers={"Retry-After": str(exc.retry_after)},
        )

    @app.exception_handler(UpstreamError)
    async def handle_upstream_error(
        request: Request, exc: UpstreamError
    ) -> JSONResponse:
        logger.error("Model backend failed before streaming: %s", exc, exc_info=exc)
        return _internal_error()

    @app.exception_handler(RequestValidationError)
    async def handle_invalid_payload(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.warning("Rejected malformed payload on %s: %s", request.url.path, exc.errors())
        return _internal_error()

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s", request.url.path)
        return _internal_error()
