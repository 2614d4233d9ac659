"""Lifespan dependency injection bridge.

``inject`` lets the FastAPI lifespan declare ``Depends()`` parameters
just like a route handler, so long-lived resources (Redis client, rate
limiter and its sweeper task) are built and torn down by
ordinary yield-dependencies.

Based on https://github.com/fastapi/fastapi/discussions/11742
"""

from contextlib import AsyncExitStack, asynccontextmanager
from functools import partial
from typing import Any, Callable

from fastapi import FastAPI, Request
from fastapi.dependencies.utils import get_dependant, solve_dependencies


def get_app(request: Request) -> FastAPI:
    """Lifespan dependency: returns the ``FastAPI`` application."""
    return request.app


def _lifespan_request(app: FastAPI, stack: AsyncExitStack) -> Request:
    """Synthetic request used only to drive dependency resolution.

    Newer FastAPI releases look up their exit stacks in the request scope;
    they all point at the lifespan stack so teardown happens at shutdown.
    """
    return Request(
        scope={
            "type": "http",
            "http_version": "1.1",
            "method": "GET",
            "scheme": "http",
            "path": "/",
            "raw_path": b"/",
            "query_string": b"",
            "root_path": "",
            "headers": ((b"x-request-scope", b"lifespan"),),
            "client": ("localhost", 80),
            "server": ("localhost", 80),
            "state": app.state,
            "app": app,
            "fastapi_astack": stack,
            "fastapi_inner_astack": stack,
            "fastapi_function_astack": stack,
        }
    )


def inject(
    lifespan: Callable[..., Any],
) -> Callable[[FastAPI], Any]:
    """Resolve ``Depends()`` parameters for a lifespan function.

    Usage::

        @inject
        async def lifespan(
            app: FastAPI,
            _limiter: Annotated[None, Depends(build_rate_limiter)],
        ):
            yield

    Teardown runs in reverse resolution order via ``AsyncExitStack``.
    ``app.dependency_overrides`` is respected, so tests can swap any
    lifespan dependency.
    """

    @asynccontextmanager
    async def wrapper(app: FastAPI):  # type: ignore[misc]
        dependant = get_dependant(path="/", call=partial(lifespan, app))

        async with AsyncExitStack() as stack:
            solved = await solve_dependencies(
                request=_lifespan_request(app, stack),
                dependant=dependant,
                async_exit_stack=stack,
                embed_body_fields=False,
                dependency_overrides_provider=app,
            )
            ctx = asynccontextmanager(lifespan)
            async with ctx(app, **solved.values):
                yield

    return wrapper
