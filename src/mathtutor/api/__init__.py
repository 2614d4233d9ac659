"""HTTP API.

Every route under ``/api`` passes through the rate-limit gate; only the
paths configured in ``rate_limit.limited_paths`` consume budget.
"""

from fastapi import APIRouter, Depends

from mathtutor.infra.ratelimit import enforce_rate_limit

from .health import router as health_router
from .render import router as render_router
from .solve import router as solve_router

api_router = APIRouter(prefix="/api", dependencies=[Depends(enforce_rate_limit)])
api_router.include_router(solve_router)
api_router.include_router(render_router)

__all__ = ["api_router", "health_router"]
