"""Prometheus metrics for the tutor service.

All metrics use the ``mathtutor_`` prefix and are exposed on
``/metrics`` by ``mount_metrics``.
"""

from fastapi import FastAPI
from prometheus_client import Counter, Histogram, make_asgi_app

# ---------------------------------------------------------------------------
# Relay metrics
# ---------------------------------------------------------------------------

SOLVE_STREAMS_TOTAL = Counter(
    "mathtutor_solve_streams_total",
    "Solve streams by outcome",
    ["outcome"],  # ok | upstream_error | cancelled
)

RELAY_FRAGMENTS_TOTAL = Counter(
    "mathtutor_relay_fragments_total",
    "Model text fragments forwarded as SSE frames",
)

SOLVE_STREAM_DURATION_SECONDS = Histogram(
    "mathtutor_solve_stream_duration_seconds",
    "Wall-clock duration of a solve stream",
    buckets=(1, 2, 5, 10, 20, 30, 60, 120, 300),
)

# ---------------------------------------------------------------------------
# Gate metrics
# ---------------------------------------------------------------------------

RATE_LIMIT_REJECTIONS_TOTAL = Counter(
    "mathtutor_rate_limit_rejections_total",
    "Requests rejected by the fixed-window rate limiter",
    ["path"],
)

# ---------------------------------------------------------------------------
# Renderer metrics
# ---------------------------------------------------------------------------

RENDER_REQUESTS_TOTAL = Counter(
    "mathtutor_render_requests_total",
    "Markdown documents rendered to HTML",
)

MATH_RENDER_ERRORS_TOTAL = Counter(
    "mathtutor_math_render_errors_total",
    "Formulas replaced by an error placeholder",
    ["display_mode"],
)


def mount_metrics(app: FastAPI, path: str = "/metrics") -> None:
    """Expose the default registry on *path*."""
    app.mount(path, make_asgi_app())
