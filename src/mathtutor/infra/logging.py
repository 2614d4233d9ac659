"""Structured logging bootstrap.

Every ``logging.getLogger(__name__)`` call across the app (and uvicorn)
goes through one stdout handler that writes either JSON lines
(``json_output=True``) or coloured text for local development.

The relay and the rate limiter attach request context through ``extra=``
using the keys in ``CONTEXT_FIELDS``.  JSON output carries them as
top-level keys next to ``service`` and ``version``; text output appends
them as ``key=value`` pairs.  OpenTelemetry ``trace_id`` / ``span_id`` are
attached to every record, empty when no tracer provider is installed.
"""

from __future__ import annotations

import logging
import sys

from opentelemetry import trace

from mathtutor import __version__
from mathtutor.configs.system import LoggingConfig

SERVICE_NAME = "mathtutor"

CONTEXT_FIELDS = (
    "client_key",
    "path",
    "retry_after",
    "model",
    "prompt_version",
    "outcome",
    "fragments",
    "duration_s",
)


class _TraceContextFilter(logging.Filter):
    """Injects OTEL trace/span IDs into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        ctx = trace.get_current_span().get_span_context()
        if ctx and ctx.is_valid:
            record.trace_id = format(ctx.trace_id, "032x")  # type: ignore[attr-defined]
            record.span_id = format(ctx.span_id, "016x")  # type: ignore[attr-defined]
        else:
            record.trace_id = ""  # type: ignore[attr-defined]
            record.span_id = ""  # type: ignore[attr-defined]
        return True


_DEV_FORMAT = "%(levelprefix)s %(asctime)s %(name)s  %(message)s"
_DEV_DATEFMT = "%H:%M:%S"


def _build_dev_formatter() -> logging.Formatter:
    from uvicorn.logging import DefaultFormatter

    class _ContextFormatter(DefaultFormatter):
        def format(self, record: logging.LogRecord) -> str:
            line = super().format(record)
            context = " ".join(
                f"{key}={getattr(record, key)}"
                for key in CONTEXT_FIELDS
                if hasattr(record, key)
            )
            return f"{line}  [{context}]" if context else line

    return _ContextFormatter(fmt=_DEV_FORMAT, datefmt=_DEV_DATEFMT, use_colors=True)


def _build_formatter(config: LoggingConfig) -> logging.Formatter:
    if not config.json_output:
        return _build_dev_formatter()

    from pythonjsonlogger.json import JsonFormatter

    return JsonFormatter(
        fmt="%(asctime)s %(levelname)s %(name)s %(message)s "
        "%(trace_id)s %(span_id)s",
        rename_fields={
            "asctime": "timestamp",
            "levelname": "level",
            "name": "logger",
        },
        static_fields={"service": SERVICE_NAME, "version": __version__},
        defaults={"trace_id": "", "span_id": ""},
    )


def setup_logging(config: LoggingConfig | None = None) -> logging.Handler:
    """Configure the root logger; call once from the app factory.

    Returns the installed handler.
    """
    if config is None:
        config = LoggingConfig()

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(_TraceContextFilter())
    handler.setFormatter(_build_formatter(config))

    root = logging.getLogger()
    root.setLevel(config.level.upper())
    root.handlers = [handler]

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvi = logging.getLogger(name)
        uvi.handlers = [handler]
        uvi.propagate = False

    for name in config.quiet_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)

    return handler
