"""OpenTelemetry tracer and span vocabulary.

Only the API package is used: spans are recorded when the host process
installs a tracer provider (e.g. via ``opentelemetry-instrument``) and are
no-ops otherwise.

Usage::

    from mathtutor.infra.telemetry import SPAN_RELAY_STREAM, tracer

    with tracer.start_as_current_span(SPAN_RELAY_STREAM) as span:
        ...
"""

from opentelemetry import trace

tracer = trace.get_tracer("mathtutor")

# ---------------------------------------------------------------------------
# Span names
# ---------------------------------------------------------------------------

SPAN_RELAY_STREAM = "relay.stream"
SPAN_RENDER = "render.markdown"

# ---------------------------------------------------------------------------
# Span attribute keys
# ---------------------------------------------------------------------------

ATTR_RELAY_MODEL = "relay.model"
ATTR_RELAY_PROMPT_VERSION = "relay.prompt_version"
ATTR_RELAY_QUESTION_LEN = "relay.question_len"
ATTR_RELAY_FRAGMENTS = "relay.fragments"
ATTR_RELAY_OUTCOME = "relay.outcome"

ATTR_RENDER_TEXT_LEN = "render.text_len"
