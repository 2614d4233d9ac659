"""SSE body generator for the solve relay.

``prime_stream`` pulls the first fragment *before* the response starts,
so upstream failures that happen before any text arrives still surface as
a regular 500 JSON response.  ``sse_stream`` then frames every fragment
in order and closes with a single ``[DONE]`` frame.  A failure after the
headers went out aborts the transport stream: it is logged here and
re-raised, and no further payload is written.
"""

import asyncio
import logging
from collections.abc import AsyncGenerator

from mathtutor.core.relay import UpstreamError

from .models import DONE_SENTINEL, format_sse

logger = logging.getLogger(__name__)


async def prime_stream(fragments: AsyncGenerator[str, None]) -> str | None:
    """First fragment of *fragments*, or ``None`` if the stream is empty."""
    try:
        return await anext(fragments)
    except StopAsyncIteration:
        return None


async def sse_stream(
    first: str | None,
    fragments: AsyncGenerator[str, None],
    *,
    send_traceback: bool = False,
) -> AsyncGenerator[str, None]:
    """Format relay fragments as SSE frames terminated by ``[DONE]``."""
    try:
        if first is not None:
            yield format_sse(first)
        async for fragment in fragments:
            yield format_sse(fragment)
    except UpstreamError as exc:
        logger.error(
            "Aborting solve stream after headers were sent: %s",
            exc,
            exc_info=send_traceback,
        )
        raise
    except asyncio.CancelledError:
        logger.info("Client went away; cancelling solve stream.")
        raise
    finally:
        await fragments.aclose()

    yield format_sse(DONE_SENTINEL)
