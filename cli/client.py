"""API client for the solve endpoint with SSE stream parsing."""

import logging
from typing import AsyncIterator

import httpx

from mathtutor.api.models import DONE_SENTINEL, SSE_LINE_BREAK, SSE_MEDIA_TYPE

from .config import CLIConfig

logger = logging.getLogger(__name__)


class SSEParser:
    """Incremental ``text/event-stream`` parser.

    Feed it decoded text as it arrives; it returns the ``data`` payload of
    every event completed so far.  Multiple ``data:`` lines of one event are
    joined with ``\\n`` and a single space after the colon is dropped.
    Lines end at CRLF, CR or LF; a CR at the end of a chunk is held back
    until the next chunk shows whether an LF follows.  Comments and other
    fields are ignored.
    """

    def __init__(self) -> None:
        self._buffer = ""
        self._data: list[str] = []

    def feed(self, text: str) -> list[str]:
        self._buffer += text
        events: list[str] = []

        while True:
            match = SSE_LINE_BREAK.search(self._buffer)
            if match is None:
                break
            if match.group() == "\r" and match.end() == len(self._buffer):
                break
            line = self._buffer[: match.start()]
            self._buffer = self._buffer[match.end() :]
            if not line:
                if self._data:
                    events.append("\n".join(self._data))
                    self._data = []
                continue
            if line.startswith(":"):
                continue

            field, _, value = line.partition(":")
            if field != "data":
                continue
            if value.startswith(" "):
                value = value[1:]
            self._data.append(value)

        return events


def _retry_after(response: httpx.Response) -> int | None:
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        logger.debug(f"Ignoring non-numeric Retry-After: {value}")
        return None


class TutorAPIClient:
    """Client for the mathtutor solve API."""

    def __init__(self, config: CLIConfig, client: httpx.AsyncClient | None = None):
        """Initialize the API client.

        Streams may run for minutes, so only connecting is bounded.
        """
        self.config = config
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(None, connect=config.connect_timeout)
        )

    async def solve(self, question: str) -> AsyncIterator[dict]:
        """Send a question and stream events.

        Yields
        ------
        dict
            ``{"type": "accepted"}`` once the server answered 200, then
            ``{"type": "content", "content": ...}`` per fragment and finally
            ``{"type": "done"}``.  Any failure ends the stream with a single
            ``{"type": "error", ...}`` event.
        """
        url = self.config.solve_url
        logger.debug(f"Making request to {url}")

        try:
            async with self.client.stream(
                "POST",
                url,
                json={"question": question},
                headers={"Accept": SSE_MEDIA_TYPE},
            ) as response:
                logger.debug(f"Response status: {response.status_code}")
                logger.debug(f"Response headers: {dict(response.headers)}")

                if response.status_code == 429:
                    retry_after = _retry_after(response)
                    yield {
                        "type": "error",
                        "message": "Too many requests. Try again later.",
                        "code": "RATE_LIMIT",
                        "retry_after": retry_after,
                    }
                    return

                if response.status_code != 200:
                    error_text = await response.aread()
                    yield {
                        "type": "error",
                        "message": f"HTTP {response.status_code}: "
                        f"{error_text.decode(errors='replace')}",
                        "code": "BAD_REQUEST"
                        if response.status_code == 400
                        else "HTTP_ERROR",
                        "status": response.status_code,
                    }
                    return

                yield {"type": "accepted"}

                parser = SSEParser()
                async for chunk in response.aiter_text():
                    for data in parser.feed(chunk):
                        if data == DONE_SENTINEL:
                            yield {"type": "done"}
                            return
                        yield {"type": "content", "content": data}

                yield {
                    "type": "error",
                    "message": "Stream ended before the answer was complete.",
                    "code": "INCOMPLETE",
                }

        except httpx.TimeoutException:
            yield {
                "type": "error",
                "message": "Request timed out.",
                "code": "TIMEOUT",
            }
        except httpx.ConnectError as e:
            yield {
                "type": "error",
                "message": f"Connection error: {e}",
                "code": "CONNECTION_ERROR",
            }
        except httpx.HTTPError as e:
            logger.warning(f"Stream aborted: {e}")
            yield {
                "type": "error",
                "message": f"Stream aborted: {e}",
                "code": "STREAM_ABORTED",
            }

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()
