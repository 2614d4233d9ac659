"""Pydantic models and SSE framing for the HTTP API."""

import re

from pydantic import BaseModel, Field

DONE_SENTINEL = "[DONE]"

# SSE ends a line at CRLF, CR or LF
SSE_LINE_BREAK = re.compile(r"\r\n|\r|\n")

SSE_MEDIA_TYPE = "text/event-stream"
SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}

INTERNAL_ERROR_MESSAGE = "Internal Server Error"
TOO_MANY_REQUESTS_MESSAGE = "Too many requests"


class SolveRequest(BaseModel):
    """Request body of ``POST /api/solve``."""

    question: str | None = Field(
        default=None, description="Math problem text, sent to the model verbatim"
    )


class RenderRequest(BaseModel):
    """Request body of ``POST /api/render``."""

    text: str = Field(description="Markdown + LaTeX answer text")


class RenderResponse(BaseModel):
    html: str = Field(description="Sanitized HTML fragment")


class ErrorResponse(BaseModel):
    error: str = Field(description="Error summary")


def format_sse(data: str) -> str:
    """Frame *data* as one SSE event.

    A payload without line breaks becomes ``data: <payload>\\n\\n``.  Each
    embedded CRLF, CR or LF starts another ``data:`` line of the same event,
    which SSE parsers join back with ``\\n``; a CR therefore arrives as LF.
    """
    lines = "".join(f"data: {line}\n" for line in SSE_LINE_BREAK.split(data))
    return f"{lines}\n"
