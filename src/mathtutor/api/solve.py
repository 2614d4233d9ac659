"""``POST /api/solve``: stream a worked answer as Server-Sent Events."""

from fastapi import APIRouter
from fastapi.responses import StreamingResponse

from mathtutor.core.relay import validate_question

from .deps import APIConfigDep, SolveRelayDep
from .models import SSE_HEADERS, SSE_MEDIA_TYPE, ErrorResponse, SolveRequest
from .streaming import prime_stream, sse_stream

router = APIRouter(tags=["solve"])


@router.post(
    "/solve",
    response_class=StreamingResponse,
    responses={
        400: {"description": "Question missing or blank", "content": {"text/plain": {}}},
        429: {"model": ErrorResponse, "description": "Rate limited"},
        500: {"model": ErrorResponse, "description": "Upstream or payload failure"},
    },
)
async def solve(
    payload: SolveRequest,
    relay: SolveRelayDep,
    api_config: APIConfigDep,
) -> StreamingResponse:
    """
    Relay one question to the model and stream its answer.

    Each model text fragment becomes one ``data:`` event, in the order the
    model produced it; a final ``data: [DONE]`` event closes the stream.
    Blank questions are rejected with 400 before the model is called.
    """
    question = validate_question(payload.question)
    fragments = relay.stream(question)
    first = await prime_stream(fragments)
    return StreamingResponse(
        sse_stream(first, fragments, send_traceback=api_config.send_traceback),
        media_type=SSE_MEDIA_TYPE,
        headers=SSE_HEADERS,
    )
