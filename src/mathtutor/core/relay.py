"""Streaming relay: one question in, model text fragments out.

The upstream iteration runs as a *producer* task that pushes fragments
into an ``asyncio.Queue``; ``SolveRelay.stream`` is the *consumer* the
HTTP layer iterates.  Fragments are forwarded exactly as the model
produced them (no buffering, no re-chunking) and in the same order.

Closing the consumer early (client disconnect) cancels the producer,
which in turn closes the upstream HTTP stream.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import AsyncGenerator
from typing import Annotated, Any

from fastapi import Depends
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import BaseMessage

from mathtutor.infra.telemetry import (
    ATTR_RELAY_FRAGMENTS,
    ATTR_RELAY_MODEL,
    ATTR_RELAY_OUTCOME,
    ATTR_RELAY_PROMPT_VERSION,
    ATTR_RELAY_QUESTION_LEN,
    SPAN_RELAY_STREAM,
    tracer,
)

from .llm import get_llm
from .metrics import (
    RELAY_FRAGMENTS_TOTAL,
    SOLVE_STREAM_DURATION_SECONDS,
    SOLVE_STREAMS_TOTAL,
)
from .prompt import SystemPrompt, get_system_prompt

logger = logging.getLogger(__name__)

EMPTY_QUESTION_MESSAGE = "質問が空です"


class EmptyQuestion(ValueError):
    """The question is missing or blank after trimming."""


class UpstreamError(Exception):
    """The model backend failed before or during streaming."""


def validate_question(question: str | None) -> str:
    """Return *question* unchanged, or raise ``EmptyQuestion`` if blank."""
    if question is None or not question.strip():
        raise EmptyQuestion(EMPTY_QUESTION_MESSAGE)
    return question


def chunk_text(chunk: Any) -> str:
    """Plain text carried by a streamed message chunk."""
    content = getattr(chunk, "content", chunk)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(block.get("text", ""))
        return "".join(parts)
    return ""


class _Failure:
    __slots__ = ("exc",)

    def __init__(self, exc: BaseException) -> None:
        self.exc = exc


_END = object()


class SolveRelay:
    """Relays one streaming completion per question."""

    def __init__(
        self,
        llm: BaseChatModel,
        prompt: SystemPrompt,
        *,
        queue_size: int = 0,
    ) -> None:
        self._llm = llm
        self._prompt = prompt
        self._queue_size = queue_size

    @property
    def prompt(self) -> SystemPrompt:
        return self._prompt

    async def _produce(
        self, messages: list[BaseMessage], queue: asyncio.Queue[Any]
    ) -> None:
        try:
            async for chunk in self._llm.astream(messages):
                text = chunk_text(chunk)
                if text:
                    await queue.put(text)
        except Exception as exc:
            await queue.put(_Failure(exc))
        else:
            await queue.put(_END)

    async def stream(self, question: str | None) -> AsyncGenerator[str, None]:
        """Yield the model's text fragments for *question*.

        Raises:
            EmptyQuestion: before any upstream call when the question is blank.
            UpstreamError: when the model backend fails; fragments already
                yielded stay delivered, nothing further is produced.
        """
        question = validate_question(question)
        messages = self._prompt.build_messages(question)
        model_name = str(getattr(self._llm, "model_name", "") or self._llm._llm_type)

        span = tracer.start_span(SPAN_RELAY_STREAM)
        span.set_attribute(ATTR_RELAY_MODEL, model_name)
        span.set_attribute(ATTR_RELAY_PROMPT_VERSION, self._prompt.version)
        span.set_attribute(ATTR_RELAY_QUESTION_LEN, len(question))
        logger.info(
            "Relaying question (%d chars) to %s with prompt %s",
            len(question),
            model_name,
            self._prompt.version,
            extra={"model": model_name, "prompt_version": self._prompt.version},
        )

        queue: asyncio.Queue[Any] = asyncio.Queue(maxsize=self._queue_size)
        producer = asyncio.create_task(
            self._produce(messages, queue), name="relay-producer"
        )
        outcome = "cancelled"
        fragments = 0
        start = time.monotonic()
        try:
            while True:
                item = await queue.get()
                if item is _END:
                    outcome = "ok"
                    break
                if isinstance(item, _Failure):
                    outcome = "upstream_error"
                    span.record_exception(item.exc)
                    raise UpstreamError(
                        f"Model backend failed after {fragments} fragments: {item.exc}"
                    ) from item.exc
                fragments += 1
                RELAY_FRAGMENTS_TOTAL.inc()
                yield item
        finally:
            if not producer.done():
                producer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await producer
            SOLVE_STREAMS_TOTAL.labels(outcome=outcome).inc()
            span.set_attribute(ATTR_RELAY_FRAGMENTS, fragments)
            span.set_attribute(ATTR_RELAY_OUTCOME, outcome)
            span.end()
            duration = time.monotonic() - start
            SOLVE_STREAM_DURATION_SECONDS.observe(duration)
            logger.info(
                "Relay finished: %s after %d fragments",
                outcome,
                fragments,
                extra={
                    "model": model_name,
                    "outcome": outcome,
                    "fragments": fragments,
                    "duration_s": round(duration, 3),
                },
            )


def get_solve_relay(
    llm: Annotated[BaseChatModel, Depends(get_llm)],
    prompt: Annotated[SystemPrompt, Depends(get_system_prompt)],
) -> SolveRelay:
    """Per-request relay (a fresh model client every time)."""
    return SolveRelay(llm, prompt)
