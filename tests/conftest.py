"""Shared fixtures: a scripted chat model and a wired-up test app."""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable, Iterator
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, AIMessageChunk, BaseMessage
from langchain_core.outputs import ChatGeneration, ChatGenerationChunk, ChatResult
from pydantic import Field

from mathtutor.app import get_app
from mathtutor.configs.config import AppConfig, get_app_config
from mathtutor.core.llm import get_llm
from mathtutor.core.prompt import SystemPrompt
from mathtutor.render.markdown import get_markdown_renderer
from mathtutor.render.math import get_math_engine

ANSWER_FRAGMENTS = [
    "#### 問題文の要約\n",
    "- 二次方程式 $x^2-1=0$ を解く\n",
    "$$\\boxed{x=\\pm 1}$$\n",
    "--- end ---",
]


class ScriptedChatModel(BaseChatModel):
    """Streams a fixed list of fragments; optionally fails part way."""

    fragments: list[str] = Field(default_factory=lambda: list(ANSWER_FRAGMENTS))
    fail_after: int | None = None
    calls: list[list[BaseMessage]] = Field(default_factory=list)

    @property
    def _llm_type(self) -> str:
        return "scripted"

    def _generate(
        self,
        messages: list[BaseMessage],
        stop: list[str] | None = None,
        run_manager: Any = None,
        **kwargs: Any,
    ) -> ChatResult:
        self.calls.append(list(messages))
        message = AIMessage(content="".join(self.fragments))
        return ChatResult(generations=[ChatGeneration(message=message)])

    async def _astream(
        self,
        messages: list[BaseMessage],
        stop: list[str] | None = None,
        run_manager: Any = None,
        **kwargs: Any,
    ) -> AsyncIterator[ChatGenerationChunk]:
        self.calls.append(list(messages))
        # OpenAI-compatible streams open with an empty role chunk
        yield ChatGenerationChunk(message=AIMessageChunk(content=""))
        for i, fragment in enumerate(self.fragments):
            if self.fail_after is not None and i >= self.fail_after:
                raise RuntimeError("model backend unavailable")
            yield ChatGenerationChunk(message=AIMessageChunk(content=fragment))
        if self.fail_after is not None and self.fail_after >= len(self.fragments):
            raise RuntimeError("model backend unavailable")


@pytest.fixture(autouse=True)
def _reset_singletons() -> Iterator[None]:
    yield
    get_markdown_renderer.reset()
    get_math_engine.reset()


@pytest.fixture
def prompt() -> SystemPrompt:
    return SystemPrompt(
        version="test-v1",
        text="Answer in LaTeX. Finish with --- end ---",
        end_marker="--- end ---",
    )


@pytest.fixture
def chat_model() -> ScriptedChatModel:
    return ScriptedChatModel()


@pytest.fixture
def app_config() -> AppConfig:
    return AppConfig(
        logging={"level": "WARNING", "json_output": False},
        rate_limit={"backend": "local", "max_requests": 30, "window": 60},
    )


@pytest.fixture
def app(app_config: AppConfig, chat_model: ScriptedChatModel) -> FastAPI:
    application = get_app(app_config)
    application.dependency_overrides[get_app_config] = lambda: app_config
    application.dependency_overrides[get_llm] = lambda: chat_model
    return application


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    """Test client with the lifespan (rate limiter) running."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_chat_model() -> Callable[..., ScriptedChatModel]:
    """Factory for scripted models with custom fragments or failures."""
    return ScriptedChatModel
