"""Upstream chat model factory."""

from typing import Annotated

from fastapi import Depends
from langchain_core.language_models import BaseChatModel
from langchain_openai import ChatOpenAI

from mathtutor.configs.config import get_llm_config
from mathtutor.configs.system import LLMConfig


def get_llm(
    config: Annotated[LLMConfig, Depends(get_llm_config)],
) -> BaseChatModel:
    """Create a streaming ``ChatOpenAI`` client for one request.

    Retries are disabled: a failed upstream call is reported, never
    repeated.  The client is not pooled.
    """
    return ChatOpenAI(
        base_url=config.endpoint,
        api_key=config.api_key,
        model=config.model_name,
        temperature=config.temperature,
        top_p=config.top_p,
        max_tokens=config.max_tokens,
        timeout=(
            config.model_timeout.total_seconds()
            if config.model_timeout is not None
            else None
        ),
        max_retries=0,
        streaming=True,
    )
