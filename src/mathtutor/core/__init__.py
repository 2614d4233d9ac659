"""Model client, system prompt and the streaming relay."""

from .llm import get_llm
from .prompt import SystemPrompt, get_system_prompt
from .relay import (
    EMPTY_QUESTION_MESSAGE,
    EmptyQuestion,
    SolveRelay,
    UpstreamError,
    get_solve_relay,
    validate_question,
)

__all__ = [
    "EMPTY_QUESTION_MESSAGE",
    "EmptyQuestion",
    "SolveRelay",
    "SystemPrompt",
    "UpstreamError",
    "get_llm",
    "get_solve_relay",
    "get_system_prompt",
    "validate_question",
]
