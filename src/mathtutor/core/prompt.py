"""Versioned system instruction.

The instruction is configuration data: it lives in ``configs/prompt.yml``
and can be swapped per deployment without touching the relay.
"""

from typing import Annotated

from fastapi import Depends
from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage
from pydantic import BaseModel, ConfigDict, Field

from mathtutor.configs.config import get_prompt_config
from mathtutor.configs.system import PromptConfig


class SystemPrompt(BaseModel):
    """Immutable system instruction plus the marker that ends every answer."""

    model_config = ConfigDict(frozen=True)

    version: str = Field(description="Template version label")
    text: str = Field(description="System instruction text")
    end_marker: str = Field(description="Literal last line of a complete answer")

    @classmethod
    def from_config(cls, config: PromptConfig) -> "SystemPrompt":
        return cls(
            version=config.version,
            text=config.system_prompt,
            end_marker=config.end_marker,
        )

    def build_messages(self, question: str) -> list[BaseMessage]:
        """System instruction followed by the question as the only user turn."""
        return [SystemMessage(content=self.text), HumanMessage(content=question)]

    def is_complete(self, answer: str) -> bool:
        """Whether *answer* ends with the terminating marker line."""
        lines = [line.strip() for line in answer.rstrip().splitlines()]
        return bool(lines) and lines[-1] == self.end_marker


def get_system_prompt(
    config: Annotated[PromptConfig, Depends(get_prompt_config)],
) -> SystemPrompt:
    return SystemPrompt.from_config(config)
