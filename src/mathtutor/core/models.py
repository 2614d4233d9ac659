"""Conversation data shared by the renderer and the terminal client."""

from typing import Literal

from pydantic import BaseModel, Field

ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"


class ChatMessage(BaseModel):
    """A single message in the conversation."""

    role: Literal["user", "assistant"] = Field(description="Message sender role")
    content: str = Field(description="Message content")
