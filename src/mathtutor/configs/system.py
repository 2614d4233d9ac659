from datetime import timedelta
from typing import Literal

from pydantic import BaseModel, Field, model_validator


class ThirdPartyConfig(BaseModel):
    """Configuration for third-party integrations."""

    redis_uri: str = Field(
        default="redis://localhost:6379",
        description="Redis connection URI (used by the redis rate-limit backend)",
    )


class APIConfig(BaseModel):
    """API configuration settings."""

    host: str = Field(default="0.0.0.0", description="API server host")
    port: int = Field(default=8000, description="API server port")
    send_traceback: bool = Field(
        default=False,
        description="Attach tracebacks when logging streams aborted mid-answer",
    )


class LLMConfig(BaseModel):
    """Upstream model settings.

    The defaults target Gemini through its OpenAI-compatible endpoint.
    Sampling parameters are fixed per deployment, not per request.
    """

    endpoint: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta/openai/",
        description="OpenAI-compatible base URL of the model server",
    )
    api_key: str = Field(default="", description="API key for the model server")
    model_name: str = Field(
        default="gemini-2.5-flash-preview-04-17",
        description="Model identifier sent upstream",
    )
    temperature: float = Field(
        default=0.2, description="Sampling temperature (deterministic-leaning)"
    )
    top_p: float = Field(default=0.8, description="Nucleus sampling threshold")
    max_tokens: int = Field(default=4096, description="Maximum output tokens")
    model_timeout: timedelta | None = Field(
        default=None,
        description="Upstream request timeout; None leaves it to the host",
    )


class RateLimitConfig(BaseModel):
    """Fixed-window rate limiting for the ``/api`` gate."""

    enabled: bool = Field(default=True, description="Enable rate limiting")
    backend: Literal["local", "redis"] = Field(
        default="local",
        description="Counter store: in-process table or shared Redis",
    )
    window: timedelta = Field(
        default=timedelta(seconds=60), description="Fixed window length"
    )
    max_requests: int = Field(
        default=30, description="Requests allowed per client per window"
    )
    limited_paths: list[str] = Field(
        default_factory=lambda: ["/api/solve"],
        description="Paths under /api that are actively limited",
    )


class LoggingConfig(BaseModel):
    """Root logger settings."""

    level: str = Field(default="INFO", description="Root log level")
    json_output: bool = Field(
        default=True, description="Emit JSON lines instead of coloured text"
    )
    quiet_loggers: list[str] = Field(
        default_factory=lambda: ["httpx", "httpcore", "openai", "opentelemetry"],
        description="Third-party loggers capped at WARNING",
    )


class PromptConfig(BaseModel):
    """System instruction template (loaded from ``configs/prompt.yml``)."""

    version: str = Field(default="0", description="Template version label")
    system_prompt: str = Field(
        default=(
            "You are a math tutor. Never reveal intermediate reasoning. "
            "Write all math in LaTeX and wrap final answers in \\boxed{}. "
            "Answer with the sections: summary, answers per sub-question, "
            "summary table, detailed discussion. "
            "Finish with the line --- end ---"
        ),
        description="System instruction sent with every question",
    )
    end_marker: str = Field(
        default="--- end ---",
        description="Literal line the model must print last",
    )

    @model_validator(mode="after")
    def _require_end_marker(self) -> "PromptConfig":
        if self.end_marker not in self.system_prompt:
            raise ValueError(
                f"system_prompt must instruct the end marker {self.end_marker!r}"
            )
        return self
