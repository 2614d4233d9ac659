"""Typed application configuration."""

from .config import (
    AppConfig,
    get_api_config,
    get_app_config,
    get_llm_config,
    get_prompt_config,
    get_rate_limit_config,
)
from .system import (
    APIConfig,
    LLMConfig,
    LoggingConfig,
    PromptConfig,
    RateLimitConfig,
    ThirdPartyConfig,
)

__all__ = [
    "APIConfig",
    "AppConfig",
    "LLMConfig",
    "LoggingConfig",
    "PromptConfig",
    "RateLimitConfig",
    "ThirdPartyConfig",
    "get_api_config",
    "get_app_config",
    "get_llm_config",
    "get_prompt_config",
    "get_rate_limit_config",
]
