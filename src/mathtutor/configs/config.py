"""Configuration management using pydantic-settings.

**Not a singleton**: each call to ``get_app_config()`` re-reads config
from disk, so edits to the YAML files are picked up without a restart.

Priority order (highest first):

1. Init keyword arguments (tests, embedding code)
2. Environment variables (``MATHTUTOR_`` prefix, ``__`` for nesting)
3. ``.env`` dotenv file
4. Static YAML (``configs/config.yaml``)
5. Prompt YAML (``configs/prompt.yml``)
6. File secrets, then field defaults
"""

import logging
from pathlib import Path
from typing import Annotated, Any

import yaml
from fastapi import Depends
from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from .system import (
    APIConfig,
    LLMConfig,
    LoggingConfig,
    PromptConfig,
    RateLimitConfig,
    ThirdPartyConfig,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Path constants
# ---------------------------------------------------------------------------

CONFIG_PY_PATH = Path(__file__).resolve()
PROJECT_ROOT = CONFIG_PY_PATH.parent.parent.parent.parent
CONFIG_DIR = PROJECT_ROOT / "configs"

STATIC_CONFIG_FILE = CONFIG_DIR / "config.yaml"
PROMPT_CONFIG_FILE = CONFIG_DIR / "prompt.yml"

DOTENV_FILE_PATH = PROJECT_ROOT / ".env"
ENV_DELIMITER = "__"
ENV_PREFIX = "MATHTUTOR_"

DEFAULT_ENCODING = "utf-8"


class AppConfig(BaseSettings):
    """Application configuration."""

    model_config = SettingsConfigDict(
        env_file=DOTENV_FILE_PATH,
        env_file_encoding=DEFAULT_ENCODING,
        env_nested_delimiter=ENV_DELIMITER,
        env_prefix=ENV_PREFIX,
        case_sensitive=False,
        extra="ignore",
        yaml_file=STATIC_CONFIG_FILE,
        yaml_file_encoding=DEFAULT_ENCODING,
    )

    third_party: ThirdPartyConfig = Field(
        default_factory=ThirdPartyConfig,
        description="Third-party service configurations",
    )

    api: APIConfig = Field(
        default_factory=APIConfig,
        description="API configuration settings",
    )

    llm: LLMConfig = Field(
        default_factory=LLMConfig,
        description="Upstream model configuration",
    )

    rate_limit: RateLimitConfig = Field(
        default_factory=RateLimitConfig,
        description="Fixed-window rate limiting",
    )

    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging configuration",
    )

    prompt: PromptConfig = Field(
        default_factory=PromptConfig,
        description="System instruction template",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
            _PromptYamlSettingsSource(settings_cls),
            file_secret_settings,
        )


class _PromptYamlSettingsSource(PydanticBaseSettingsSource):
    """Loads the ``prompt`` section from ``prompt.yml``."""

    def __init__(
        self, settings_cls: type[BaseSettings], path: Path = PROMPT_CONFIG_FILE
    ) -> None:
        super().__init__(settings_cls)
        self._path = path

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        # Required by the abstract base; values come from __call__.
        return None, field_name, False

    def __call__(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}

        with open(self._path, encoding=DEFAULT_ENCODING) as f:
            data = yaml.safe_load(f)

        if not isinstance(data, dict) or "system_prompt" not in data:
            logger.warning("Ignoring prompt file without system_prompt: %s", self._path)
            return {}

        keys = ("version", "system_prompt", "end_marker")
        return {"prompt": {k: data[k] for k in keys if k in data}}


def get_app_config() -> AppConfig:
    """Get the application configuration (re-read on every call)."""
    return AppConfig()


def get_llm_config(
    config: Annotated[AppConfig, Depends(get_app_config)],
) -> LLMConfig:
    return config.llm


def get_rate_limit_config(
    config: Annotated[AppConfig, Depends(get_app_config)],
) -> RateLimitConfig:
    return config.rate_limit


def get_prompt_config(
    config: Annotated[AppConfig, Depends(get_app_config)],
) -> PromptConfig:
    return config.prompt


def get_api_config(
    config: Annotated[AppConfig, Depends(get_app_config)],
) -> APIConfig:
    return config.api
