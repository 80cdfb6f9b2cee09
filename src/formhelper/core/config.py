"""Application settings for the form helper."""

import os
from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


LLM_PROVIDERS = {"ollama", "gemini", "azure_openai", "none"}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=(".env"), env_file_encoding="utf-8")

    # App
    APP_NAME: str = "Form Helper"
    ENVIRONMENT: str = "development"  # development | production | test

    # Language model host configuration
    # "ollama" talks to a local OpenAI-compatible server; "none" disables AI help
    LLM_PROVIDER: str = "ollama"
    TEXT_MODEL: str = "gemma3:1b"
    OLLAMA_BASE_URL: str = "http://localhost:11434/v1"
    GEMINI_API_KEY: str | None = None
    AZURE_OPENAI_ENDPOINT: str | None = None
    AZURE_OPENAI_API_KEY: str | None = None
    AZURE_OPENAI_API_VERSION: str | None = None

    # Prompt configuration
    FORM_GUIDE_PATH: Path | None = None
    OUTPUT_FORMAT: str | None = None

    # Seconds to group stream snapshots; None publishes every chunk
    STREAM_DEBOUNCE_SECONDS: float | None = None

    # Upper bound for the startup request that proves the model host answers
    SESSION_HANDSHAKE_TIMEOUT_SECONDS: float | None = 15.0

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        env = v.strip().lower()
        if env not in {"development", "production", "test"}:
            raise ValueError(
                "ENVIRONMENT must be 'development', 'production', or 'test'"
            )
        return env

    @field_validator("LLM_PROVIDER")
    @classmethod
    def validate_provider(cls, v: str) -> str:
        provider = v.strip().lower()
        if provider not in LLM_PROVIDERS:
            raise ValueError(
                f"LLM_PROVIDER must be one of {sorted(LLM_PROVIDERS)}, got {v!r}"
            )
        return provider

    @field_validator("FORM_GUIDE_PATH")
    @classmethod
    def validate_form_guide_path(cls, v: Path | None) -> Path | None:
        if v is not None and not v.is_file():
            raise ValueError(f"FORM_GUIDE_PATH does not exist: {v}")
        return v


@lru_cache
def get_settings() -> Settings:
    env = os.getenv("ENVIRONMENT", "development").lower()
    if env not in {"development", "production", "test"}:
        raise ValueError("ENVIRONMENT must be 'development', 'production', or 'test'")

    if env == "production":
        env_file = ".env.prod"
    elif env == "development":
        env_file = ".env.dev"
    else:
        # test environment - no env file needed, use defaults
        env_file = ""

    # The Settings initializer accepts a runtime-only `_env_file` kwarg used by
    # pydantic-settings; mypy's stub doesn't allow this call argument.
    return Settings(_env_file=env_file or None)  # type: ignore[call-arg]
