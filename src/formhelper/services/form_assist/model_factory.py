"""Model factory for the explanation session.

Builds the pydantic-ai model for the configured provider. A local Ollama
server (OpenAI-compatible API) is the default so explanations stay on the
user's machine; hosted Gemini and Azure OpenAI are available as alternatives.

Usage:
    from formhelper.services.form_assist.model_factory import get_text_model

    model = get_text_model(settings)  # Returns pydantic-ai Model
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, cast

from pydantic_ai.models import Model
from pydantic_ai.models.google import GoogleModel
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.google import GoogleProvider
from pydantic_ai.providers.openai import OpenAIProvider

from formhelper.core.config import Settings
from formhelper.services.form_assist.exceptions import CapabilityUnavailable


if TYPE_CHECKING:
    from httpx import AsyncClient

logger = logging.getLogger(__name__)


def _normalize_azure_endpoint(endpoint: str) -> str:
    """Normalize Azure OpenAI endpoint.

    Trailing slashes lead to `//openai/...` URLs, which Azure treats as a
    different path and answers with 404.
    """
    return endpoint.rstrip("/")


def _validate_azure_credentials(settings: Settings) -> None:
    if (
        not settings.AZURE_OPENAI_ENDPOINT
        or not settings.AZURE_OPENAI_API_KEY
        or not settings.AZURE_OPENAI_API_VERSION
    ):
        raise CapabilityUnavailable(
            "LLM_PROVIDER=azure_openai but AZURE_OPENAI_ENDPOINT, "
            "AZURE_OPENAI_API_KEY or AZURE_OPENAI_API_VERSION is missing"
        )


def _validate_gemini_credentials(settings: Settings) -> None:
    if not settings.GEMINI_API_KEY:
        raise CapabilityUnavailable("LLM_PROVIDER=gemini but GEMINI_API_KEY is missing")


def _create_ollama_model(
    settings: Settings, http_client: AsyncClient | None = None
) -> Model:
    """Create a model served by a local Ollama instance."""
    provider = OpenAIProvider(
        base_url=settings.OLLAMA_BASE_URL,
        # Ollama ignores the key but the OpenAI client requires one
        api_key="ollama",
        http_client=http_client,
    )
    return OpenAIChatModel(settings.TEXT_MODEL, provider=provider)


def _create_azure_model(
    settings: Settings, http_client: AsyncClient | None = None
) -> Model:
    from openai import AsyncAzureOpenAI

    azure_client = AsyncAzureOpenAI(
        azure_endpoint=_normalize_azure_endpoint(settings.AZURE_OPENAI_ENDPOINT or ""),
        api_key=settings.AZURE_OPENAI_API_KEY,
        api_version=settings.AZURE_OPENAI_API_VERSION,
        http_client=http_client,
    )
    provider = OpenAIProvider(openai_client=azure_client)
    return OpenAIChatModel(settings.TEXT_MODEL, provider=provider)


def _create_gemini_model(
    settings: Settings, http_client: AsyncClient | None = None
) -> Model:
    provider = GoogleProvider(
        api_key=settings.GEMINI_API_KEY,
        http_client=http_client,
    )
    return cast(Model, GoogleModel(settings.TEXT_MODEL, provider=provider))


def get_text_model(
    settings: Settings, http_client: AsyncClient | None = None
) -> Model:
    """Get the text model for the configured provider.

    Args:
        settings: Application settings selecting provider and model name.
        http_client: Optional HTTP client for custom retry logic.

    Returns:
        A pydantic-ai Model configured for the selected provider.

    Raises:
        CapabilityUnavailable: If the provider is disabled or its credentials
            are missing.
    """
    provider = settings.LLM_PROVIDER

    if provider == "none":
        raise CapabilityUnavailable("AI assistance is disabled (LLM_PROVIDER=none)")

    if provider == "azure_openai":
        _validate_azure_credentials(settings)
        logger.info(f"Using Azure OpenAI text model: {settings.TEXT_MODEL}")
        return _create_azure_model(settings, http_client)

    if provider == "gemini":
        _validate_gemini_credentials(settings)
        logger.info(f"Using Gemini text model: {settings.TEXT_MODEL}")
        return _create_gemini_model(settings, http_client)

    logger.info(
        f"Using local Ollama model {settings.TEXT_MODEL} at {settings.OLLAMA_BASE_URL}"
    )
    return _create_ollama_model(settings, http_client)
