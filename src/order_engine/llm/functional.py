"""Factory helpers for LLM clients."""

import os
from typing import Annotated

from pydantic import Field, TypeAdapter

from .base import ProviderClient
from .clients.anthropic import AnthropicClient, AnthropicConfig
from .clients.gemini import GeminiClient, GeminiConfig
from .clients.openai import OpenAIClient, OpenAIConfig
from .config import LLM_PROVIDER

ConcreteLLMConfigs = Annotated[
    AnthropicConfig | GeminiConfig | OpenAIConfig,
    Field(discriminator="provider"),
]
ConcreteConfigAdapter: TypeAdapter[ConcreteLLMConfigs] = TypeAdapter(ConcreteLLMConfigs)


def create_client(
    *,
    provider: LLM_PROVIDER | None = None,
    model: str | None = None,
    **config_kwargs,
) -> ProviderClient:
    """Get or create a cached client for the configured provider.

    Args:
        provider: The LLM provider. Falls back to LLM_PROVIDER.
        model: The model to use. Falls back to LLM_MODEL.
        **config_kwargs: Any other config field (timeout_seconds, max_concurrency, ...).

    Returns:
        A provider client, shared with other callers using the same credentials

    """
    # The discriminated union needs the tag up front
    provider = provider or os.getenv("LLM_PROVIDER")
    config_kwargs = {"provider": provider, "model": model, **config_kwargs}
    config_kwargs = {k: v for k, v in config_kwargs.items() if v is not None}
    config = ConcreteConfigAdapter.validate_python(config_kwargs)

    match config.provider:
        case "anthropic":
            return AnthropicClient.from_cache(config)
        case "openai":
            return OpenAIClient.from_cache(config)
        case "gemini":
            return GeminiClient.from_cache(config)
        case _:
            raise ValueError(f"Unsupported provider: {config.provider}")


def clear_client_caches() -> None:
    """Clear the client caches in all client classes. Useful for testing or changing configurations."""
    AnthropicClient._client_cache.clear()
    OpenAIClient._client_cache.clear()
    GeminiClient._client_cache.clear()
