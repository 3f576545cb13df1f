"""Factory helpers for embedding clients."""

import os
from typing import Annotated

from pydantic import Field, TypeAdapter

from .base import EMBEDDING_PROVIDER, EmbeddingClient
from .clients.gemini import GeminiEmbeddingClient, GeminiEmbeddingConfig
from .clients.openai import OpenAIEmbeddingClient, OpenAIEmbeddingConfig

ConcreteEmbeddingConfigs = Annotated[
    GeminiEmbeddingConfig | OpenAIEmbeddingConfig,
    Field(discriminator="provider"),
]
ConcreteEmbeddingConfigAdapter: TypeAdapter[ConcreteEmbeddingConfigs] = TypeAdapter(
    ConcreteEmbeddingConfigs
)


def create_embedding_client(
    *,
    provider: EMBEDDING_PROVIDER | None = None,
    model: str | None = None,
    **config_kwargs,
) -> EmbeddingClient:
    """Get or create a cached embedding client for the configured provider."""
    provider = provider or os.getenv("EMBEDDING_PROVIDER")
    config_kwargs = {"provider": provider, "model": model, **config_kwargs}
    config_kwargs = {k: v for k, v in config_kwargs.items() if v is not None}
    config = ConcreteEmbeddingConfigAdapter.validate_python(config_kwargs)

    match config.provider:
        case "gemini":
            return GeminiEmbeddingClient.from_cache(config)
        case "openai":
            return OpenAIEmbeddingClient.from_cache(config)
        case _:
            raise ValueError(f"Unsupported embedding provider: {config.provider}")


def clear_embedding_client_caches() -> None:
    """Clear the embedding client caches."""
    GeminiEmbeddingClient._client_cache.clear()
    OpenAIEmbeddingClient._client_cache.clear()
