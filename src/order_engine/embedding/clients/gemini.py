"""Gemini embedding client implementation."""

import threading
from hashlib import sha256
from typing import Literal

import google.genai as genai
import google.genai.types

from ...config import EnvField
from ..base import BaseEmbeddingConfig, EmbeddingClient


class GeminiEmbeddingConfig(BaseEmbeddingConfig):
    """Configuration for Gemini embeddings."""

    provider: Literal["gemini"] = EnvField("EMBEDDING_PROVIDER", default="gemini")  # pyright: ignore[reportIncompatibleVariableOverride]
    model: str | None = EnvField("EMBEDDING_MODEL", default="gemini-embedding-001")
    api_key: str = EnvField("GEMINI_API_KEY", "GOOGLE_AI_API_KEY", exclude=True)
    task_type: str = EnvField("EMBEDDING_TASK_TYPE", default="RETRIEVAL_QUERY")


class GeminiEmbeddingClient(EmbeddingClient[GeminiEmbeddingConfig]):
    """Embeds text with Gemini, forcing the configured output dimensionality."""

    _client_cache: dict[str, "GeminiEmbeddingClient"] = {}
    _cache_lock = threading.Lock()

    def __init__(self, config: GeminiEmbeddingConfig | None = None):
        """Initialize Gemini embedding client.

        Args:
            config: Gemini embedding configuration. If None, creates from environment.

        """
        if config is None:
            config = GeminiEmbeddingConfig()
        else:
            config = GeminiEmbeddingConfig.model_validate(config)

        super().__init__(config)

        self.config = config
        if not self.config.api_key:
            raise ValueError(
                "Gemini API key not found. Set GEMINI_API_KEY environment variable "
                "or pass api_key in config."
            )
        self.client = genai.Client(api_key=self.config.api_key)

    @staticmethod
    def from_cache(config: GeminiEmbeddingConfig) -> "GeminiEmbeddingClient":
        """Get or create client from cache."""
        cache_key = sha256(
            (config.model_dump_json() + config.api_key).encode()
        ).hexdigest()
        with GeminiEmbeddingClient._cache_lock:
            if cache_key not in GeminiEmbeddingClient._client_cache:
                GeminiEmbeddingClient._client_cache[cache_key] = GeminiEmbeddingClient(
                    config
                )
            return GeminiEmbeddingClient._client_cache[cache_key]

    async def _embed(self, text: str, *, model: str) -> list[float]:
        result = await self.client.aio.models.embed_content(
            model=model,
            contents=text,
            config=google.genai.types.EmbedContentConfig(
                output_dimensionality=self.dimensions,
                task_type=self.config.task_type,
            ),
        )
        if not result.embeddings or result.embeddings[0].values is None:
            raise ValueError("Gemini returned no embedding values")
        return list(result.embeddings[0].values)
