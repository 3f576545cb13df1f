"""OpenAI embedding client implementation."""

import threading
from hashlib import sha256
from typing import Literal

from openai import AsyncOpenAI

from ...config import EnvField
from ..base import BaseEmbeddingConfig, EmbeddingClient


class OpenAIEmbeddingConfig(BaseEmbeddingConfig):
    """Configuration for OpenAI embeddings."""

    provider: Literal["openai"] = EnvField("EMBEDDING_PROVIDER", default="openai")  # pyright: ignore[reportIncompatibleVariableOverride]
    model: str | None = EnvField("EMBEDDING_MODEL", default="text-embedding-3-small")
    api_key: str = EnvField("OPENAI_API_KEY", exclude=True)
    base_url: str | None = EnvField("OPENAI_BASE_URL", default=None)


class OpenAIEmbeddingClient(EmbeddingClient[OpenAIEmbeddingConfig]):
    """Embeds text with the OpenAI embeddings endpoint."""

    _client_cache: dict[str, "OpenAIEmbeddingClient"] = {}
    _cache_lock = threading.Lock()

    def __init__(self, config: OpenAIEmbeddingConfig | None = None):
        """Initialize OpenAI embedding client.

        Args:
            config: OpenAI embedding configuration. If None, creates from environment.

        """
        if config is None:
            config = OpenAIEmbeddingConfig()
        else:
            config = OpenAIEmbeddingConfig.model_validate(config)

        super().__init__(config)

        self.config = config
        if not self.config.api_key:
            raise ValueError(
                "OpenAI API key not found. Set OPENAI_API_KEY environment variable "
                "or pass api_key in config."
            )
        self.client = AsyncOpenAI(
            api_key=self.config.api_key, base_url=self.config.base_url
        )

    @staticmethod
    def from_cache(config: OpenAIEmbeddingConfig) -> "OpenAIEmbeddingClient":
        """Get or create client from cache."""
        cache_key = sha256(
            (config.model_dump_json() + config.api_key).encode()
        ).hexdigest()
        with OpenAIEmbeddingClient._cache_lock:
            if cache_key not in OpenAIEmbeddingClient._client_cache:
                OpenAIEmbeddingClient._client_cache[cache_key] = OpenAIEmbeddingClient(
                    config
                )
            return OpenAIEmbeddingClient._client_cache[cache_key]

    async def _embed(self, text: str, *, model: str) -> list[float]:
        response = await self.client.embeddings.create(
            model=model, input=text, dimensions=self.dimensions
        )
        if not response.data:
            raise ValueError("OpenAI returned no embedding data")
        return list(response.data[0].embedding)
