"""Abstract base class for embedding clients."""

import asyncio
import time
from abc import ABC, abstractmethod
from typing import Generic, Literal, TypeVar

from pydantic import BaseModel

from ..config import EnvField
from ..logger import EngineLogger
from ..shared.errors import UpstreamServiceError, UpstreamTimeoutError

EMBEDDING_PROVIDER = Literal["gemini", "openai"]


class BaseEmbeddingConfig(BaseModel):
    """Base configuration for embedding providers."""

    provider: EMBEDDING_PROVIDER = EnvField("EMBEDDING_PROVIDER")
    model: str | None = EnvField("EMBEDDING_MODEL", default=None)
    dimensions: int = EnvField("EMBEDDING_DIMENSIONS", default=768)
    max_concurrency: int = EnvField("EMBEDDING_MAX_CONCURRENCY", default=32)
    timeout_seconds: float = EnvField("EMBEDDING_TIMEOUT_SECONDS", default=10.0)


TConfig = TypeVar("TConfig", bound=BaseEmbeddingConfig)


class EmbeddingCallLog(BaseModel):
    """Structured log data for an embedding call."""

    type: str = "embedding_call"
    success: bool
    provider: str
    model: str | None
    duration_ms: float
    text_length: int
    dimensions: int | None
    error_message: str | None


class EmbeddingClient(ABC, Generic[TConfig]):
    """Converts text into a fixed-length float vector via a remote model."""

    def __init__(self, config: TConfig):
        """Create an instance of an EmbeddingClient.

        Args:
            config: The embedding config model

        """
        self.config = config
        self.provider = config.provider
        self.model = config.model
        self.dimensions = config.dimensions
        self.timeout_seconds = config.timeout_seconds
        self._semaphore = asyncio.Semaphore(config.max_concurrency)

    @abstractmethod
    async def _embed(self, text: str, *, model: str) -> list[float]:
        """Request the embedding of `text` from the provider."""
        pass

    async def embed(
        self, text: str, *, logger: EngineLogger | None = None
    ) -> list[float]:
        """Embed `text`.

        Raises:
            UpstreamTimeoutError: The call exceeded `timeout_seconds`.
            UpstreamServiceError: The provider call failed or returned a vector
                of the wrong dimensionality.

        """
        if not self.model:
            raise ValueError("model required when self.model is not set.")

        async with self._semaphore:
            start_time = time.time()
            error_message: str | None = None
            vector: list[float] | None = None
            try:
                async with asyncio.timeout(self.timeout_seconds):
                    vector = await self._embed(text, model=self.model)
            except TimeoutError as e:
                error_message = f"timed out after {self.timeout_seconds}s"
                raise UpstreamTimeoutError(
                    f"{self.provider} embedding timed out after {self.timeout_seconds}s",
                    provider=self.provider,
                ) from e
            except Exception as e:
                error_message = str(e)
                raise UpstreamServiceError(
                    f"{self.provider} embedding call failed: {e}",
                    provider=self.provider,
                ) from e
            finally:
                if logger is not None:
                    logger.debug(
                        "Embedding call succeeded"
                        if vector is not None
                        else "Embedding call failed",
                        data=EmbeddingCallLog(
                            success=vector is not None,
                            provider=self.provider,
                            model=self.model,
                            duration_ms=(time.time() - start_time) * 1000,
                            text_length=len(text),
                            dimensions=len(vector) if vector is not None else None,
                            error_message=error_message,
                        ),
                    )

        if len(vector) != self.dimensions:
            raise UpstreamServiceError(
                f"{self.provider} returned a {len(vector)}-dimensional embedding, "
                f"expected {self.dimensions}",
                provider=self.provider,
            )
        return vector
