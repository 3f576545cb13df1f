"""Embedding clients that turn text into fixed-length vectors."""

from .base import BaseEmbeddingConfig, EmbeddingCallLog, EmbeddingClient
from .functional import clear_embedding_client_caches, create_embedding_client

__all__ = [
    "BaseEmbeddingConfig",
    "EmbeddingCallLog",
    "EmbeddingClient",
    "clear_embedding_client_caches",
    "create_embedding_client",
]
