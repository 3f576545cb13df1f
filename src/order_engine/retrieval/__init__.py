"""Semantic retrieval of menu candidates."""

from .menu import CandidateMenu, MenuCandidate
from .search import (
    DEFAULT_TOP_K,
    BruteForceRetriever,
    IndexedRetriever,
    RetrievalAlgorithm,
    SemanticRetriever,
    cosine_similarity,
    create_retriever,
)

__all__ = [
    "DEFAULT_TOP_K",
    "BruteForceRetriever",
    "CandidateMenu",
    "IndexedRetriever",
    "MenuCandidate",
    "RetrievalAlgorithm",
    "SemanticRetriever",
    "cosine_similarity",
    "create_retriever",
]
