"""Semantic retrieval of menu candidates by cosine similarity.

Two implementations share one ranking contract: the top-k active products
with an embedding, sorted by non-increasing cosine similarity to the query,
ties broken by catalog order. There is no similarity cutoff.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum

import numpy as np

from ..catalog.index import CatalogIndex, CatalogSnapshot
from ..embedding.base import EmbeddingClient
from ..logger import EngineLogger
from ..shared.models import CatalogProduct
from .menu import CandidateMenu, MenuCandidate

logger = logging.getLogger(__name__)

DEFAULT_TOP_K = 15

# Scores are rounded before sorting so that vectors pointing the same way tie
# exactly and fall back to catalog order.
SCORE_DECIMALS = 10


class RetrievalAlgorithm(str, Enum):
    """Available retriever implementations."""

    BRUTE_FORCE = "brute_force"
    INDEXED = "indexed"


def _unit(vector: np.ndarray) -> np.ndarray:
    norm = float(np.linalg.norm(vector))
    if norm == 0.0:
        return np.zeros_like(vector, dtype=np.float64)
    return np.asarray(vector, dtype=np.float64) / norm


def _normalized_matrix(products: list[CatalogProduct], dimensions: int) -> np.ndarray:
    if not products:
        return np.zeros((0, dimensions), dtype=np.float64)
    matrix = np.asarray([p.embedding for p in products], dtype=np.float64)
    norms = np.linalg.norm(matrix, axis=1, keepdims=True)
    return np.divide(matrix, norms, out=np.zeros_like(matrix), where=norms != 0)


def _top_k(
    products: list[CatalogProduct], normalized: np.ndarray, query_vector: np.ndarray, k: int
) -> list[tuple[CatalogProduct, float]]:
    if not products:
        return []
    scores = np.round(normalized @ _unit(query_vector), SCORE_DECIMALS)
    # Stable sort on negated scores keeps catalog order among ties
    order = np.argsort(-scores, kind="stable")[:k]
    return [(products[i], float(scores[i])) for i in order]


def cosine_similarity(query: np.ndarray, vector: np.ndarray) -> float:
    """Compute dot(q, p) / (|q| * |p|) as used for ranking, or 0.0 when either norm is zero."""
    return float(np.round(np.dot(_unit(query), _unit(vector)), SCORE_DECIMALS))


def _rankable(products: tuple[CatalogProduct, ...], dimensions: int) -> list[CatalogProduct]:
    rankable = []
    for product in products:
        if not product.is_active:
            continue
        if product.embedding is None:
            logger.debug(f"Product {product.id} has no embedding, skipping")
            continue
        if len(product.embedding) != dimensions:
            logger.warning(
                f"Product {product.id} embedding has {len(product.embedding)} dimensions, "
                f"expected {dimensions}; skipping"
            )
            continue
        rankable.append(product)
    return rankable


class SemanticRetriever(ABC):
    """Ranks catalog products against a free-text query."""

    def __init__(self, index: CatalogIndex, embedding_client: EmbeddingClient):
        """Create a retriever over `index` using `embedding_client` for queries."""
        self.index = index
        self.embedding_client = embedding_client

    async def retrieve(
        self,
        query: str,
        k: int = DEFAULT_TOP_K,
        *,
        snapshot: CatalogSnapshot | None = None,
        logger: EngineLogger | None = None,
    ) -> CandidateMenu:
        """Return up to `k` products most similar to `query`.

        Args:
            query: Free-text description of what the customer wants.
            k: Maximum number of candidates.
            snapshot: Catalog snapshot to search; defaults to the index's current one.
            logger: Optional EngineLogger for the embedding call.

        Returns:
            The candidate menu, empty when nothing can be ranked.

        """
        snapshot = snapshot if snapshot is not None else self.index.snapshot()
        if k <= 0 or len(snapshot) == 0:
            return CandidateMenu(query=query)

        query_vector = np.asarray(
            await self.embedding_client.embed(query, logger=logger), dtype=np.float64
        )
        ranked = self._rank(query_vector, snapshot, k)

        menu = CandidateMenu(
            query=query,
            candidates=[MenuCandidate.from_product(p, score) for p, score in ranked],
        )
        _logger_for(logger).debug(
            f'Retrieved {len(menu.candidates)} candidates for "{query}": {menu.product_ids}'
        )
        return menu

    @abstractmethod
    def _rank(
        self, query_vector: np.ndarray, snapshot: CatalogSnapshot, k: int
    ) -> list[tuple[CatalogProduct, float]]:
        """Return the top `k` (product, similarity) pairs, best first."""
        pass


def _logger_for(engine_logger: EngineLogger | None) -> logging.Logger:
    return engine_logger.python_logger if engine_logger is not None else logger


class BruteForceRetriever(SemanticRetriever):
    """Scores every product on each query."""

    def _rank(
        self, query_vector: np.ndarray, snapshot: CatalogSnapshot, k: int
    ) -> list[tuple[CatalogProduct, float]]:
        products = _rankable(snapshot.products, len(query_vector))
        normalized = _normalized_matrix(products, len(query_vector))
        return _top_k(products, normalized, query_vector, k)


class IndexedRetriever(SemanticRetriever):
    """Keeps a normalized embedding matrix per snapshot and ranks with one product."""

    def __init__(self, index: CatalogIndex, embedding_client: EmbeddingClient):
        """Create an indexed retriever."""
        super().__init__(index, embedding_client)
        self._cache: tuple[CatalogSnapshot, int, list[CatalogProduct], np.ndarray] | None = None

    def _matrix_for(
        self, snapshot: CatalogSnapshot, dimensions: int
    ) -> tuple[list[CatalogProduct], np.ndarray]:
        cache = self._cache
        if cache is not None and cache[0] is snapshot and cache[1] == dimensions:
            return cache[2], cache[3]

        products = _rankable(snapshot.products, dimensions)
        normalized = _normalized_matrix(products, dimensions)

        self._cache = (snapshot, dimensions, products, normalized)
        logger.info(
            f"Built embedding matrix for catalog v{snapshot.version}: {normalized.shape}"
        )
        return products, normalized

    def _rank(
        self, query_vector: np.ndarray, snapshot: CatalogSnapshot, k: int
    ) -> list[tuple[CatalogProduct, float]]:
        products, matrix = self._matrix_for(snapshot, len(query_vector))
        return _top_k(products, matrix, query_vector, k)


def create_retriever(
    algorithm: RetrievalAlgorithm | str,
    index: CatalogIndex,
    embedding_client: EmbeddingClient,
) -> SemanticRetriever:
    """Build the retriever for `algorithm`."""
    algorithm = RetrievalAlgorithm(algorithm)
    if algorithm == RetrievalAlgorithm.BRUTE_FORCE:
        return BruteForceRetriever(index, embedding_client)
    elif algorithm == RetrievalAlgorithm.INDEXED:
        return IndexedRetriever(index, embedding_client)
    else:
        raise ValueError(f"Unknown retrieval algorithm: {algorithm}")
