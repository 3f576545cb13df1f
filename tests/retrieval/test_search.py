"""Tests for semantic retrieval."""

import json

import numpy as np
import pytest

from order_engine.catalog.index import CatalogIndex, CatalogSnapshot
from order_engine.retrieval.search import (
    BruteForceRetriever,
    IndexedRetriever,
    RetrievalAlgorithm,
    cosine_similarity,
    create_retriever,
)
from order_engine.shared.models import CatalogProduct

RETRIEVERS = [BruteForceRetriever, IndexedRetriever]


def product(product_id: str, embedding, **kwargs) -> CatalogProduct:
    return CatalogProduct(
        id=product_id,
        name=product_id,
        price=10.0,
        embedding=tuple(embedding) if embedding is not None else None,
        **kwargs,
    )


class TestCosineSimilarity:
    """Tests for cosine_similarity."""

    def test_identical_vectors(self):
        """Parallel vectors have similarity 1."""
        assert cosine_similarity(np.array([1.0, 2.0]), np.array([2.0, 4.0])) == pytest.approx(1.0)

    def test_orthogonal_vectors(self):
        """Orthogonal vectors have similarity 0."""
        assert cosine_similarity(np.array([1.0, 0.0]), np.array([0.0, 3.0])) == 0.0

    def test_zero_vector(self):
        """A zero vector has similarity 0 instead of dividing by zero."""
        assert cosine_similarity(np.zeros(2), np.array([1.0, 1.0])) == 0.0


@pytest.mark.parametrize("retriever_cls", RETRIEVERS)
class TestRetrievers:
    """Ranking contract shared by every retriever."""

    @pytest.mark.asyncio
    async def test_best_match_first(self, retriever_cls, catalog_index, embedding_client):
        """The most similar product ranks first."""
        retriever = retriever_cls(catalog_index, embedding_client)
        menu = await retriever.retrieve("hamburguesa doble", 3)
        assert menu.product_ids[0] == "HB"
        assert len(menu.candidates) == 3

    @pytest.mark.asyncio
    async def test_sorted_subset_of_catalog(
        self, retriever_cls, catalog_index, embedding_client, snapshot
    ):
        """Results are at most k, sorted by non-increasing score, and come from the catalog."""
        retriever = retriever_cls(catalog_index, embedding_client)
        menu = await retriever.retrieve("pizza con refresco", 10)
        scores = [c.score for c in menu.candidates]
        assert scores == sorted(scores, reverse=True)
        assert len(menu.candidates) <= 10
        assert set(menu.product_ids) <= {p.id for p in snapshot.products}

    @pytest.mark.asyncio
    async def test_inactive_products_excluded(
        self, retriever_cls, catalog_index, embedding_client
    ):
        """Inactive products never appear, even when they match best."""
        retriever = retriever_cls(catalog_index, embedding_client)
        menu = await retriever.retrieve("pizza hamburguesa", 10)
        assert "EN" not in menu.product_ids
        assert len(menu.candidates) == 4

    @pytest.mark.asyncio
    async def test_ties_keep_catalog_order(self, retriever_cls, embedding_client):
        """Equal scores keep catalog order."""
        index = CatalogIndex(
            [
                product("B", [0.0, 1.0, 0.0, 0.0]),
                product("A", [0.0, 1.0, 0.0, 0.0]),
                product("C", [1.0, 0.0, 0.0, 0.0]),
            ]
        )
        menu = await retriever_cls(index, embedding_client).retrieve("hamburguesa", 3)
        assert menu.product_ids == ["B", "A", "C"]

    @pytest.mark.asyncio
    async def test_parallel_embeddings_tie(self, retriever_cls, embedding_client):
        """Embeddings differing only in scale tie and keep catalog order."""
        base = [0.3, -1.7, 0.25, 2.9]
        scales = [1.0, 3.0, 0.1, 7.3, 1000.0]
        index = CatalogIndex(
            [product(f"P{i}", [s * x for x in base]) for i, s in enumerate(scales)]
        )
        embedding_client.vectors = {"consulta": (0.8, 0.1, -0.4, 1.3)}

        menu = await retriever_cls(index, embedding_client).retrieve("consulta", 5)

        assert menu.product_ids == ["P0", "P1", "P2", "P3", "P4"]
        assert len({c.score for c in menu.candidates}) == 1

    @pytest.mark.asyncio
    async def test_products_without_matching_embedding_skipped(
        self, retriever_cls, embedding_client
    ):
        """Products without an embedding or with the wrong dimensions are not ranked."""
        index = CatalogIndex(
            [
                product("A", None),
                product("B", [1.0, 0.0]),
                product("C", [1.0, 0.0, 0.0, 0.0]),
            ]
        )
        menu = await retriever_cls(index, embedding_client).retrieve("pizza", 5)
        assert menu.product_ids == ["C"]

    @pytest.mark.asyncio
    async def test_empty_catalog(self, retriever_cls, embedding_client):
        """An empty catalog gives an empty menu without embedding the query."""
        menu = await retriever_cls(CatalogIndex(), embedding_client).retrieve("pizza")
        assert menu.is_empty
        assert embedding_client.calls == []

    @pytest.mark.asyncio
    async def test_no_similarity_cutoff(self, retriever_cls, catalog_index, embedding_client):
        """Unrelated queries still return up to k products."""
        menu = await retriever_cls(catalog_index, embedding_client).retrieve("sushi", 2)
        assert len(menu.candidates) == 2

    @pytest.mark.asyncio
    async def test_uses_given_snapshot(self, retriever_cls, catalog_index, embedding_client):
        """An explicit snapshot is searched instead of the current one."""
        pinned = catalog_index.snapshot()
        catalog_index.replace([product("NEW", [0.0, 1.0, 0.0, 0.0])])
        retriever = retriever_cls(catalog_index, embedding_client)

        pinned_menu = await retriever.retrieve("hamburguesa", 1, snapshot=pinned)
        current_menu = await retriever.retrieve("hamburguesa", 1)

        assert pinned_menu.product_ids == ["HB"]
        assert current_menu.product_ids == ["NEW"]


class TestIndexedRetriever:
    """Tests specific to the matrix-backed retriever."""

    @pytest.mark.asyncio
    async def test_matrix_rebuilt_for_new_snapshot(self, catalog_index, embedding_client):
        """The cached matrix follows snapshot swaps."""
        retriever = IndexedRetriever(catalog_index, embedding_client)
        await retriever.retrieve("pizza", 1)
        first_cache = retriever._cache

        await retriever.retrieve("pizza", 1)
        assert retriever._cache is first_cache

        catalog_index.replace(catalog_index.snapshot().products)
        await retriever.retrieve("pizza", 1)
        assert retriever._cache is not first_cache

    @pytest.mark.asyncio
    async def test_matches_brute_force(self, snapshot, embedding_client):
        """Both algorithms agree on ranking."""
        index = CatalogIndex.from_snapshot(snapshot)
        for query in ["pizza", "alitas con refresco", "hamburguesa y pizza"]:
            brute = await BruteForceRetriever(index, embedding_client).retrieve(query, 5)
            indexed = await IndexedRetriever(index, embedding_client).retrieve(query, 5)
            assert brute.product_ids == indexed.product_ids


class TestRetrieverParity:
    """Both retrievers must be interchangeable."""

    @pytest.mark.asyncio
    async def test_random_catalogs_rank_identically(self, embedding_client):
        """Scaled copies and near-ties rank the same way in both retrievers."""
        rng = np.random.default_rng(7)
        scales = [1.0, 3.0, 0.1, 7.3, 1000.0]
        for _ in range(100):
            base = rng.normal(size=4)
            products = [
                product(f"P{i}", base * s) for i, s in enumerate(scales)
            ] + [
                product(f"N{i}", base + rng.normal(scale=1e-3, size=4))
                for i in range(3)
            ]
            index = CatalogIndex(products)
            embedding_client.vectors = {"consulta": tuple(rng.normal(size=4))}

            brute = await BruteForceRetriever(index, embedding_client).retrieve(
                "consulta", len(products)
            )
            indexed = await IndexedRetriever(index, embedding_client).retrieve(
                "consulta", len(products)
            )

            assert brute.product_ids == indexed.product_ids
            scaled = [pid for pid in brute.product_ids if pid.startswith("P")]
            assert scaled == ["P0", "P1", "P2", "P3", "P4"]


class TestCandidateMenu:
    """Tests for the menu slice sent to the model."""

    @pytest.mark.asyncio
    async def test_json_has_only_mapping_fields(self, catalog_index, embedding_client):
        """Scores and inactive options are left out of the model-facing JSON."""
        retriever = BruteForceRetriever(catalog_index, embedding_client)
        menu = await retriever.retrieve("pizza", 1)
        [pizza] = json.loads(menu.to_json())

        assert list(pizza)[:2] == ["id", "name"]
        assert "score" not in pizza
        assert [v["id"] for v in pizza["variants"]] == ["PZ-V-1", "PZ-V-2"]
        assert "PZ-I-6" not in [c["id"] for c in pizza["pizza_customizations"]]
        assert "modifier_groups" not in pizza

    @pytest.mark.asyncio
    async def test_modifier_groups_listed(self, catalog_index, embedding_client):
        """Modifier groups carry their rules and active options."""
        retriever = BruteForceRetriever(catalog_index, embedding_client)
        menu = await retriever.retrieve("hamburguesa", 1)
        [burger] = json.loads(menu.to_json())
        extras = burger["modifier_groups"][1]
        assert extras["name"] == "Extras"
        assert extras["multiple"] is True
        assert [o["name"] for o in extras["options"]] == ["Extra queso", "Tocino"]


class TestCreateRetriever:
    """Tests for create_retriever."""

    def test_by_name(self, catalog_index, embedding_client):
        """Algorithms can be chosen by value."""
        assert isinstance(
            create_retriever("brute_force", catalog_index, embedding_client),
            BruteForceRetriever,
        )
        assert isinstance(
            create_retriever(RetrievalAlgorithm.INDEXED, catalog_index, embedding_client),
            IndexedRetriever,
        )

    def test_unknown_algorithm(self, catalog_index, embedding_client):
        """Unknown algorithms are rejected."""
        with pytest.raises(ValueError):
            create_retriever("bm25", catalog_index, embedding_client)
