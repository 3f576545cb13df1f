"""Offline embedding of catalog products."""

import asyncio
import logging

from ..embedding.base import EmbeddingClient
from ..shared.models import CatalogProduct, CustomizationKind

logger = logging.getLogger(__name__)

MAX_FLAVORS_IN_TEXT = 3
MAX_VARIANTS_IN_TEXT = 2


def product_embedding_text(product: CatalogProduct) -> str:
    """Build the text embedded for a product.

    Kept short and focused on the terms customers search with: name, category
    names, a few flavor names for pizzas and a couple of variant names.
    """
    parts = [product.name]
    if product.subcategory:
        parts.append(product.subcategory)
    if product.category:
        parts.append(product.category)

    if product.is_pizza:
        flavors = [
            c.name
            for c in product.pizza_customizations
            if c.is_active and c.kind == CustomizationKind.FLAVOR
        ]
        parts.extend(flavors[:MAX_FLAVORS_IN_TEXT])

    variant_names = [v.name for v in product.variants if v.is_active]
    parts.extend(variant_names[:MAX_VARIANTS_IN_TEXT])

    return " ".join(parts)


async def embed_catalog(
    products: list[CatalogProduct],
    client: EmbeddingClient,
    *,
    only_missing: bool = True,
) -> list[CatalogProduct]:
    """Return copies of `products` with embeddings filled in.

    Args:
        products: Products to embed.
        client: Embedding client used for every product.
        only_missing: Skip products that already carry an embedding.

    Returns:
        Products in the same order, with `embedding` populated.

    """
    to_embed = [
        (i, p)
        for i, p in enumerate(products)
        if p.is_active and (p.embedding is None or not only_missing)
    ]
    logger.info(f"Computing embeddings for {len(to_embed)} of {len(products)} products")

    vectors = await asyncio.gather(
        *(client.embed(product_embedding_text(p)) for _, p in to_embed)
    )

    result = list(products)
    for (i, product), vector in zip(to_embed, vectors, strict=True):
        result[i] = product.model_copy(update={"embedding": tuple(vector)})
    return result
