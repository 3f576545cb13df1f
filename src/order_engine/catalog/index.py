"""In-memory catalog index with versioned, copy-on-write snapshots."""

import logging
import threading
from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from ..shared.models import CatalogProduct

logger = logging.getLogger(__name__)


class CatalogSnapshot(BaseModel):
    """An immutable view of the catalog used for one resolution request."""

    model_config = ConfigDict(frozen=True)

    version: int = Field(default=0, description="Monotonic snapshot version")
    products: tuple[CatalogProduct, ...] = ()
    minimum_delivery_order: float | None = Field(
        default=None, description="Minimum subtotal for DELIVERY orders"
    )

    _products_by_id: dict[str, CatalogProduct] = PrivateAttr(default_factory=dict)

    def model_post_init(self, __context: Any) -> None:
        """Index products by ID."""
        self._products_by_id = {p.id: p for p in self.products}

    def get_product(self, product_id: str) -> CatalogProduct | None:
        """Look up a product by ID."""
        return self._products_by_id.get(product_id)

    def __len__(self) -> int:
        return len(self.products)


class CatalogIndex:
    """Holds the current catalog snapshot.

    Readers take a snapshot reference at the start of a request and keep using
    it, so a concurrent `replace` is never observed as a partial update.
    """

    def __init__(
        self,
        products: Iterable[CatalogProduct] = (),
        *,
        minimum_delivery_order: float | None = None,
    ):
        """Create an index seeded with the given products."""
        self._lock = threading.Lock()
        self._snapshot = CatalogSnapshot(
            version=0,
            products=tuple(products),
            minimum_delivery_order=minimum_delivery_order,
        )

    @classmethod
    def from_snapshot(cls, snapshot: CatalogSnapshot) -> "CatalogIndex":
        """Create an index whose current snapshot is `snapshot`."""
        index = cls()
        index._snapshot = snapshot
        return index

    def snapshot(self) -> CatalogSnapshot:
        """Return the current snapshot."""
        return self._snapshot

    def replace(
        self,
        products: Iterable[CatalogProduct],
        *,
        minimum_delivery_order: float | None = None,
    ) -> CatalogSnapshot:
        """Atomically publish a new snapshot and return it."""
        products = tuple(products)
        with self._lock:
            snapshot = CatalogSnapshot(
                version=self._snapshot.version + 1,
                products=products,
                minimum_delivery_order=minimum_delivery_order,
            )
            self._snapshot = snapshot
        logger.info(
            f"Catalog snapshot v{snapshot.version} published with {len(products)} products"
        )
        return snapshot
