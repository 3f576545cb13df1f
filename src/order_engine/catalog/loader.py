"""YAML/JSON loading functions for catalog data."""

from pathlib import Path

import yaml

from .index import CatalogSnapshot


def load_catalog(path: str | Path) -> CatalogSnapshot:
    """Load a catalog snapshot from a YAML or JSON file.

    The file holds a mapping with a `products` list and an optional
    `minimum_delivery_order`.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Catalog file not found: {path}")

    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if not isinstance(data, dict):
        raise ValueError(f"Catalog file must contain a mapping: {path}")

    return CatalogSnapshot.model_validate(data)


def save_catalog(snapshot: CatalogSnapshot, path: str | Path) -> None:
    """Write a catalog snapshot as YAML."""
    data = snapshot.model_dump(mode="json", exclude_none=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, allow_unicode=True, sort_keys=False)
