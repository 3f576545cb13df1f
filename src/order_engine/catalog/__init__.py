"""Catalog snapshots, loading and offline embedding."""

from .index import CatalogIndex, CatalogSnapshot
from .loader import load_catalog, save_catalog

__all__ = ["CatalogIndex", "CatalogSnapshot", "load_catalog", "save_catalog"]
