"""Catalog storage: the interface the engine consumes and its PostgreSQL implementation."""

from .catalog import RANKING_SORTS, CatalogStore, ScoreWriteBatch
from .postgres import PostgresCatalogStore, get_catalog_store

__all__ = [
    "RANKING_SORTS",
    "CatalogStore",
    "ScoreWriteBatch",
    "PostgresCatalogStore",
    "get_catalog_store",
]
