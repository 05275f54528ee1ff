"""
In-memory cache of the catalog collections.

Admin views read categories, manufacturers and products from here; every
mutation names the collections it invalidates so the next read re-fetches
only what changed.
"""

from typing import Any, Callable, Optional
import structlog

logger = structlog.get_logger(__name__)

CATEGORIES = "categories"
MANUFACTURERS = "manufacturers"
PRODUCTS = "products"

COLLECTIONS = (CATEGORIES, MANUFACTURERS, PRODUCTS)


class CatalogCache:
    """
    Cached collections keyed by name.

    Usage:
        categories = cache.get(CATEGORIES, client.fetch_categories)
        ...
        client.add_category(data)
        cache.invalidate(CATEGORIES)
    """

    def __init__(self):
        self._data: dict[str, Any] = {}

    def get(self, collection: str, loader: Callable[[], Any]) -> Any:
        """Return the cached collection, loading it on a miss."""
        if collection not in self._data:
            logger.debug("catalog_cache_miss", collection=collection)
            self._data[collection] = loader()
        return self._data[collection]

    def peek(self, collection: str) -> Optional[Any]:
        """Cached value or None, never loads."""
        return self._data.get(collection)

    def is_cached(self, collection: str) -> bool:
        return collection in self._data

    def set(self, collection: str, value: Any) -> None:
        self._data[collection] = value

    def invalidate(self, *collections: str) -> None:
        """Drop the named collections (all of them when none are named)."""
        targets = collections or COLLECTIONS
        for name in targets:
            self._data.pop(name, None)
        logger.debug("catalog_cache_invalidated", collections=list(targets))


# Singleton instance for convenience
_catalog_cache: Optional[CatalogCache] = None


def get_catalog_cache() -> CatalogCache:
    """Get or create the shared CatalogCache."""
    global _catalog_cache
    if _catalog_cache is None:
        _catalog_cache = CatalogCache()
    return _catalog_cache
