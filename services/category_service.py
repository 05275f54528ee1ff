"""
Category and manufacturer management.

Products carry denormalized category/manufacturer names, so renaming or
deleting either also invalidates the cached product list.
"""

from typing import Optional
import structlog

from exceptions import ApiError, ConflictError, NotFoundError
from integrations.pos_api import PosApiClient, get_pos_client
from models.catalog import Category, CategoryCreate, Manufacturer, ManufacturerCreate
from services.catalog_cache import (
    CatalogCache,
    CATEGORIES,
    MANUFACTURERS,
    PRODUCTS,
    get_catalog_cache,
)

logger = structlog.get_logger(__name__)

CATEGORY_MUTATION_INVALIDATES = (CATEGORIES, PRODUCTS)
MANUFACTURER_MUTATION_INVALIDATES = (MANUFACTURERS, PRODUCTS)


class CategoryService:
    """Categories and manufacturers, read through the catalog cache."""

    def __init__(
        self,
        client: Optional[PosApiClient] = None,
        cache: Optional[CatalogCache] = None,
    ):
        self.client = client or get_pos_client()
        self.cache = cache or get_catalog_cache()

    # ===================
    # CATEGORIES
    # ===================

    def get_categories(self, refresh: bool = False) -> list[Category]:
        if refresh:
            self.cache.invalidate(CATEGORIES)
        return self.cache.get(CATEGORIES, self.client.fetch_categories)

    def create_category(self, name: str) -> Category:
        logger.info("creating_category", name=name)
        try:
            category = self.client.add_category(CategoryCreate(name=name))
        finally:
            self.cache.invalidate(*CATEGORY_MUTATION_INVALIDATES)
        logger.info("category_created", category_id=category.id)
        return category

    def rename_category(self, category_id: str, name: str) -> Category:
        logger.info("renaming_category", category_id=category_id, name=name)
        try:
            category = self.client.update_category(Category(id=category_id, name=name))
        finally:
            self.cache.invalidate(*CATEGORY_MUTATION_INVALIDATES)
        if category is None:
            raise NotFoundError("Category", category_id)
        return category

    def delete_category(self, category_id: str) -> None:
        """
        Delete a category.

        Raises:
            ConflictError: If the backend refuses (e.g. products still use it)
        """
        logger.info("deleting_category", category_id=category_id)
        try:
            result = self.client.delete_category(category_id)
        except ApiError as e:
            logger.error("delete_category_failed", category_id=category_id, error=e.message)
            raise
        finally:
            self.cache.invalidate(*CATEGORY_MUTATION_INVALIDATES)

        if not result.get("success"):
            raise ConflictError(
                result.get("message") or "Category could not be deleted",
                code="CATEGORY_DELETE_REFUSED",
                details={"id": category_id},
            )
        logger.info("category_deleted", category_id=category_id)

    # ===================
    # MANUFACTURERS
    # ===================

    def get_manufacturers(self, refresh: bool = False) -> list[Manufacturer]:
        if refresh:
            self.cache.invalidate(MANUFACTURERS)
        return self.cache.get(MANUFACTURERS, self.client.fetch_manufacturers)

    def create_manufacturer(self, name: str) -> Manufacturer:
        logger.info("creating_manufacturer", name=name)
        try:
            manufacturer = self.client.add_manufacturer(ManufacturerCreate(name=name))
        finally:
            self.cache.invalidate(*MANUFACTURER_MUTATION_INVALIDATES)
        logger.info("manufacturer_created", manufacturer_id=manufacturer.id)
        return manufacturer

    def rename_manufacturer(self, manufacturer_id: str, name: str) -> Manufacturer:
        logger.info("renaming_manufacturer", manufacturer_id=manufacturer_id, name=name)
        try:
            manufacturer = self.client.update_manufacturer(Manufacturer(id=manufacturer_id, name=name))
        finally:
            self.cache.invalidate(*MANUFACTURER_MUTATION_INVALIDATES)
        if manufacturer is None:
            raise NotFoundError("Manufacturer", manufacturer_id)
        return manufacturer

    def delete_manufacturer(self, manufacturer_id: str) -> None:
        logger.info("deleting_manufacturer", manufacturer_id=manufacturer_id)
        try:
            result = self.client.delete_manufacturer(manufacturer_id)
        except ApiError as e:
            logger.error("delete_manufacturer_failed", manufacturer_id=manufacturer_id, error=e.message)
            raise
        finally:
            self.cache.invalidate(*MANUFACTURER_MUTATION_INVALIDATES)

        if not result.get("success"):
            raise ConflictError(
                result.get("message") or "Manufacturer could not be deleted",
                code="MANUFACTURER_DELETE_REFUSED",
                details={"id": manufacturer_id},
            )
        logger.info("manufacturer_deleted", manufacturer_id=manufacturer_id)

    # ===================
    # LOOKUPS
    # ===================

    def category_names(self) -> dict[str, str]:
        """Category id -> name."""
        return {c.id: c.name for c in self.get_categories()}

    def manufacturer_names(self) -> dict[str, str]:
        """Manufacturer id -> name."""
        return {m.id: m.name for m in self.get_manufacturers()}


# Singleton instance for convenience
_category_service: Optional[CategoryService] = None

def get_category_service() -> CategoryService:
    """Get or create CategoryService instance."""
    global _category_service
    if _category_service is None:
        _category_service = CategoryService()
    return _category_service
