"""
Product service for back-office product management.

CRUD against the POS backend, list filtering/sorting, and bulk actions
over a selection. Every mutation invalidates the cached product list.
"""

from dataclasses import dataclass, field
from typing import Any, Optional
import structlog

from exceptions import ApiError, InvalidStockError, ProductNotFoundError
from integrations.pos_api import PosApiClient, get_pos_client
from models.product import Product, ProductRecord, SizeStock
from services.catalog_cache import CatalogCache, PRODUCTS, get_catalog_cache

logger = structlog.get_logger(__name__)

# Collections a product mutation makes stale
PRODUCT_MUTATION_INVALIDATES = (PRODUCTS,)

SORTABLE_FIELDS = {
    "title", "code", "price", "category_id", "manufacturer_id",
    "category_name", "manufacturer_name", "is_visible", "total_stock",
}


@dataclass
class ProductQuery:
    """Filters and sort applied to an in-memory product list."""
    search: Optional[str] = None
    category_id: Optional[str] = None
    manufacturer_id: Optional[str] = None
    sort_by: Optional[str] = None
    descending: bool = False


@dataclass
class BulkResult:
    """Outcome of a bulk action over selected products."""
    succeeded: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.succeeded > 0 and not self.errors

    def message(self, action: str) -> str:
        parts = []
        if self.succeeded:
            parts.append(f"{self.succeeded} product(s) {action} successfully.")
        if self.errors:
            parts.append(f"{len(self.errors)} product(s) failed. Details: {', '.join(self.errors)}")
        if not parts:
            parts.append(f"No products were {action}.")
        return " ".join(parts)


def filter_and_sort(products: list[Product], query: ProductQuery) -> list[Product]:
    """
    Apply search, filters and sort to a product list.

    Search matches title or code (case-insensitive substring). Strings sort
    case-insensitively; missing values sort first when ascending.
    """
    result = list(products)

    if query.search:
        term = query.search.lower()
        result = [p for p in result if term in p.title.lower() or term in p.code.lower()]
    if query.category_id:
        result = [p for p in result if p.category_id == query.category_id]
    if query.manufacturer_id:
        result = [p for p in result if p.manufacturer_id == query.manufacturer_id]

    if query.sort_by:
        if query.sort_by not in SORTABLE_FIELDS:
            raise ValueError(f"Cannot sort by {query.sort_by}")
        result.sort(key=lambda p: _sort_key(getattr(p, query.sort_by)), reverse=query.descending)

    return result


def _sort_key(value: Any) -> tuple:
    if value is None:
        return (0, "")
    if isinstance(value, str):
        return (1, value.lower())
    return (1, value)


class ProductService:
    """
    Product business logic.

    Handles CRUD operations for products.
    """

    def __init__(
        self,
        client: Optional[PosApiClient] = None,
        cache: Optional[CatalogCache] = None,
    ):
        self.client = client or get_pos_client()
        self.cache = cache or get_catalog_cache()

    # ===================
    # READ OPERATIONS
    # ===================

    def get_all(self, refresh: bool = False) -> list[Product]:
        """
        All products regardless of visibility (admin view).

        Args:
            refresh: Ignore the cached list and re-fetch
        """
        if refresh:
            self.cache.invalidate(PRODUCTS)

        products = self.cache.get(PRODUCTS, self.client.fetch_all_products_admin)
        logger.info("products_retrieved", count=len(products))
        return products

    def list_products(self, query: Optional[ProductQuery] = None, refresh: bool = False) -> list[Product]:
        """Admin product list with search, filters and sort applied."""
        return filter_and_sort(self.get_all(refresh=refresh), query or ProductQuery())

    def search_public(self, search: Optional[str] = None, category_id: Optional[str] = None) -> list[Product]:
        """Visible products for the POS screen, filtered by the backend."""
        logger.debug("searching_public_products", search=search, category_id=category_id)
        return self.client.fetch_products(query=search, category_id=category_id)

    def get_by_id(self, product_id: str) -> Product:
        """
        Get a single product by ID.

        Raises:
            ProductNotFoundError: If product doesn't exist
        """
        logger.debug("getting_product", product_id=product_id)

        try:
            product = self.client.fetch_product(product_id)
        except ApiError as e:
            if e.status_code == 404:
                raise ProductNotFoundError(product_id) from e
            logger.error("get_product_failed", product_id=product_id, error=e.message)
            raise

        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    def get_by_code(self, code: str) -> Optional[Product]:
        """Product with this code (case-insensitive), or None."""
        wanted = code.strip().lower()
        for product in self.get_all():
            if product.code.lower() == wanted:
                return product
        return None

    # ===================
    # WRITE OPERATIONS
    # ===================

    def create(self, record: ProductRecord) -> Product:
        """Create a new product."""
        logger.info("creating_product", code=record.code)

        try:
            product = self.client.add_product(record)
        except ApiError as e:
            logger.error("create_product_failed", code=record.code, error=e.message)
            raise
        finally:
            self.cache.invalidate(*PRODUCT_MUTATION_INVALIDATES)

        logger.info("product_created", product_id=product.id, code=product.code)
        return product

    def update(self, product_id: str, record: ProductRecord) -> Product:
        """
        Replace an existing product's fields.

        Raises:
            ProductNotFoundError: If the backend returns nothing for the id
        """
        logger.info("updating_product", product_id=product_id)

        try:
            product = self.client.update_product(product_id, record)
        except ApiError as e:
            logger.error("update_product_failed", product_id=product_id, error=e.message)
            if e.status_code == 404:
                raise ProductNotFoundError(product_id) from e
            raise
        finally:
            self.cache.invalidate(*PRODUCT_MUTATION_INVALIDATES)

        if product is None:
            raise ProductNotFoundError(product_id)

        logger.info("product_updated", product_id=product_id)
        return product

    def delete(self, product_id: str) -> bool:
        """Delete a product. Returns False if the backend did not confirm."""
        logger.info("deleting_product", product_id=product_id)

        try:
            deleted = self.client.delete_product(product_id)
        except ApiError as e:
            logger.error("delete_product_failed", product_id=product_id, error=e.message)
            raise
        finally:
            self.cache.invalidate(*PRODUCT_MUTATION_INVALIDATES)

        logger.info("product_deleted", product_id=product_id, confirmed=deleted)
        return deleted

    def toggle_visibility(self, product_id: str) -> Product:
        logger.info("toggling_product_visibility", product_id=product_id)
        try:
            product = self.client.toggle_product_visibility(product_id)
        finally:
            self.cache.invalidate(*PRODUCT_MUTATION_INVALIDATES)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    def duplicate(self, product_id: str) -> Product:
        logger.info("duplicating_product", product_id=product_id)
        try:
            product = self.client.duplicate_product(product_id)
        finally:
            self.cache.invalidate(*PRODUCT_MUTATION_INVALIDATES)
        if product is None:
            raise ProductNotFoundError(product_id)
        logger.info("product_duplicated", source_id=product_id, product_id=product.id)
        return product

    def update_stock(
        self,
        product_id: str,
        size: Optional[str] = None,
        stock: Optional[int] = None,
        sizes: Optional[list[SizeStock]] = None,
    ) -> Any:
        """
        Set absolute stock for one size, or replace every size at once.

        Raises:
            InvalidStockError: If neither a size+stock pair nor a sizes list is given
        """
        if sizes is None and (size is None or stock is None):
            raise InvalidStockError()
        if stock is not None and stock < 0:
            raise InvalidStockError("Stock cannot be negative")

        logger.info("updating_product_stock", product_id=product_id, size=size, replace_all=sizes is not None)
        try:
            return self.client.update_product_stock(
                product_id,
                size_name=size,
                new_stock=stock,
                sizes=sizes,
            )
        finally:
            self.cache.invalidate(*PRODUCT_MUTATION_INVALIDATES)

    # ===================
    # BULK OPERATIONS
    # ===================

    def bulk_delete(self, product_ids: list[str]) -> BulkResult:
        """Delete each selected product in turn; failures don't stop the rest."""
        logger.info("bulk_delete_products", count=len(product_ids))
        result = BulkResult()

        for product_id in product_ids:
            try:
                if self.client.delete_product(product_id):
                    result.succeeded += 1
                else:
                    result.errors.append(f"Product ID {product_id} not found or not deleted by server.")
            except ApiError as e:
                logger.error("bulk_delete_product_failed", product_id=product_id, error=e.message)
                result.errors.append(f"Product ID {product_id}: {e.message}")

        self.cache.invalidate(*PRODUCT_MUTATION_INVALIDATES)
        logger.info("bulk_delete_complete", deleted=result.succeeded, failed=len(result.errors))
        return result

    def bulk_edit(
        self,
        product_ids: list[str],
        category_id: Optional[str] = None,
        manufacturer_id: Optional[str] = None,
        is_visible: Optional[bool] = None,
    ) -> BulkResult:
        """
        Set category, manufacturer and/or visibility on each selected product.

        Fields left as None keep each product's current value.
        """
        logger.info("bulk_edit_products", count=len(product_ids))

        overrides: dict[str, Any] = {}
        if category_id is not None:
            overrides["category_id"] = category_id
        if manufacturer_id is not None:
            overrides["manufacturer_id"] = manufacturer_id
        if is_visible is not None:
            overrides["is_visible"] = is_visible

        by_id = {p.id: p for p in self.get_all()}
        result = BulkResult()

        for product_id in product_ids:
            current = by_id.get(product_id)
            if current is None:
                result.errors.append(f"Product ID {product_id} not found for update.")
                continue
            try:
                updated = self.client.update_product(product_id, current.to_record(**overrides))
                if updated:
                    result.succeeded += 1
                else:
                    result.errors.append(f"Product ID {product_id}: Update returned no data.")
            except ApiError as e:
                logger.error("bulk_edit_product_failed", product_id=product_id, error=e.message)
                result.errors.append(f"Product ID {product_id}: {e.message}")

        self.cache.invalidate(*PRODUCT_MUTATION_INVALIDATES)
        logger.info("bulk_edit_complete", updated=result.succeeded, failed=len(result.errors))
        return result


# Singleton instance for convenience
_product_service: Optional[ProductService] = None

def get_product_service() -> ProductService:
    """Get or create ProductService instance."""
    global _product_service
    if _product_service is None:
        _product_service = ProductService()
    return _product_service
