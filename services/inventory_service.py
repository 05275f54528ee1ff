"""
Inventory overview.

Classifies every product by its total stock across sizes and produces
the counts shown at the top of the inventory screen.
"""

from enum import Enum
from typing import Optional
import structlog

from config import settings
from models.base import BaseSchema
from models.product import Product
from services.product_service import ProductQuery, ProductService, filter_and_sort, get_product_service

logger = structlog.get_logger(__name__)


class StockFilter(str, Enum):
    """Which products the overview lists."""
    ALL = "all"
    IN_STOCK = "in_stock"
    LOW_STOCK = "low_stock"
    OUT_OF_STOCK = "out_of_stock"


class StockLevel(str, Enum):
    """Stock level of a single product."""
    OUT = "out"   # Nothing left in any size
    LOW = "low"   # At or below the low stock threshold
    OK = "ok"


class InventorySummary(BaseSchema):
    """Counts over the whole catalog plus the filtered product list."""

    total_products: int = 0
    in_stock_count: int = 0
    low_stock_count: int = 0
    out_of_stock_count: int = 0
    low_stock_threshold: int

    products: list[Product]


def stock_level(product: Product, threshold: int) -> StockLevel:
    total = product.total_stock
    if total <= 0:
        return StockLevel.OUT
    if total <= threshold:
        return StockLevel.LOW
    return StockLevel.OK


def matches_filter(product: Product, stock_filter: StockFilter, threshold: int) -> bool:
    if stock_filter == StockFilter.ALL:
        return True
    level = stock_level(product, threshold)
    if stock_filter == StockFilter.IN_STOCK:
        return level != StockLevel.OUT
    if stock_filter == StockFilter.LOW_STOCK:
        return level == StockLevel.LOW
    return level == StockLevel.OUT


class InventoryService:
    """
    Inventory overview business logic.

    Low stock means 0 < total stock <= low_stock_threshold. In-stock
    products include low ones.
    """

    def __init__(
        self,
        product_service: Optional[ProductService] = None,
        low_stock_threshold: Optional[int] = None,
    ):
        self.product_service = product_service or get_product_service()
        self.threshold = (
            low_stock_threshold if low_stock_threshold is not None
            else settings.low_stock_threshold
        )

    def overview(
        self,
        stock_filter: StockFilter = StockFilter.ALL,
        search: Optional[str] = None,
        refresh: bool = False,
    ) -> InventorySummary:
        """
        Inventory counts and the products matching the filter.

        Counts always cover the whole catalog; only the product list is
        narrowed by filter and search. Products come back sorted by title.
        """
        logger.info("building_inventory_overview", stock_filter=stock_filter.value, search=search)

        products = self.product_service.get_all(refresh=refresh)
        levels = [stock_level(p, self.threshold) for p in products]

        listed = [p for p in products if matches_filter(p, stock_filter, self.threshold)]
        listed = filter_and_sort(listed, ProductQuery(search=search, sort_by="title"))

        summary = InventorySummary(
            total_products=len(products),
            in_stock_count=sum(1 for lvl in levels if lvl != StockLevel.OUT),
            low_stock_count=sum(1 for lvl in levels if lvl == StockLevel.LOW),
            out_of_stock_count=sum(1 for lvl in levels if lvl == StockLevel.OUT),
            low_stock_threshold=self.threshold,
            products=listed,
        )

        logger.info(
            "inventory_overview_built",
            total=summary.total_products,
            low_stock=summary.low_stock_count,
            out_of_stock=summary.out_of_stock_count,
            listed=len(listed)
        )
        return summary

    def low_stock(self) -> list[Product]:
        return self.overview(StockFilter.LOW_STOCK).products

    def out_of_stock(self) -> list[Product]:
        return self.overview(StockFilter.OUT_OF_STOCK).products


# Singleton instance for convenience
_inventory_service: Optional[InventoryService] = None

def get_inventory_service() -> InventoryService:
    """Get or create InventoryService instance."""
    global _inventory_service
    if _inventory_service is None:
        _inventory_service = InventoryService()
    return _inventory_service
