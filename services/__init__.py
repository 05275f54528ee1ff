"""
Business logic services.

Each service handles one domain area.
"""

from services.catalog_cache import CatalogCache, get_catalog_cache
from services.product_service import ProductService, ProductQuery, BulkResult, get_product_service
from services.category_service import CategoryService, get_category_service
from services.import_service import ImportService, get_import_service
from services.export_service import ExportService, get_export_service, export_filename
from services.inventory_service import (
    InventoryService,
    get_inventory_service,
    StockFilter,
    StockLevel,
    InventorySummary,
)
from services.sales_service import SalesService, Cart, CartItem, get_sales_service
from services.user_service import UserService, get_user_service

__all__ = [
    "CatalogCache",
    "get_catalog_cache",
    "ProductService",
    "ProductQuery",
    "BulkResult",
    "get_product_service",
    "CategoryService",
    "get_category_service",
    "ImportService",
    "get_import_service",
    "ExportService",
    "get_export_service",
    "export_filename",
    "InventoryService",
    "get_inventory_service",
    "StockFilter",
    "StockLevel",
    "InventorySummary",
    "SalesService",
    "Cart",
    "CartItem",
    "get_sales_service",
    "UserService",
    "get_user_service",
]
