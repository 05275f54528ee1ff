"""
Pydantic models for validation and serialization.
"""

from models.base import BaseSchema
from models.product import (
    SizeStock,
    ProductRecord,
    Product,
)
from models.catalog import (
    CategoryCreate,
    Category,
    ManufacturerCreate,
    Manufacturer,
)
from models.user import (
    UserRole,
    User,
    UserCreate,
    UserUpdate,
)
from models.sales import (
    PaymentMethod,
    SaleItemRecord,
    SaleCreate,
    SubmittedSale,
    SalesSummary,
)
from models.imports import (
    ImportRow,
    RowStatus,
    ImportStatus,
    CatalogIndex,
    RowOutcome,
    ImportSummary,
)

__all__ = [
    # Base
    "BaseSchema",

    # Product
    "SizeStock",
    "ProductRecord",
    "Product",

    # Catalog
    "CategoryCreate",
    "Category",
    "ManufacturerCreate",
    "Manufacturer",

    # Users
    "UserRole",
    "User",
    "UserCreate",
    "UserUpdate",

    # Sales
    "PaymentMethod",
    "SaleItemRecord",
    "SaleCreate",
    "SubmittedSale",
    "SalesSummary",

    # Import
    "ImportRow",
    "RowStatus",
    "ImportStatus",
    "CatalogIndex",
    "RowOutcome",
    "ImportSummary",
]
