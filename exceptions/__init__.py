"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    ConflictError,
    ExternalServiceError,

    # Remote service
    ApiError,
    AuthenticationError,
    NotAuthenticatedError,

    # Product-specific
    ProductNotFoundError,
    InvalidStockError,

    # Import / export
    ImportFileError,
    NothingToExportError,

    # Sales
    EmptyCartError,
    InsufficientStockError,
    SaleNotFoundError,

    # Users
    UserNotFoundError,
    SelfDeleteError,
    InvalidPasswordError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "ExternalServiceError",

    # Remote service
    "ApiError",
    "AuthenticationError",
    "NotAuthenticatedError",

    # Product
    "ProductNotFoundError",
    "InvalidStockError",

    # Import / export
    "ImportFileError",
    "NothingToExportError",

    # Sales
    "EmptyCartError",
    "InsufficientStockError",
    "SaleNotFoundError",

    # Users
    "UserNotFoundError",
    "SelfDeleteError",
    "InvalidPasswordError",
]
