"""
Custom exception classes for the application.

Row-level import problems are never raised; they are collected as
rejection reasons on the row outcome. Everything here is for failures
that stop an operation.
"""

from typing import Optional, Any
from datetime import datetime


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "PRODUCT_NOT_FOUND")
        message: Human-readable message
        status_code: HTTP-style status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.utcnow().isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to a serializable error payload."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class ConflictError(AppError):
    """Conflict with existing resource (409)."""

    def __init__(
        self,
        message: str,
        code: str = "CONFLICT",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=409,
            details=details
        )


class ExternalServiceError(AppError):
    """External service failure (503)."""

    def __init__(
        self,
        service: str,
        message: str,
        status_code: int = 503,
        details: Optional[dict] = None
    ):
        super().__init__(
            code=f"{service.upper()}_ERROR",
            message=message,
            status_code=status_code,
            details={"service": service, **(details or {})}
        )


# ===================
# REMOTE SERVICE ERRORS
# ===================

class ApiError(ExternalServiceError):
    """
    The POS backend rejected a request or could not be reached.

    `message` is the backend's own `message` field when it sent one.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 503,
        details: Optional[dict] = None
    ):
        super().__init__(
            service="pos_api",
            message=message,
            status_code=status_code,
            details=details
        )


class AuthenticationError(AppError):
    """Login rejected (401)."""

    def __init__(self, message: str = "Invalid username or password"):
        super().__init__(
            code="AUTHENTICATION_FAILED",
            message=message,
            status_code=401
        )


class NotAuthenticatedError(AppError):
    """Operation requires a signed-in session (401)."""

    def __init__(self):
        super().__init__(
            code="NOT_AUTHENTICATED",
            message="Sign in first",
            status_code=401
        )


# ===================
# PRODUCT ERRORS
# ===================

class ProductNotFoundError(NotFoundError):
    """Product not found."""

    def __init__(self, product_id: str):
        super().__init__(
            resource="Product",
            identifier=product_id,
            code="PRODUCT_NOT_FOUND"
        )


class InvalidStockError(ValidationError):
    """Stock update parameters are inconsistent."""

    def __init__(self, message: str = "Provide either a size and stock value or a full sizes array"):
        super().__init__(
            code="INVALID_STOCK_UPDATE",
            message=message
        )


# ===================
# IMPORT / EXPORT ERRORS
# ===================

class ImportFileError(ValidationError):
    """Uploaded file cannot be read as tabular data."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="IMPORT_FILE_UNREADABLE",
            message=message,
            details=details
        )


class NothingToExportError(ValidationError):
    """Export requested for an empty product list."""

    def __init__(self):
        super().__init__(
            code="NOTHING_TO_EXPORT",
            message="No products found to export"
        )


# ===================
# SALES ERRORS
# ===================

class EmptyCartError(ValidationError):
    """Checkout attempted with no items."""

    def __init__(self):
        super().__init__(
            code="CART_EMPTY",
            message="Cart is empty"
        )


class InsufficientStockError(ConflictError):
    """Requested quantity exceeds the stock for a size."""

    def __init__(self, code: str, size: str, requested: int, available: int):
        super().__init__(
            code="INSUFFICIENT_STOCK",
            message=f"Only {available} left of {code} in size {size}",
            details={
                "product_code": code,
                "size": size,
                "requested": requested,
                "available": available,
            }
        )


class SaleNotFoundError(NotFoundError):
    """Submitted sale not found."""

    def __init__(self, sale_id: str):
        super().__init__(
            resource="Sale",
            identifier=sale_id,
            code="SALE_NOT_FOUND"
        )


# ===================
# USER ERRORS
# ===================

class UserNotFoundError(NotFoundError):
    """User not found."""

    def __init__(self, user_id: str):
        super().__init__(
            resource="User",
            identifier=user_id,
            code="USER_NOT_FOUND"
        )


class SelfDeleteError(ValidationError):
    """An admin tried to delete the account they are signed in with."""

    def __init__(self, user_id: str):
        super().__init__(
            code="USER_SELF_DELETE",
            message="You cannot delete your own account",
            details={"id": user_id}
        )


class InvalidPasswordError(ValidationError):
    """Password missing or too short."""

    def __init__(self, min_length: int):
        super().__init__(
            code="USER_INVALID_PASSWORD",
            message=f"Password must be at least {min_length} characters",
            details={"min_length": min_length}
        )
