"""
Sales service: cart, checkout and sales history.

A sale is submitted first and stock is decremented afterwards, one
request per line. Lines sold from the same product and size are merged
in the cart, so each size is decremented once.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional
import structlog

from exceptions import (
    ApiError,
    EmptyCartError,
    InsufficientStockError,
    SaleNotFoundError,
    ValidationError,
)
from integrations.pos_api import PosApiClient, get_pos_client
from models.product import Product
from models.sales import (
    PaymentMethod,
    SaleCreate,
    SaleItemRecord,
    SalesSummary,
    SubmittedSale,
)
from services.catalog_cache import CatalogCache, PRODUCTS, get_catalog_cache

logger = structlog.get_logger(__name__)

SELL_ACTION = "sell"


@dataclass
class CartItem:
    """One product/size line in the cart. Discount is an amount off the line."""
    product: Product
    size: str
    quantity: int = 1
    discount: float = 0.0

    @property
    def gross(self) -> float:
        return self.product.price * self.quantity

    @property
    def final_price(self) -> float:
        return self.gross - self.discount

    def available(self) -> int:
        for s in self.product.sizes:
            if s.size == self.size:
                return s.stock
        return 0

    def to_record(self) -> SaleItemRecord:
        return SaleItemRecord(
            product_id=self.product.id,
            title=self.product.title,
            code=self.product.code,
            image=self.product.image or None,
            selected_size=self.size,
            quantity=self.quantity,
            unit_price=self.product.price,
            discount=self.discount,
            final_price=self.final_price,
        )


@dataclass
class Cart:
    """Items being sold at the POS."""
    items: list[CartItem] = field(default_factory=list)

    def find(self, product_id: str, size: str) -> Optional[CartItem]:
        for item in self.items:
            if item.product.id == product_id and item.size == size:
                return item
        return None

    def add(self, product: Product, size: str, quantity: int = 1, discount: float = 0.0) -> CartItem:
        """
        Add a product in a size, merging with an existing line.

        Raises:
            ValidationError: If quantity or discount is out of range
            InsufficientStockError: If the merged quantity exceeds the size's stock
        """
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1", code="INVALID_QUANTITY")
        if discount < 0:
            raise ValidationError("Discount cannot be negative", code="INVALID_DISCOUNT")

        item = self.find(product.id, size)
        if item is None:
            item = CartItem(product=product, size=size, quantity=0)
            candidate_quantity = quantity
        else:
            candidate_quantity = item.quantity + quantity

        available = item.available()
        if candidate_quantity > available:
            raise InsufficientStockError(product.code, size, candidate_quantity, available)

        candidate_discount = item.discount + discount
        if candidate_discount > product.price * candidate_quantity:
            raise ValidationError(
                "Discount cannot exceed the line price",
                code="INVALID_DISCOUNT",
                details={"product_code": product.code, "size": size}
            )

        if item.quantity == 0:
            self.items.append(item)
        item.quantity = candidate_quantity
        item.discount = candidate_discount
        return item

    def remove(self, product_id: str, size: str) -> bool:
        item = self.find(product_id, size)
        if item is None:
            return False
        self.items.remove(item)
        return True

    def clear(self) -> None:
        self.items.clear()

    @property
    def is_empty(self) -> bool:
        return not self.items

    @property
    def subtotal(self) -> float:
        """Sum of line prices before discounts."""
        return sum(item.gross for item in self.items)

    @property
    def total(self) -> float:
        return sum(item.final_price for item in self.items)


class SalesService:
    """
    Checkout and sales history business logic.
    """

    def __init__(
        self,
        client: Optional[PosApiClient] = None,
        cache: Optional[CatalogCache] = None,
    ):
        self.client = client or get_pos_client()
        self.cache = cache or get_catalog_cache()

    # ===================
    # CHECKOUT
    # ===================

    def checkout(
        self,
        cart: Cart,
        payment_method: PaymentMethod,
        notes: Optional[str] = None,
    ) -> SubmittedSale:
        """
        Submit the cart as a sale, then take the sold units out of stock.

        The sale stands even if a stock decrement fails; failures are
        logged and the remaining lines are still processed. The cart is
        cleared on success.

        Raises:
            EmptyCartError: If the cart has no items
            ApiError: If the sale itself is rejected
        """
        if cart.is_empty:
            raise EmptyCartError()

        sale = SaleCreate(
            items=[item.to_record() for item in cart.items],
            total_amount=cart.total,
            payment_method=payment_method,
            submission_date=datetime.now(timezone.utc),
            notes=notes or None,
        )

        logger.info(
            "submitting_sale",
            items=len(sale.items),
            total_amount=sale.total_amount,
            payment_method=payment_method.value
        )
        submitted = self.client.submit_sale(sale)

        try:
            for item in cart.items:
                try:
                    self.client.update_product_stock(
                        item.product.id,
                        size_name=item.size,
                        new_stock=-item.quantity,
                        action=SELL_ACTION,
                    )
                except ApiError as e:
                    logger.error(
                        "sale_stock_decrement_failed",
                        sale_id=submitted.id,
                        product_id=item.product.id,
                        size=item.size,
                        error=e.message
                    )
        finally:
            self.cache.invalidate(PRODUCTS)

        cart.clear()
        logger.info("sale_submitted", sale_id=submitted.id)
        return submitted

    # ===================
    # HISTORY
    # ===================

    def list_sales(self) -> list[SubmittedSale]:
        """All submitted sales, newest first."""
        sales = self.client.fetch_sales()
        sales.sort(key=lambda s: s.submission_date, reverse=True)
        logger.info("sales_retrieved", count=len(sales))
        return sales

    def update_sale(self, sale: SubmittedSale) -> SubmittedSale:
        """
        Save edits to a submitted sale (notes, payment method, items).

        Raises:
            SaleNotFoundError: If the backend has no such sale
        """
        logger.info("updating_sale", sale_id=sale.id)
        try:
            updated = self.client.update_sale(sale)
        except ApiError as e:
            if e.status_code == 404:
                raise SaleNotFoundError(sale.id) from e
            raise
        if updated is None:
            raise SaleNotFoundError(sale.id)
        return updated

    @staticmethod
    def summarize(sales: list[SubmittedSale]) -> SalesSummary:
        by_method: dict[str, float] = defaultdict(float)
        for sale in sales:
            by_method[sale.payment_method.value] += sale.total_amount

        return SalesSummary(
            sale_count=len(sales),
            total_revenue=sum(s.total_amount for s in sales),
            units_sold=sum(item.quantity for s in sales for item in s.items),
            revenue_by_payment_method=dict(by_method),
        )


# Singleton instance for convenience
_sales_service: Optional[SalesService] = None

def get_sales_service() -> SalesService:
    """Get or create SalesService instance."""
    global _sales_service
    if _sales_service is None:
        _sales_service = SalesService()
    return _sales_service
