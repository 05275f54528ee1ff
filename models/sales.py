"""
Sale schemas.

A submitted sale keeps a snapshot of each sold product (title, code,
price) so history stays readable after the catalog changes.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import Field

from models.base import BaseSchema


class PaymentMethod(str, Enum):
    """Accepted payment methods."""
    CASH = "cash"
    CARD = "card"


class SaleItemRecord(BaseSchema):
    """One line of a submitted sale."""

    product_id: str
    title: str
    code: str
    image: Optional[str] = None
    selected_size: str
    quantity: int = Field(..., ge=1)
    unit_price: float = Field(..., ge=0)
    discount: float = Field(default=0, ge=0)
    final_price: float


class SaleCreate(BaseSchema):
    """Sale payload sent at checkout."""

    items: list[SaleItemRecord] = Field(..., min_length=1)
    total_amount: float = Field(..., ge=0)
    payment_method: PaymentMethod
    submission_date: datetime
    notes: Optional[str] = None


class SubmittedSale(SaleCreate):
    """Sale as stored by the backend."""

    id: str


class SalesSummary(BaseSchema):
    """Revenue figures over a list of sales."""

    sale_count: int = 0
    total_revenue: float = 0
    units_sold: int = 0
    revenue_by_payment_method: dict[str, float] = Field(default_factory=dict)
