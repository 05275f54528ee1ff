"""
Product schemas for validation and serialization.
"""

from pydantic import ConfigDict, Field, computed_field
from typing import Optional

from models.base import BaseSchema


class SizeStock(BaseSchema):
    """One sellable variant of a product and its stock."""

    # Size names are stored exactly as given so they export unchanged
    model_config = ConfigDict(str_strip_whitespace=False)

    size: str = Field(..., min_length=1, description="Size name, e.g. 'M' or 'One Size'")
    stock: int = Field(..., ge=0, description="Units on hand")


class ProductRecord(BaseSchema):
    """
    Validated product ready to send to the backend.

    Only built once every field has passed validation, so a partially
    valid import row never reaches the remote service.
    """

    title: str = Field(..., min_length=1)
    code: str = Field(
        ...,
        min_length=1,
        description="Business key, matched case-insensitively",
        examples=["TSH-001"]
    )
    price: float = Field(..., gt=0)
    category_id: str = Field(..., min_length=1)
    manufacturer_id: str = Field(..., min_length=1)
    sizes: list[SizeStock] = Field(default_factory=list)
    image: str = Field(..., min_length=1, description="Image URL")
    is_visible: bool = True


class Product(BaseSchema):
    """
    Product as returned by the backend.

    Used for GET responses. Fields are not re-validated against the
    creation rules so that legacy rows still load.
    """

    id: str = Field(..., description="Product id")
    title: str
    code: str
    price: float
    category_id: Optional[str] = None
    manufacturer_id: Optional[str] = None
    category_name: Optional[str] = None
    manufacturer_name: Optional[str] = None
    sizes: list[SizeStock] = Field(default_factory=list)
    image: str = ""
    is_visible: bool = True

    @computed_field
    @property
    def total_stock(self) -> int:
        """Sum of stock across all sizes."""
        return sum(s.stock for s in self.sizes)

    def to_record(self, **overrides) -> ProductRecord:
        """Editable form of this product, with optional field overrides."""
        data = {
            "title": self.title,
            "code": self.code,
            "price": self.price,
            "category_id": self.category_id,
            "manufacturer_id": self.manufacturer_id,
            "sizes": [s.model_copy() for s in self.sizes],
            "image": self.image,
            "is_visible": self.is_visible,
        }
        data.update(overrides)
        return ProductRecord(**data)
