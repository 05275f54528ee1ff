"""
Category and manufacturer schemas.
"""

from pydantic import Field

from models.base import BaseSchema


class CategoryCreate(BaseSchema):
    """Create a new category."""
    name: str = Field(..., min_length=1, max_length=100)


class Category(CategoryCreate):
    """Category as returned by the backend."""
    id: str


class ManufacturerCreate(BaseSchema):
    """Create a new manufacturer."""
    name: str = Field(..., min_length=1, max_length=100)


class Manufacturer(ManufacturerCreate):
    """Manufacturer as returned by the backend."""
    id: str
