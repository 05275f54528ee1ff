"""
User schemas.
"""

from pydantic import Field
from typing import Literal, Optional

from models.base import BaseSchema

UserRole = Literal["admin", "employee"]


class User(BaseSchema):
    """User as returned by the backend (never includes the password)."""

    id: str
    username: str
    role: UserRole = "employee"


class UserCreate(BaseSchema):
    """
    Create a new user.

    Required: username, password, role
    """

    username: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=1)
    role: UserRole = "employee"


class UserUpdate(BaseSchema):
    """
    Update existing user.

    All fields optional - only provided fields are sent.
    """

    username: Optional[str] = Field(None, min_length=1, max_length=50)
    password: Optional[str] = None
    role: Optional[UserRole] = None
