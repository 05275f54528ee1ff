"""
Base schemas for all models.

The remote service speaks camelCase JSON; models use snake_case
attributes and accept either form on input.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class BaseSchema(BaseModel):
    """
    Base for all schemas.

    Features:
        - Auto-trim whitespace from strings
        - Validate on attribute assignment
        - camelCase aliases for the wire format, snake_case in Python
    """
    model_config = ConfigDict(
        from_attributes=True,
        str_strip_whitespace=True,
        validate_assignment=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_payload(self, **kwargs) -> dict:
        """Serialize for a request body (camelCase keys)."""
        return self.model_dump(by_alias=True, mode="json", **kwargs)
