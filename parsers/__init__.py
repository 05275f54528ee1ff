"""
Import file parsers module.
"""

from parsers.excel_parser import read_import_sheet
from parsers.product_row_parser import (
    parse_product_row,
    parse_visibility,
    resolve_sizes,
    serialize_sizes,
    RowParseResult,
    REQUIRED_COLUMNS,
    ONE_SIZE,
)

__all__ = [
    "read_import_sheet",
    "parse_product_row",
    "parse_visibility",
    "resolve_sizes",
    "serialize_sizes",
    "RowParseResult",
    "REQUIRED_COLUMNS",
    "ONE_SIZE",
]
