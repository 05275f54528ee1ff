"""
Product import row parser.

Turns one sheet row into a validated ProductRecord or a list of rejection
reasons. Never raises for bad data and never touches the network: all
lookups go through the CatalogIndex built for the pass.

Recognized columns:
    Title, Code, Price, Category, Manufacturer, Image URL   (required)
    SizesStockJSON      [{"size": "M", "stock": 3}, ...]    (1st choice)
    Sizes + Stocks      "S,M,L" + "1,2,3"                   (2nd choice)
    TotalStock / Stock  single number -> "One Size"         (3rd choice)
    Is Visible          Yes/No, default Yes
"""

import json
import math
import re
from dataclasses import dataclass, field
from typing import Any, Optional

import pandas as pd
from pydantic import ValidationError as PydanticValidationError

from models.imports import CatalogIndex, ImportRow
from models.product import ProductRecord, SizeStock

# Column headers
COL_TITLE = "Title"
COL_CODE = "Code"
COL_PRICE = "Price"
COL_CATEGORY = "Category"
COL_MANUFACTURER = "Manufacturer"
COL_IMAGE = "Image URL"
COL_SIZES_JSON = "SizesStockJSON"
COL_SIZES = "Sizes"
COL_STOCKS = "Stocks"
COL_TOTAL_STOCK = "TotalStock"
COL_STOCK = "Stock"
COL_VISIBLE = "Is Visible"

REQUIRED_COLUMNS = [COL_TITLE, COL_CODE, COL_PRICE, COL_CATEGORY, COL_MANUFACTURER, COL_IMAGE]

ONE_SIZE = "One Size"

VISIBLE_TOKENS = {"yes", "true"}
HIDDEN_TOKENS = {"no", "false"}

_INTEGER_RE = re.compile(r"^[+-]?\d+$")


@dataclass
class RowParseResult:
    """Either a record or the reasons the row was rejected."""
    record: Optional[ProductRecord] = None
    reasons: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.record is not None


def parse_product_row(row: ImportRow, index: CatalogIndex) -> RowParseResult:
    """
    Validate and normalize one import row.

    Args:
        row: Cell values keyed by column header
        index: Category/manufacturer lookups for this pass

    Returns:
        RowParseResult with a record, or with rejection reasons
    """
    result = RowParseResult()

    # Required fields: one reason naming every missing column, then stop
    missing = [col for col in REQUIRED_COLUMNS if is_blank(row.get(col))]
    if missing:
        result.reasons.append(f"Missing required fields ({', '.join(missing)}).")
        return result

    category_name = cell_text(row[COL_CATEGORY])
    category_id = index.category_id(category_name)
    if category_id is None:
        result.reasons.append(f'Category "{category_name}" not found.')

    manufacturer_name = cell_text(row[COL_MANUFACTURER])
    manufacturer_id = index.manufacturer_id(manufacturer_name)
    if manufacturer_id is None:
        result.reasons.append(f'Manufacturer "{manufacturer_name}" not found.')

    price = _parse_price(row[COL_PRICE])
    if price is None:
        result.reasons.append(f'Invalid Price "{cell_text(row[COL_PRICE])}". Must be a positive number.')

    sizes, size_error, size_warning = resolve_sizes(row)
    if size_error:
        result.reasons.append(size_error)
    if size_warning:
        result.warnings.append(size_warning)

    if result.reasons:
        return result

    try:
        result.record = ProductRecord(
            title=cell_text(row[COL_TITLE]),
            code=cell_text(row[COL_CODE]),
            price=price,
            category_id=category_id,
            manufacturer_id=manufacturer_id,
            sizes=sizes,
            image=cell_text(row[COL_IMAGE]),
            is_visible=parse_visibility(row.get(COL_VISIBLE)),
        )
    except PydanticValidationError as e:
        result.reasons.extend(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}."
            for err in e.errors()
        )

    return result


# ===================
# SIZES
# ===================

def resolve_sizes(row: ImportRow) -> tuple[list[SizeStock], Optional[str], Optional[str]]:
    """
    Pick the size/stock source for a row.

    Returns:
        (sizes, rejection reason or None, warning or None)
    """
    sizes_json = row.get(COL_SIZES_JSON)
    if not is_blank(sizes_json):
        return _sizes_from_json(cell_text(sizes_json))

    sizes_list = row.get(COL_SIZES)
    stocks_list = row.get(COL_STOCKS)
    if not is_blank(sizes_list) and not is_blank(stocks_list):
        return _sizes_from_lists(cell_text(sizes_list), cell_text(stocks_list))

    for col in (COL_TOTAL_STOCK, COL_STOCK):
        value = row.get(col)
        if is_blank(value):
            continue
        total = _parse_int(value)
        if total is not None and total >= 0:
            return [SizeStock(size=ONE_SIZE, stock=total)], None, None
        break

    return [], None, (
        f"Missing '{COL_SIZES_JSON}' or '{COL_SIZES}'/'{COL_STOCKS}' columns, "
        f"or valid '{COL_TOTAL_STOCK}'/'{COL_STOCK}'. Product will have no stock/sizes defined."
    )


def _sizes_from_json(text: str) -> tuple[list[SizeStock], Optional[str], Optional[str]]:
    try:
        parsed = json.loads(text)
    except ValueError as e:
        return [], f"'{COL_SIZES_JSON}' (\"{text}\") is not valid JSON. {e}", None

    invalid = f"'{COL_SIZES_JSON}' (\"{text}\") is not a valid array of {{size: string, stock: integer (>=0)}}."
    if not isinstance(parsed, list):
        return [], invalid, None

    sizes = []
    for item in parsed:
        if not isinstance(item, dict):
            return [], invalid, None
        size = item.get("size")
        stock = item.get("stock")
        if not isinstance(size, str) or not size.strip():
            return [], invalid, None
        # bool is an int subclass; true/false are not stock counts
        if isinstance(stock, bool) or not isinstance(stock, int) or stock < 0:
            return [], invalid, None
        sizes.append(SizeStock(size=size, stock=stock))

    return sizes, None, None


def _sizes_from_lists(sizes_text: str, stocks_text: str) -> tuple[list[SizeStock], Optional[str], Optional[str]]:
    names = [s.strip() for s in sizes_text.split(",")]
    raw_stocks = [s.strip() for s in stocks_text.split(",")]

    if len(names) != len(raw_stocks):
        return [], (
            f"Mismatch between number of sizes ({len(names)}) in \"{COL_SIZES}\" "
            f"and stock values ({len(raw_stocks)}) in \"{COL_STOCKS}\"."
        ), None

    sizes = []
    for position, (name, raw) in enumerate(zip(names, raw_stocks), start=1):
        if not name:
            return [], f'Empty size name found at position {position} in "{COL_SIZES}" column.', None
        if not _INTEGER_RE.match(raw):
            return [], f'Stock value for size "{name}" is not a valid number ("{raw}").', None
        stock = int(raw)
        if stock < 0:
            return [], f'Stock value for size "{name}" ({stock}) cannot be negative.', None
        sizes.append(SizeStock(size=name, stock=stock))

    return sizes, None, None


def serialize_sizes(sizes: list[SizeStock]) -> str:
    """SizesStockJSON cell text, the format _sizes_from_json reads back."""
    return json.dumps(
        [{"size": s.size, "stock": s.stock} for s in sizes],
        separators=(",", ":"),
        ensure_ascii=False,
    )


# ===================
# FIELD HELPERS
# ===================

def parse_visibility(value: Any) -> bool:
    """Yes/True -> visible, No/False -> hidden, anything else -> visible."""
    if is_blank(value):
        return True
    token = cell_text(value).lower()
    if token in VISIBLE_TOKENS:
        return True
    if token in HIDDEN_TOKENS:
        return False
    return True


def _parse_price(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        price = float(cell_text(value) if isinstance(value, str) else value)
    except (TypeError, ValueError):
        return None
    if math.isnan(price) or math.isinf(price) or price <= 0:
        return None
    return price


def _parse_int(value: Any) -> Optional[int]:
    """Integer from a cell; integral floats count (spreadsheets store 5 as 5.0)."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    text = cell_text(value)
    if _INTEGER_RE.match(text):
        return int(text)
    return None


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def cell_text(value: Any) -> str:
    """
    Cell value as trimmed text.

    1001.0 -> "1001" (numeric codes come back from pandas as floats).
    """
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()
