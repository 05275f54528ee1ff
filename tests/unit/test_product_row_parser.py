"""
Unit tests for the product import row parser.

Run: pytest tests/unit/test_product_row_parser.py -v
"""

import pytest

from models.imports import CatalogIndex
from parsers.product_row_parser import (
    ONE_SIZE,
    cell_text,
    is_blank,
    parse_product_row,
    parse_visibility,
    resolve_sizes,
    serialize_sizes,
)
from models.product import SizeStock
from tests.factories import CategoryFactory, ManufacturerFactory


# ===================
# FIXTURES
# ===================

@pytest.fixture
def index() -> CatalogIndex:
    return CatalogIndex.build(
        [CategoryFactory.create(id="cat-1", name="Shirts")],
        [ManufacturerFactory.create(id="man-1", name="Acme")],
        [],
    )


def row(**overrides) -> dict:
    base = {
        "Title": "Hoodie",
        "Code": "HD-100",
        "Price": "49.90",
        "Category": "Shirts",
        "Manufacturer": "Acme",
        "Image URL": "https://img.example.com/hd.jpg",
    }
    base.update(overrides)
    return {k: v for k, v in base.items() if v is not None}


# ===================
# REQUIRED FIELDS
# ===================

class TestRequiredFields:
    """Missing required fields produce one reason and stop validation."""

    def test_missing_fields_listed_in_column_order(self, index):
        result = parse_product_row(row(Title=None, Price="  ", Category="Unknown"), index)

        assert not result.ok
        assert result.reasons == ["Missing required fields (Title, Price)."]

    def test_missing_image_rejects(self, index):
        result = parse_product_row(row(**{"Image URL": None}), index)

        assert result.reasons == ["Missing required fields (Image URL)."]

    def test_nan_counts_as_missing(self, index):
        result = parse_product_row(row(Code=float("nan")), index)

        assert result.reasons == ["Missing required fields (Code)."]


# ===================
# LOOKUPS AND PRICE
# ===================

class TestResolution:

    def test_category_and_manufacturer_case_insensitive(self, index):
        result = parse_product_row(row(Category="  SHIRTS ", Manufacturer="acme"), index)

        assert result.ok
        assert result.record.category_id == "cat-1"
        assert result.record.manufacturer_id == "man-1"

    def test_unknown_category_and_manufacturer_both_reported(self, index):
        result = parse_product_row(row(Category="Pants", Manufacturer="Initech"), index)

        assert result.reasons == [
            'Category "Pants" not found.',
            'Manufacturer "Initech" not found.',
        ]

    @pytest.mark.parametrize("price", ["0", "-5", "abc", "inf"])
    def test_invalid_price(self, index, price):
        result = parse_product_row(row(Price=price), index)

        assert result.reasons == [f'Invalid Price "{price}". Must be a positive number.']

    def test_numeric_price_cell(self, index):
        result = parse_product_row(row(Price=12), index)

        assert result.record.price == 12.0

    def test_reasons_accumulate_in_order(self, index):
        result = parse_product_row(
            row(Category="Pants", Price="-1", Sizes="S,M", Stocks="1"),
            index,
        )

        assert result.reasons == [
            'Category "Pants" not found.',
            'Invalid Price "-1". Must be a positive number.',
            'Mismatch between number of sizes (2) in "Sizes" and stock values (1) in "Stocks".',
        ]

    def test_numeric_code_normalized(self, index):
        result = parse_product_row(row(Code=1001.0), index)

        assert result.record.code == "1001"


# ===================
# SIZES
# ===================

class TestResolveSizes:

    def test_json_takes_precedence(self):
        sizes, error, warning = resolve_sizes({
            "SizesStockJSON": '[{"size":"XL","stock":4}]',
            "Sizes": "S", "Stocks": "1",
            "TotalStock": 99,
        })

        assert error is None and warning is None
        assert sizes == [SizeStock(size="XL", stock=4)]

    def test_empty_json_array_is_valid(self):
        sizes, error, warning = resolve_sizes({"SizesStockJSON": "[]"})

        assert sizes == [] and error is None and warning is None

    def test_invalid_json_text(self):
        _, error, _ = resolve_sizes({"SizesStockJSON": "[{size: M}"})

        assert error.startswith("'SizesStockJSON' (\"[{size: M}\") is not valid JSON.")

    @pytest.mark.parametrize("payload", [
        '{"size": "M", "stock": 1}',
        '[{"size": "M", "stock": -1}]',
        '[{"size": "M", "stock": 1.5}]',
        '[{"size": "M", "stock": true}]',
        '[{"size": "", "stock": 1}]',
        '[{"stock": 1}]',
        '["M"]',
    ])
    def test_json_wrong_shape(self, payload):
        _, error, _ = resolve_sizes({"SizesStockJSON": payload})

        assert error == (
            f"'SizesStockJSON' (\"{payload}\") is not a valid array of "
            "{size: string, stock: integer (>=0)}."
        )

    def test_lists_trimmed(self):
        sizes, error, _ = resolve_sizes({"Sizes": " S , M ,L", "Stocks": "1, 2 ,3"})

        assert error is None
        assert [(s.size, s.stock) for s in sizes] == [("S", 1), ("M", 2), ("L", 3)]

    def test_lists_count_mismatch(self):
        _, error, _ = resolve_sizes({"Sizes": "S,M,L", "Stocks": "1,2"})

        assert error == 'Mismatch between number of sizes (3) in "Sizes" and stock values (2) in "Stocks".'

    def test_lists_empty_size_name(self):
        _, error, _ = resolve_sizes({"Sizes": "S,,L", "Stocks": "1,2,3"})

        assert error == 'Empty size name found at position 2 in "Sizes" column.'

    def test_lists_non_numeric_stock(self):
        _, error, _ = resolve_sizes({"Sizes": "S,M", "Stocks": "1,two"})

        assert error == 'Stock value for size "M" is not a valid number ("two").'

    def test_lists_negative_stock(self):
        _, error, _ = resolve_sizes({"Sizes": "S,M", "Stocks": "1,-2"})

        assert error == 'Stock value for size "M" (-2) cannot be negative.'

    def test_single_list_column_falls_through(self):
        sizes, error, warning = resolve_sizes({"Sizes": "S,M", "TotalStock": 7})

        assert error is None and warning is None
        assert sizes == [SizeStock(size=ONE_SIZE, stock=7)]

    def test_stock_column_used_without_total(self):
        sizes, _, _ = resolve_sizes({"Stock": "12"})

        assert sizes == [SizeStock(size=ONE_SIZE, stock=12)]

    def test_integral_float_total(self):
        sizes, _, _ = resolve_sizes({"TotalStock": 5.0})

        assert sizes == [SizeStock(size=ONE_SIZE, stock=5)]

    def test_invalid_total_warns(self):
        sizes, error, warning = resolve_sizes({"TotalStock": "-3", "Stock": 4})

        assert sizes == [] and error is None
        assert "Product will have no stock/sizes defined." in warning

    def test_nothing_given_warns(self):
        sizes, error, warning = resolve_sizes({})

        assert sizes == [] and error is None
        assert warning.startswith("Missing 'SizesStockJSON' or 'Sizes'/'Stocks' columns")

    def test_row_with_warning_still_accepted(self, index):
        result = parse_product_row(row(), index)

        assert result.ok
        assert result.record.sizes == []
        assert len(result.warnings) == 1


# ===================
# VISIBILITY & HELPERS
# ===================

class TestVisibility:

    @pytest.mark.parametrize("value,expected", [
        (None, True),
        ("", True),
        ("Yes", True),
        ("TRUE", True),
        (True, True),
        ("No", False),
        ("false", False),
        (False, False),
        ("maybe", True),
    ])
    def test_parse_visibility(self, value, expected):
        assert parse_visibility(value) is expected

    def test_row_defaults_visible(self, index):
        assert parse_product_row(row(), index).record.is_visible is True

    def test_row_hidden(self, index):
        assert parse_product_row(row(**{"Is Visible": "No"}), index).record.is_visible is False


class TestHelpers:

    def test_serialize_sizes_compact_and_readable_back(self):
        text = serialize_sizes([SizeStock(size="Größe M", stock=2)])

        assert text == '[{"size":"Größe M","stock":2}]'
        sizes, error, _ = resolve_sizes({"SizesStockJSON": text})
        assert error is None and sizes[0].size == "Größe M"

    def test_json_size_names_kept_verbatim(self):
        text = '[{"size":" M ","stock":1},{"size":"XL","stock":0}]'

        sizes, error, _ = resolve_sizes({"SizesStockJSON": text})

        assert error is None
        assert sizes[0].size == " M "
        assert serialize_sizes(sizes) == text

    def test_cell_text(self):
        assert cell_text(1001.0) == "1001"
        assert cell_text(12.5) == "12.5"
        assert cell_text("  A1 ") == "A1"

    def test_is_blank(self):
        assert is_blank(None)
        assert is_blank("   ")
        assert is_blank(float("nan"))
        assert not is_blank(0)
        assert not is_blank("x")
