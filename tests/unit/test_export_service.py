"""
Tests for export_service: product list to Excel.
"""

import json
from datetime import date

import pytest
from openpyxl import load_workbook

from exceptions import NothingToExportError
from services.export_service import (
    EXPORT_COLUMNS,
    SHEET_NAME,
    ExportService,
    export_filename,
    get_export_service,
)
from tests.factories import CategoryFactory, ManufacturerFactory, ProductFactory


@pytest.fixture
def service() -> ExportService:
    return ExportService()


class TestExportRows:
    """Tests for the flat row projection."""

    def test_row_shape(self, service):
        product = ProductFactory.create(
            title="Tee", code="TSH-1", price=20.0,
            category_name="Shirts", manufacturer_name="Acme",
            sizes=[("S", 2), ("M", 3)], is_visible=False,
        )

        row = service.export_rows([product])[0]

        assert list(row) == EXPORT_COLUMNS
        assert row["ID"] == "TSH-1"
        assert row["Code"] == "TSH-1"
        assert row["Category"] == "Shirts"
        assert row["TotalStock"] == 5
        assert json.loads(row["SizesStockJSON"]) == [
            {"size": "S", "stock": 2},
            {"size": "M", "stock": 3},
        ]
        assert row["Is Visible"] == "No"

    def test_names_looked_up_when_product_has_none(self, service):
        product = ProductFactory.create(category_id="c9", manufacturer_id="m9")

        row = service.export_rows(
            [product],
            [CategoryFactory.create(id="c9", name="Hats")],
            [ManufacturerFactory.create(id="m9", name="Globex")],
        )[0]

        assert row["Category"] == "Hats"
        assert row["Manufacturer"] == "Globex"

    def test_falls_back_to_ids(self, service):
        product = ProductFactory.create(category_id="c404", manufacturer_id="m404")

        row = service.export_rows([product])[0]

        assert row["Category"] == "c404"
        assert row["Manufacturer"] == "m404"

    def test_order_preserved(self, service):
        products = [ProductFactory.create(code=c) for c in ("B", "A", "C")]

        assert [r["Code"] for r in service.export_rows(products)] == ["B", "A", "C"]


class TestGenerateProductsExcel:

    def test_empty_list_raises(self, service):
        with pytest.raises(NothingToExportError):
            service.generate_products_excel([])

    def test_workbook_contents(self, service):
        products = ProductFactory.create_batch(3)

        wb = load_workbook(service.generate_products_excel(products))
        ws = wb.active

        assert ws.title == SHEET_NAME
        assert [c.value for c in ws[1]] == EXPORT_COLUMNS
        assert ws[1][0].font.bold
        assert ws.max_row == 4
        assert ws.cell(row=2, column=3).value == products[0].code


class TestHelpers:

    def test_export_filename(self):
        assert export_filename(date(2025, 3, 7)) == "ProductsExport_2025-03-07.xlsx"

    def test_singleton(self):
        assert get_export_service() is get_export_service()
