"""
Export service: product list to a spreadsheet.

One row per product, in the order given (callers pass the filtered and
sorted list). SizesStockJSON uses exactly the format the importer reads,
so an unmodified export re-imports as updates of the same products.
"""

from datetime import date
from io import BytesIO
from typing import Any, Optional

from openpyxl import Workbook
from openpyxl.styles import Font, Alignment, PatternFill
import structlog

from exceptions import NothingToExportError
from models.catalog import Category, Manufacturer
from models.product import Product
from parsers.product_row_parser import serialize_sizes

logger = structlog.get_logger(__name__)

SHEET_NAME = "Products"

EXPORT_COLUMNS = [
    "ID",
    "Title",
    "Code",
    "Category",
    "Manufacturer",
    "Price",
    "TotalStock",
    "SizesStockJSON",
    "Image URL",
    "Is Visible",
]

HEADER_FILL = PatternFill(start_color="4F46E5", end_color="4F46E5", fill_type="solid")
HEADER_FONT = Font(bold=True, color="FFFFFF")


def export_filename(today: Optional[date] = None) -> str:
    """ProductsExport_2025-01-31.xlsx"""
    return f"ProductsExport_{(today or date.today()).isoformat()}.xlsx"


class ExportService:
    """Service for generating product export files."""

    def export_rows(
        self,
        products: list[Product],
        categories: Optional[list[Category]] = None,
        manufacturers: Optional[list[Manufacturer]] = None,
    ) -> list[dict[str, Any]]:
        """
        Project products into flat export rows.

        Category and manufacturer columns hold names so the file can be
        re-imported; ids are used only when no name is known.
        """
        category_names = {c.id: c.name for c in categories or []}
        manufacturer_names = {m.id: m.name for m in manufacturers or []}

        rows = []
        for p in products:
            rows.append({
                "ID": p.code,
                "Title": p.title,
                "Code": p.code,
                "Category": p.category_name or category_names.get(p.category_id) or p.category_id,
                "Manufacturer": p.manufacturer_name or manufacturer_names.get(p.manufacturer_id) or p.manufacturer_id,
                "Price": p.price,
                "TotalStock": p.total_stock,
                "SizesStockJSON": serialize_sizes(p.sizes),
                "Image URL": p.image,
                "Is Visible": "Yes" if p.is_visible else "No",
            })
        return rows

    def generate_products_excel(
        self,
        products: list[Product],
        categories: Optional[list[Category]] = None,
        manufacturers: Optional[list[Manufacturer]] = None,
    ) -> BytesIO:
        """
        Generate the export workbook.

        Returns:
            BytesIO containing the Excel file

        Raises:
            NothingToExportError: If the product list is empty
        """
        if not products:
            raise NothingToExportError()

        logger.info("generating_products_export", products=len(products))

        rows = self.export_rows(products, categories, manufacturers)

        wb = Workbook()
        ws = wb.active
        ws.title = SHEET_NAME

        ws.append(EXPORT_COLUMNS)
        for cell in ws[1]:
            cell.font = HEADER_FONT
            cell.fill = HEADER_FILL
            cell.alignment = Alignment(horizontal="center")

        for row in rows:
            # Code-like columns stay text so leading zeros survive a round trip
            ws.append([row[col] for col in EXPORT_COLUMNS])

        for col_idx, col in enumerate(EXPORT_COLUMNS, start=1):
            width = max(len(col), *(len(str(r[col])) for r in rows))
            ws.column_dimensions[ws.cell(row=1, column=col_idx).column_letter].width = min(width + 2, 60)

        ws.freeze_panes = "A2"

        output = BytesIO()
        wb.save(output)
        output.seek(0)

        logger.info("products_export_generated", rows=len(rows))
        return output


# Singleton instance for convenience
_export_service: Optional[ExportService] = None

def get_export_service() -> ExportService:
    """Get or create ExportService instance."""
    global _export_service
    if _export_service is None:
        _export_service = ExportService()
    return _export_service
