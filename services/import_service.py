"""
Product import: reconcile an uploaded sheet against the catalog.

One pass over the rows, in order:
    1. Build the CatalogIndex once (categories, manufacturers, products by code)
    2. Parse each row; rejected rows never reach the backend
    3. Code already in the index -> update that product, otherwise insert
    4. Collect one outcome per row and summarize

Mutations run one at a time. The code index is a snapshot taken before the
first row, so two new rows sharing a code both insert; the second is not
turned into an update of the first.
"""

from io import BytesIO
from pathlib import Path
from typing import Optional, Union
import structlog
from pydantic import ValidationError as PydanticValidationError

from exceptions import ApiError
from integrations.pos_api import PosApiClient, get_pos_client
from models.imports import CatalogIndex, ImportRow, ImportSummary, RowOutcome, RowStatus
from parsers.excel_parser import read_import_sheet
from parsers.product_row_parser import COL_CODE, cell_text, is_blank, parse_product_row
from services.catalog_cache import (
    CatalogCache,
    CATEGORIES,
    MANUFACTURERS,
    PRODUCTS,
    get_catalog_cache,
)

logger = structlog.get_logger(__name__)

# Sheet row of data index 0 (row 1 is the header)
FIRST_DATA_ROW = 2


class ImportService:
    """
    Bulk product import.

    Usage:
        summary = ImportService().import_file("products.xlsx")
        print(summary.message())
    """

    def __init__(
        self,
        client: Optional[PosApiClient] = None,
        cache: Optional[CatalogCache] = None,
    ):
        self.client = client or get_pos_client()
        self.cache = cache or get_catalog_cache()

    def build_index(self) -> CatalogIndex:
        """Lookups for one pass, reusing cached collections when present."""
        categories = self.cache.get(CATEGORIES, self.client.fetch_categories)
        manufacturers = self.cache.get(MANUFACTURERS, self.client.fetch_manufacturers)
        products = self.cache.get(PRODUCTS, self.client.fetch_all_products_admin)

        logger.debug(
            "catalog_index_built",
            categories=len(categories),
            manufacturers=len(manufacturers),
            products=len(products)
        )
        return CatalogIndex.build(categories, manufacturers, products)

    def import_file(
        self,
        file: Union[str, Path, BytesIO],
        filename: Optional[str] = None,
    ) -> ImportSummary:
        """
        Read a spreadsheet and import its rows.

        Raises:
            ImportFileError: If the file is not readable tabular data
        """
        rows = read_import_sheet(file, filename=filename)
        return self.import_rows(rows)

    def import_rows(self, rows: list[ImportRow]) -> ImportSummary:
        """
        Reconcile rows against the catalog.

        Never raises for row problems: each row ends up INSERTED, UPDATED or
        REJECTED with reasons.
        """
        summary = ImportSummary()

        if not rows:
            logger.info("import_empty")
            return summary

        logger.info("import_started", rows=len(rows))
        index = self.build_index()

        try:
            for i, row in enumerate(rows):
                outcome = self._import_row(row, i + FIRST_DATA_ROW, index)
                summary.outcomes.append(outcome)
        finally:
            # The pass changed products; drop the snapshot once, not per row
            self.cache.invalidate(PRODUCTS)

        logger.info(
            "import_complete",
            status=summary.status.value,
            inserted=summary.inserted,
            updated=summary.updated,
            rejected=summary.rejected
        )
        return summary

    def _import_row(self, row: ImportRow, row_number: int, index: CatalogIndex) -> RowOutcome:
        parsed = parse_product_row(row, index)

        if not parsed.ok:
            code = None if is_blank(row.get(COL_CODE)) else cell_text(row[COL_CODE])
            logger.info("import_row_rejected", row=row_number, reasons=parsed.reasons)
            return RowOutcome(
                row=row_number,
                status=RowStatus.REJECTED,
                code=code,
                reasons=parsed.reasons,
                warnings=parsed.warnings,
            )

        record = parsed.record
        existing = index.existing_product(record.code)

        try:
            if existing:
                self.client.update_product(existing.id, record)
                logger.debug("import_row_updated", row=row_number, code=record.code, product_id=existing.id)
                return RowOutcome(
                    row=row_number,
                    status=RowStatus.UPDATED,
                    code=record.code,
                    product_id=existing.id,
                    warnings=parsed.warnings,
                )

            created = self.client.add_product(record)
            logger.debug("import_row_inserted", row=row_number, code=record.code, product_id=created.id)
            return RowOutcome(
                row=row_number,
                status=RowStatus.INSERTED,
                code=record.code,
                product_id=created.id,
                warnings=parsed.warnings,
            )

        except (ApiError, PydanticValidationError) as e:
            message = e.message if isinstance(e, ApiError) else f"Unexpected response from server: {e}"
            logger.warning("import_row_service_error", row=row_number, code=record.code, error=message)
            return RowOutcome(
                row=row_number,
                status=RowStatus.REJECTED,
                code=record.code,
                reasons=[f"Error processing - {message}"],
                warnings=parsed.warnings,
            )


# Singleton instance for convenience
_import_service: Optional[ImportService] = None

def get_import_service() -> ImportService:
    """Get or create ImportService instance."""
    global _import_service
    if _import_service is None:
        _import_service = ImportService()
    return _import_service
