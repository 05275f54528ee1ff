"""
Spreadsheet reader for product imports.

Reads the first sheet of an uploaded file into a list of rows keyed by
column header. Blank cells are dropped from each row so the row parser
sees them as absent.
"""

from io import BytesIO
from pathlib import Path
from typing import Optional, Union
import structlog

import pandas as pd

from exceptions import ImportFileError
from models.imports import ImportRow

logger = structlog.get_logger(__name__)

CSV_SUFFIXES = {".csv"}
LEGACY_EXCEL_SUFFIXES = {".xls"}


def read_import_sheet(
    file: Union[str, Path, BytesIO],
    filename: Optional[str] = None,
) -> list[ImportRow]:
    """
    Read the first sheet of an import file.

    Args:
        file: File path (str/Path) or file-like object (BytesIO)
        filename: Original name, used to detect CSV and legacy .xls uploads

    Returns:
        Data rows in sheet order (header row excluded, blank rows skipped)

    Raises:
        ImportFileError: If the file cannot be read as tabular data
    """
    name = filename or (str(file) if isinstance(file, (str, Path)) else "")
    suffix = Path(name).suffix.lower()
    is_csv = suffix in CSV_SUFFIXES
    # Legacy .xls needs xlrd; everything else is read as .xlsx
    engine = "xlrd" if suffix in LEGACY_EXCEL_SUFFIXES else "openpyxl"

    logger.info("reading_import_file", file_type=type(file).__name__, csv=is_csv, engine=engine)

    try:
        if is_csv:
            df = pd.read_csv(file, dtype=object)
        else:
            # First sheet only; keep raw cell types so text codes keep leading zeros
            df = pd.read_excel(file, sheet_name=0, dtype=object, engine=engine)
    except pd.errors.EmptyDataError:
        logger.info("import_file_empty")
        return []
    except Exception as e:
        logger.error("import_file_read_failed", error=str(e), error_type=type(e).__name__)
        raise ImportFileError(
            message="The file could not be read as a spreadsheet",
            details={"original_error": str(e)}
        ) from e

    df.columns = [str(col).strip() for col in df.columns]
    df = df.dropna(how="all").reset_index(drop=True)

    rows = [
        {col: value for col, value in record.items() if not pd.isna(value)}
        for record in df.to_dict(orient="records")
    ]

    logger.info("import_file_read", rows=len(rows), columns=list(df.columns))
    return rows
