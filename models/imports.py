"""
Product import structures.

Plain dataclasses: these live for a single import pass and are never sent
to the backend.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from models.catalog import Category, Manufacturer
from models.product import Product

# One row of the uploaded sheet, keyed by column header
ImportRow = dict[str, Any]


class RowStatus(str, Enum):
    """What happened to a single import row."""
    INSERTED = "INSERTED"
    UPDATED = "UPDATED"
    REJECTED = "REJECTED"


class ImportStatus(str, Enum):
    """Overall result of an import pass."""
    EMPTY_INPUT = "EMPTY_INPUT"          # File had no data rows
    SUCCESS = "SUCCESS"                  # Every row inserted or updated
    PARTIAL_SUCCESS = "PARTIAL_SUCCESS"  # Some rows saved, some rejected
    TOTAL_FAILURE = "TOTAL_FAILURE"      # Every row rejected


@dataclass
class CatalogIndex:
    """
    Lookups built once per import pass.

    Keys are lower-cased. Read-only for the duration of the pass.
    """
    category_ids: dict[str, str] = field(default_factory=dict)
    manufacturer_ids: dict[str, str] = field(default_factory=dict)
    products_by_code: dict[str, Product] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        categories: list[Category],
        manufacturers: list[Manufacturer],
        products: list[Product],
    ) -> "CatalogIndex":
        return cls(
            category_ids={c.name.lower(): c.id for c in categories},
            manufacturer_ids={m.name.lower(): m.id for m in manufacturers},
            products_by_code={p.code.lower(): p for p in products},
        )

    def category_id(self, name: str) -> Optional[str]:
        return self.category_ids.get(name.strip().lower())

    def manufacturer_id(self, name: str) -> Optional[str]:
        return self.manufacturer_ids.get(name.strip().lower())

    def existing_product(self, code: str) -> Optional[Product]:
        return self.products_by_code.get(code.strip().lower())


@dataclass
class RowOutcome:
    """Result for one import row."""
    row: int  # Sheet row number (data index + 2 for the header)
    status: RowStatus
    code: Optional[str] = None
    product_id: Optional[str] = None
    reasons: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def rejected(self) -> bool:
        return self.status == RowStatus.REJECTED

    def detail(self) -> str:
        """One line describing why the row was rejected."""
        prefix = f"Row {self.row}"
        if self.code:
            prefix += f" (Code: {self.code})"
        return f"{prefix}: {' '.join(self.reasons)}"


@dataclass
class ImportSummary:
    """Result of one import pass."""
    outcomes: list[RowOutcome] = field(default_factory=list)

    @property
    def inserted(self) -> int:
        return sum(1 for o in self.outcomes if o.status == RowStatus.INSERTED)

    @property
    def updated(self) -> int:
        return sum(1 for o in self.outcomes if o.status == RowStatus.UPDATED)

    @property
    def rejected(self) -> int:
        return sum(1 for o in self.outcomes if o.rejected)

    @property
    def details(self) -> list[str]:
        """Rejection details in row order."""
        return [o.detail() for o in self.outcomes if o.rejected]

    @property
    def warnings(self) -> list[str]:
        return [
            f"Row {o.row}: {w}"
            for o in self.outcomes
            for w in o.warnings
        ]

    @property
    def status(self) -> ImportStatus:
        succeeded = self.inserted + self.updated
        if succeeded == 0 and self.rejected == 0:
            return ImportStatus.EMPTY_INPUT
        if succeeded == 0:
            return ImportStatus.TOTAL_FAILURE
        if self.rejected:
            return ImportStatus.PARTIAL_SUCCESS
        return ImportStatus.SUCCESS

    def message(self) -> str:
        """Human-readable summary of the pass."""
        if self.status == ImportStatus.EMPTY_INPUT:
            return "The imported file is empty or not formatted correctly."

        counts = []
        if self.inserted:
            counts.append(f"{self.inserted} products imported.")
        if self.updated:
            counts.append(f"{self.updated} products updated.")
        summary = " ".join(counts)

        if self.status == ImportStatus.SUCCESS:
            return f"Import successful! {summary}"
        if self.status == ImportStatus.TOTAL_FAILURE:
            return "No products were imported or updated. See details below:\n- " + "\n- ".join(self.details)
        return f"Import completed with errors. {summary} See details below:\n- " + "\n- ".join(self.details)

    def to_dict(self) -> dict:
        """Convert to dictionary for reporting."""
        return {
            "status": self.status.value,
            "inserted": self.inserted,
            "updated": self.updated,
            "rejected": self.rejected,
            "details": self.details,
            "warnings": self.warnings,
            "outcomes": [
                {
                    "row": o.row,
                    "status": o.status.value,
                    "code": o.code,
                    "product_id": o.product_id,
                    "reasons": o.reasons,
                    "warnings": o.warnings,
                }
                for o in self.outcomes
            ],
        }
