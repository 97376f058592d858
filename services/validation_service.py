"""
Structural validation for decoded manifests.

Builds candidate items from raw rows through the field normalizers and
forwards only rows that describe something with a price. Rows are never
mutated; invalid ones are reported and dropped.
"""

from dataclasses import dataclass, field
from typing import Optional
import structlog

from exceptions import ManifestValidationError
from models.manifest import ManifestItem, RawRow, ValidationReport
from parsers.csv_decoder import ColumnMap, resolve_columns
from utils.normalizers import (
    clean_description,
    extract_brand,
    extract_condition,
    extract_quantity,
    normalize_condition,
    parse_price,
    parse_quantity,
)

logger = structlog.get_logger(__name__)


@dataclass
class ValidationResult:
    """Valid items in row order plus the aggregate report."""
    items: list[ManifestItem] = field(default_factory=list)
    report: Optional[ValidationReport] = None

    @property
    def success(self) -> bool:
        return self.report is not None and self.report.is_valid


class ManifestValidator:
    """
    Minimum-viable-item checks.

    A row is valid when its cleaned description is non-empty and it has a
    unit or extended retail price above zero.
    """

    # Warning thresholds (accepted, but flagged)
    HIGH_PRICE_THRESHOLD = 10000
    HIGH_QUANTITY_THRESHOLD = 100
    SHORT_DESCRIPTION_LENGTH = 10
    TOTAL_MISMATCH_TOLERANCE = 0.01

    def build_item(
        self,
        row: RawRow,
        columns: ColumnMap,
        row_number: int
    ) -> tuple[Optional[ManifestItem], list[str]]:
        """
        Normalize one row into a ManifestItem.

        Returns:
            (item or None, errors for this row)
        """
        def cell(column: Optional[str]) -> str:
            return row.get(column, "") if column else ""

        raw_description = cell(columns.description)
        description = clean_description(raw_description)
        retail_price = parse_price(cell(columns.price))
        total_retail_price = parse_price(cell(columns.total))

        errors = []
        if not description:
            errors.append(f"Row {row_number}: missing description")
        if retail_price <= 0 and total_retail_price <= 0:
            errors.append(f"Row {row_number}: no retail price")
        if errors:
            return None, errors

        if columns.quantity:
            quantity = parse_quantity(cell(columns.quantity))
        else:
            quantity = extract_quantity(raw_description) or 1
        if columns.condition:
            condition = normalize_condition(cell(columns.condition))
        else:
            condition = extract_condition(raw_description)

        item = ManifestItem(
            description=description,
            quantity=quantity,
            retail_price=retail_price,
            total_retail_price=total_retail_price,
            condition=condition,
            brand_hint=extract_brand(description),
            row_number=row_number,
        )
        return item, []

    def _warnings_for(self, item: ManifestItem) -> list[str]:
        prefix = f"Row {item.row_number}"
        warnings = []
        if item.retail_price > self.HIGH_PRICE_THRESHOLD:
            warnings.append(f"{prefix}: very high retail price ({item.retail_price:.2f})")
        if item.quantity > self.HIGH_QUANTITY_THRESHOLD:
            warnings.append(f"{prefix}: very high quantity ({item.quantity})")
        if item.retail_price > 0 and item.total_retail_price > 0:
            expected = item.retail_price * item.quantity
            if abs(expected - item.total_retail_price) > self.TOTAL_MISMATCH_TOLERANCE:
                warnings.append(
                    f"{prefix}: total {item.total_retail_price:.2f} does not match "
                    f"price x quantity ({expected:.2f})"
                )
        if len(item.description) < self.SHORT_DESCRIPTION_LENGTH:
            warnings.append(f"{prefix}: description is very short")
        return warnings

    def validate(
        self,
        rows: list[RawRow],
        columns: Optional[ColumnMap] = None
    ) -> ValidationResult:
        """
        Validate decoded rows.

        Args:
            rows: Decoder output in file order
            columns: Column mapping; resolved from the first row's keys if omitted

        Returns:
            ValidationResult with valid items and report
        """
        if columns is None:
            columns = resolve_columns(list(rows[0].keys()) if rows else [])

        items: list[ManifestItem] = []
        errors: list[str] = []
        warnings: list[str] = []

        if columns.description is None:
            errors.append("No description column found")

        for index, row in enumerate(rows, start=1):
            item, row_errors = self.build_item(row, columns, index)
            errors.extend(row_errors)
            if item is not None:
                items.append(item)
                warnings.extend(self._warnings_for(item))

        total = len(rows)
        report = ValidationReport(
            is_valid=len(items) > 0,
            total_items=total,
            valid_items=len(items),
            errors=errors,
            warnings=warnings,
            data_quality_score=round(len(items) / total * 100, 2) if total else 0.0,
        )

        logger.info(
            "manifest_validated",
            total_items=report.total_items,
            valid_items=report.valid_items,
            errors=len(errors),
            warnings=len(warnings)
        )

        return ValidationResult(items=items, report=report)

    def validate_or_raise(
        self,
        rows: list[RawRow],
        columns: Optional[ColumnMap] = None
    ) -> ValidationResult:
        """
        Validate and fail hard when nothing is analyzable.

        Raises:
            ManifestValidationError: If zero rows are valid
        """
        result = self.validate(rows, columns)
        if not result.success:
            logger.warning(
                "manifest_has_no_valid_items",
                total_items=result.report.total_items,
                first_errors=result.report.errors[:5]
            )
            raise ManifestValidationError(
                errors=result.report.errors,
                total_items=result.report.total_items
            )
        return result


# Singleton instance for convenience
_validator: Optional[ManifestValidator] = None

def get_manifest_validator() -> ManifestValidator:
    """Get or create ManifestValidator instance."""
    global _validator
    if _validator is None:
        _validator = ManifestValidator()
    return _validator
