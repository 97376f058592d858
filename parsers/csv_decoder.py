"""
Delimited-text decoder for manifest uploads.

Turns raw CSV text into ordered rows keyed by lower-cased header, and works
out which columns carry the description, price, quantity, condition and
extended total. No domain cleaning happens here.
"""

from dataclasses import dataclass, field
from typing import Optional
import structlog

from exceptions import DecodeError
from models.manifest import RawRow

logger = structlog.get_logger(__name__)


DELIMITER = ","
QUOTE = '"'

# Exact header names, in priority order. First present column wins.
DESCRIPTION_COLUMNS = (
    "description",
    "item",
    "product",
    "name",
    "title",
    "product name",
    "item description",
)
PRICE_COLUMNS = ("retail price", "retail", "unit retail", "msrp", "price", "unit price")
QUANTITY_COLUMNS = ("quantity", "qty", "units", "count")
CONDITION_COLUMNS = ("condition", "grade", "item condition")
TOTAL_COLUMNS = ("total retail price", "total retail", "ext retail", "extended retail", "total")


@dataclass
class ColumnMap:
    """Which header feeds each ManifestItem field. None = column absent."""
    description: Optional[str] = None
    price: Optional[str] = None
    quantity: Optional[str] = None
    condition: Optional[str] = None
    total: Optional[str] = None

    @property
    def missing(self) -> list[str]:
        """Names of roles with no matching column."""
        return [name for name, column in self.__dict__.items() if column is None]


@dataclass
class DecodedManifest:
    """Rows plus the header and column mapping they were read with."""
    headers: list[str]
    rows: list[RawRow] = field(default_factory=list)
    columns: ColumnMap = field(default_factory=ColumnMap)

    @property
    def row_count(self) -> int:
        return len(self.rows)


def split_csv_line(line: str) -> list[str]:
    """
    Split one line on commas, honoring double quotes.

    A quote opens a quoted field only at the start of a field, and closes it
    only right before a comma or the end of the line. Any other quote is a
    literal character, so an inch mark survives with or without quoting.
    "" inside a quoted field is one literal quote. Cell text is returned
    unstripped.

    Example:
        >>> split_csv_line('"Samsung 65" QLED",1299.99')
        ['Samsung 65" QLED', '1299.99']
        >>> split_csv_line('Samsung 65" TV,999.00')
        ['Samsung 65" TV', '999.00']
    """
    fields: list[str] = []
    current: list[str] = []
    in_quotes = False
    last = len(line) - 1
    i = 0

    while i <= last:
        char = line[i]
        if char == QUOTE and not in_quotes and (i == 0 or line[i - 1] == DELIMITER):
            in_quotes = True
        elif char == QUOTE and in_quotes and i < last and line[i + 1] == QUOTE:
            current.append(QUOTE)
            i += 1
        elif char == QUOTE and in_quotes and (i == last or line[i + 1] == DELIMITER):
            in_quotes = False
        elif char == DELIMITER and not in_quotes:
            fields.append("".join(current))
            current = []
        else:
            current.append(char)
        i += 1

    fields.append("".join(current))
    return fields


def _normalize_header(cell: str) -> str:
    return cell.strip().strip(QUOTE).strip().lower()


def _first_present(headers: list[str], candidates: tuple[str, ...], used: set[str]) -> Optional[str]:
    for candidate in candidates:
        if candidate in headers and candidate not in used:
            return candidate
    return None


def _first_containing(headers: list[str], used: set[str], *needles: str, exclude: tuple[str, ...] = ()) -> Optional[str]:
    for header in headers:
        if header in used:
            continue
        if any(n in header for n in needles) and not any(x in header for x in exclude):
            return header
    return None


def resolve_columns(headers: list[str]) -> ColumnMap:
    """
    Map headers onto item fields.

    Exact aliases are tried first, then substring heuristics for the numeric
    and condition columns. Each header is used for at most one field.
    """
    used: set[str] = set()
    columns = ColumnMap()

    columns.description = _first_present(headers, DESCRIPTION_COLUMNS, used)
    if columns.description:
        used.add(columns.description)

    columns.total = _first_present(headers, TOTAL_COLUMNS, used)
    if columns.total:
        used.add(columns.total)

    columns.price = _first_present(headers, PRICE_COLUMNS, used)
    if columns.price is None:
        columns.price = _first_containing(headers, used, "retail", "price", "msrp", exclude=("total", "ext"))
    if columns.price:
        used.add(columns.price)

    if columns.total is None:
        columns.total = _first_containing(headers, used, "total")
        if columns.total:
            used.add(columns.total)

    columns.quantity = _first_present(headers, QUANTITY_COLUMNS, used)
    if columns.quantity is None:
        columns.quantity = _first_containing(headers, used, "qty", "quant")
    if columns.quantity:
        used.add(columns.quantity)

    columns.condition = _first_present(headers, CONDITION_COLUMNS, used)
    if columns.condition is None:
        columns.condition = _first_containing(headers, used, "condition")

    return columns


def decode_manifest(text: str) -> DecodedManifest:
    """
    Decode CSV text into rows keyed by lower-cased header.

    Blank lines are skipped. Short rows are padded with empty strings and
    long rows are truncated to the header width.

    Args:
        text: Raw file contents

    Returns:
        DecodedManifest with headers, rows and resolved columns

    Raises:
        DecodeError: If there is no header or no data row
    """
    lines = [line for line in (text or "").splitlines() if line.strip()]

    if len(lines) < 2:
        raise DecodeError(
            "Manifest must contain a header row and at least one data row",
            details={"non_blank_lines": len(lines)}
        )

    headers = [_normalize_header(cell) for cell in split_csv_line(lines[0])]
    width = len(headers)

    rows: list[RawRow] = []
    for line in lines[1:]:
        values = split_csv_line(line)
        if len(values) < width:
            values += [""] * (width - len(values))
        rows.append(dict(zip(headers, values[:width])))

    columns = resolve_columns(headers)

    logger.info(
        "manifest_decoded",
        columns=width,
        rows=len(rows),
        description_column=columns.description,
        missing_columns=columns.missing
    )

    return DecodedManifest(headers=headers, rows=rows, columns=columns)
