"""
Manifest file parsers module.
"""

from parsers.csv_decoder import (
    decode_manifest,
    split_csv_line,
    resolve_columns,
    ColumnMap,
    DecodedManifest,
)
from parsers.format_gate import (
    check_supported_format,
    decode_bytes,
)

__all__ = [
    "decode_manifest",
    "split_csv_line",
    "resolve_columns",
    "ColumnMap",
    "DecodedManifest",
    "check_supported_format",
    "decode_bytes",
]
