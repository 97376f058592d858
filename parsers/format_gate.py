"""
Upload format gate.

Decides from the file name whether a manifest can be decoded at all, and
turns raw bytes into text for the CSV decoder.
"""

from pathlib import PurePath
from typing import Union
import structlog

from exceptions import DecodeError, UnsupportedFormatError

logger = structlog.get_logger(__name__)


TEXT_EXTENSIONS = {".csv", ".txt", ""}

# Recognized but without a decoder
UNSUPPORTED_EXTENSIONS = {".xlsx", ".xls", ".pdf"}


def check_supported_format(file_name: str) -> str:
    """
    Reject manifests that are not delimited text.

    Args:
        file_name: Display name of the uploaded file

    Returns:
        Lower-cased extension ("" if none)

    Raises:
        UnsupportedFormatError: For spreadsheets, PDFs and unknown extensions
    """
    extension = PurePath(file_name or "").suffix.lower()

    if extension in TEXT_EXTENSIONS:
        return extension

    logger.warning(
        "manifest_format_rejected",
        file_name=file_name,
        extension=extension,
        known_binary=extension in UNSUPPORTED_EXTENSIONS
    )
    raise UnsupportedFormatError(file_name=file_name, extension=extension)


def decode_bytes(content: Union[bytes, str]) -> str:
    """
    Decode an upload as UTF-8 text. A leading BOM is dropped.

    Raises:
        DecodeError: If the bytes are not valid UTF-8
    """
    if isinstance(content, str):
        return content.lstrip("\ufeff")

    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise DecodeError(
            "Manifest is not valid UTF-8 text",
            details={"position": e.start, "reason": e.reason}
        ) from e
