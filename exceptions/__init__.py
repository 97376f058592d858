"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    ExternalServiceError,
    DatabaseError,

    # Manifest input
    DecodeError,
    UnsupportedFormatError,
    ManifestValidationError,

    # Enrichment
    EstimatorError,
    AnalysisCancelledError,

    # Store
    StoreError,
    ManifestNotFoundError,
)

__all__ = [
    "AppError",
    "NotFoundError",
    "ValidationError",
    "ExternalServiceError",
    "DatabaseError",
    "DecodeError",
    "UnsupportedFormatError",
    "ManifestValidationError",
    "EstimatorError",
    "AnalysisCancelledError",
    "StoreError",
    "ManifestNotFoundError",
]
