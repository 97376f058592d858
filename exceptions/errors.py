"""
Custom exception classes for the application.

Every failure that leaves the pipeline is an AppError subclass, so callers
can tell a bad file from a manifest with nothing to analyze from a storage
outage by code alone.
"""

from typing import Optional, Any
from datetime import datetime, timezone


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "MANIFEST_NOT_FOUND")
        message: Human-readable message
        status_code: HTTP-style status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class ExternalServiceError(AppError):
    """External service failure (503)."""

    def __init__(
        self,
        service: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code=f"{service.upper()}_ERROR",
            message=message,
            status_code=503,
            details={"service": service, **(details or {})}
        )


class DatabaseError(AppError):
    """Database operation failed (500)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )


# ===================
# MANIFEST INPUT ERRORS
# ===================

class DecodeError(ValidationError):
    """Manifest file could not be decoded into rows (bad file)."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="MANIFEST_DECODE_ERROR",
            message=message,
            details=details
        )


class UnsupportedFormatError(DecodeError):
    """File type has no decoder (415)."""

    def __init__(self, file_name: str, extension: str):
        super().__init__(
            message=f"Manifest parsing is not implemented for this format: {extension or 'unknown'}",
            details={"file_name": file_name, "extension": extension, "supported": [".csv", ".txt"]}
        )
        self.code = "UNSUPPORTED_FORMAT"
        self.status_code = 415


class ManifestValidationError(ValidationError):
    """No analyzable items left after structural validation."""

    def __init__(self, errors: list[str], total_items: int = 0):
        super().__init__(
            code="MANIFEST_NO_VALID_ITEMS",
            message=f"No analyzable items: 0 of {total_items} rows passed validation",
            details={"errors": errors, "total_items": total_items, "valid_items": 0}
        )
        self.errors = errors


# ===================
# ENRICHMENT ERRORS
# ===================

class EstimatorError(ExternalServiceError):
    """
    Primary estimator call failed or returned an unusable payload.

    Always caught at the sub-task boundary and replaced by the rule-based
    result; it never reaches pipeline callers.
    """

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            service="estimator",
            message=message,
            details=details
        )


class AnalysisCancelledError(AppError):
    """Run was cancelled before every item was enriched (409)."""

    def __init__(
        self,
        file_name: str,
        completed_items: list,
        total_items: int
    ):
        super().__init__(
            code="ANALYSIS_CANCELLED",
            message=f"Analysis cancelled after {len(completed_items)} of {total_items} items",
            status_code=409,
            details={
                "file_name": file_name,
                "completed_items": len(completed_items),
                "total_items": total_items
            }
        )
        self.completed_items = completed_items


# ===================
# STORE ERRORS
# ===================

class StoreError(DatabaseError):
    """Analysis store unavailable (503)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            operation=operation,
            message=message,
            details=details
        )
        self.code = "STORE_ERROR"
        self.message = f"Storage unavailable during {operation}: {message}"
        self.status_code = 503


class ManifestNotFoundError(NotFoundError):
    """Stored analysis not found."""

    def __init__(self, manifest_id: str):
        super().__init__(
            resource="Manifest",
            identifier=manifest_id,
            code="MANIFEST_NOT_FOUND"
        )
